"""
Test Configuration

Environment setup MUST happen before any application import: settings and the
loguru sinks read environment variables at import time.

Architecture:
- Unit tests (test/**/unit/): in-memory unit of work and FakeClock, see their conftest.py
- Integration tests (test/**/integration/): real PostgreSQL in POSTGRES_DB, skipped when
  no server is reachable
"""

import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    os.environ.setdefault('POSTGRES_DB', 'table_reservation_test_db')
    os.environ['ENABLE_SCHEDULER'] = 'false'
    os.environ['DEBUG'] = 'false'

    # Create test log directory
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


# Call immediately to set env vars before any imports
_early_setup_test_environment()
