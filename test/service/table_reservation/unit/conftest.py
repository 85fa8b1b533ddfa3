"""
Unit test configuration for the table reservation service.

Everything runs against the in-memory unit of work from helpers.py, no
database needed. Time is frozen on a FakeClock at 2025-01-10 19:00 UTC.
"""

from uuid import UUID, uuid4

import pytest

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from test.service.table_reservation.unit.helpers import (
    FakeClock,
    InMemoryStore,
    InMemoryUnitOfWork,
)


@pytest.fixture
def business_id() -> UUID:
    return uuid4()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore) -> UnitOfWorkFactory:
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def reconciler(uow_factory: UnitOfWorkFactory, clock: FakeClock) -> TableStatusReconciler:
    return TableStatusReconciler(uow_factory=uow_factory, clock=clock, lock_horizon_minutes=20)
