from unittest.mock import AsyncMock

import anyio
import pytest

from src.service.table_reservation.app.service.table_status_reconciler import SweepReport
from src.service.table_reservation.driving_adapter.scheduler.reservation_scheduler import (
    ReservationScheduler,
)


@pytest.fixture
def reconciler() -> AsyncMock:
    mock = AsyncMock()
    mock.run_lock_sweep = AsyncMock(return_value=SweepReport(tables_locked=1))
    mock.run_full_sync = AsyncMock(return_value=SweepReport())
    mock.run_expiry_sweep = AsyncMock(return_value=SweepReport(reservations_expired=2))
    return mock


@pytest.fixture
def scheduler(reconciler) -> ReservationScheduler:
    return ReservationScheduler(
        reconciler=reconciler,
        lock_interval_seconds=60,
        full_sync_interval_seconds=60,
        expiry_interval_seconds=60,
    )


class TestReservationScheduler:
    @pytest.mark.asyncio
    async def test_tick_reports_success(self, scheduler, reconciler):
        assert await scheduler.tick('lock', reconciler.run_lock_sweep) is True

    @pytest.mark.asyncio
    async def test_tick_swallows_sweep_failure(self, scheduler):
        failing = AsyncMock(side_effect=RuntimeError('database unavailable'))

        assert await scheduler.tick('lock', failing) is False
        failing.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_partial_failures_still_count_as_completed_tick(self, scheduler):
        sweep = AsyncMock(return_value=SweepReport(failures=3))

        assert await scheduler.tick('full_sync', sweep) is True

    @pytest.mark.asyncio
    async def test_start_runs_every_sweep_immediately(self, scheduler, reconciler):
        with anyio.move_on_after(0.1):
            await scheduler.start()

        reconciler.run_lock_sweep.assert_awaited_once()
        reconciler.run_full_sync.assert_awaited_once()
        reconciler.run_expiry_sweep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_loop_does_not_stop_the_others(self, scheduler, reconciler):
        reconciler.run_lock_sweep.side_effect = RuntimeError('boom')

        with anyio.move_on_after(0.1):
            await scheduler.start()

        reconciler.run_full_sync.assert_awaited_once()
        reconciler.run_expiry_sweep.assert_awaited_once()
