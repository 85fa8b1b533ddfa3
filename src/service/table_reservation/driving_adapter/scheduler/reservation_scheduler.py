"""
Reservation Scheduler - timer driven trigger of the reconciliation sweeps

Three independent loops, each running its sweep right away and then on a fixed cadence:
- lock sweep      (default every 5 min): hold tables of upcoming reservations
- full sync       (default every 15 min): lock + release RESERVED tables nothing claims
- expiry sweep    (default every hour): PENDING past its end -> NO_SHOW

A failing tick is logged and the loop goes on; the sweeps are idempotent so
the next tick converges whatever was missed.
"""

import time
from typing import Awaitable, Callable, Optional

import anyio

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.table_reservation.app.service.table_status_reconciler import (
    SweepReport,
    TableStatusReconciler,
)


class ReservationScheduler:
    def __init__(
        self,
        *,
        reconciler: TableStatusReconciler,
        lock_interval_seconds: Optional[float] = None,
        full_sync_interval_seconds: Optional[float] = None,
        expiry_interval_seconds: Optional[float] = None,
    ) -> None:
        self.reconciler = reconciler
        self.lock_interval_seconds = (
            lock_interval_seconds or settings.LOCK_SWEEP_INTERVAL_SECONDS
        )
        self.full_sync_interval_seconds = (
            full_sync_interval_seconds or settings.FULL_SYNC_INTERVAL_SECONDS
        )
        self.expiry_interval_seconds = (
            expiry_interval_seconds or settings.EXPIRY_SWEEP_INTERVAL_SECONDS
        )

    async def tick(self, name: str, sweep: Callable[[], Awaitable[SweepReport]]) -> bool:
        """Run one sweep; never raises so a loop cannot die on a single failure"""
        started = time.perf_counter()
        try:
            report = await sweep()
        except Exception as e:
            metrics.record_sweep(sweep=name, result='error', duration=time.perf_counter() - started)
            Logger.base.warning(f'⚠️ [Scheduler] {name} sweep failed: {type(e).__name__}: {e}')
            return False

        if report.failures:
            Logger.base.warning(
                f'⚠️ [Scheduler] {name} sweep finished with {report.failures} skipped item(s)'
            )
        return True

    async def _run_every(
        self, name: str, interval: float, sweep: Callable[[], Awaitable[SweepReport]]
    ) -> None:
        Logger.base.info(f'⏱️ [Scheduler] {name} sweep every {interval:.0f}s')
        while True:
            await self.tick(name, sweep)
            await anyio.sleep(interval)

    async def start(self) -> None:
        """Run all loops until cancelled (start it inside the app's task group)"""
        async with anyio.create_task_group() as tg:
            tg.start_soon(
                self._run_every, 'lock', self.lock_interval_seconds, self.reconciler.run_lock_sweep
            )
            tg.start_soon(
                self._run_every,
                'full_sync',
                self.full_sync_interval_seconds,
                self.reconciler.run_full_sync,
            )
            tg.start_soon(
                self._run_every,
                'expiry',
                self.expiry_interval_seconds,
                self.reconciler.run_expiry_sweep,
            )
