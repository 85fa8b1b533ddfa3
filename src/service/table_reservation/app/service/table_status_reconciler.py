"""
Table Status Reconciler - drives table status toward the reservation timeline

Two kinds of callers share the same idempotent operations:
- The scheduler: run_lock_sweep (every 5 min), run_full_sync, run_expiry_sweep (hourly)
- Use cases: the *_in_uow helpers inside their own transaction, and the
  process_* triggers right after a commit that may change which tables are held

Each sweep item runs in its own short transaction; a failing item is logged and
skipped because the next cycle converges it anyway.

Lock order: reservation row (if any) first, then table rows in ascending id.
"""

import time
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional, TypeVar
from uuid import UUID

import attrs

from src.platform.config.core_setting import settings
from src.platform.database.transaction import run_in_transaction
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus
from src.service.table_reservation.domain.enum.table_status import TableStatus
from src.service.table_reservation.domain.reconciliation_plan import plan_reconciliation
from src.service.table_reservation.domain.table_state_machine import (
    CloseOpenSales,
    TableTransition,
    lock_for_reservation,
    release,
    set_status,
    settle,
)
from src.service.table_reservation.domain.time_window_policy import (
    is_upcoming,
    upcoming_window,
)


_T = TypeVar('_T')


@attrs.define
class SweepReport:
    tables_locked: int = 0
    tables_released: int = 0
    reservations_expired: int = 0
    failures: int = 0


class TableStatusReconciler:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: IClock,
        lock_horizon_minutes: Optional[int] = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.clock = clock
        self.lock_horizon_minutes = (
            settings.RESERVATION_LOCK_MINUTES
            if lock_horizon_minutes is None
            else lock_horizon_minutes
        )

    # ------------------------------------------------------------------
    # Transition execution (inside a caller-owned unit of work)
    # ------------------------------------------------------------------

    async def apply_transition(
        self,
        uow: AbstractUnitOfWork,
        transition: TableTransition,
        *,
        reason: str,
        now: datetime,
    ) -> Table:
        """Run side effects first, then persist the new table snapshot"""
        for effect in transition.side_effects:
            if isinstance(effect, CloseOpenSales):
                closed = await uow.sales.close_open_sales_for_table(
                    table_id=effect.table_id, closed_at=now
                )
                if closed:
                    metrics.sales_closed.inc(closed)
                    Logger.base.info(
                        f'🧾 [LOCK] Closed {closed} open sale(s) on table {effect.table_id}'
                    )

        if transition.changed:
            await uow.tables.save(table=transition.table)
            metrics.record_table_transition(
                transition=reason, to_status=transition.table.status.value
            )
        return transition.table

    async def lock_tables_in_uow(
        self,
        uow: AbstractUnitOfWork,
        *,
        reservation: Reservation,
        tables: Iterable[Table],
        now: datetime,
    ) -> int:
        """Lock-for-reservation on already row-locked tables; returns how many changed"""
        changed = 0
        for table in tables:
            transition = lock_for_reservation(table, now=now)
            if not transition.changed:
                continue
            await self.apply_transition(uow, transition, reason='lock', now=now)
            changed += 1
            minutes = int((reservation.start_time - now).total_seconds() // 60)
            Logger.base.info(
                f'🔒 [LOCK] Table {table.table_code} {table.status.value} -> reserved '
                f'for reservation {reservation.id} starting in {minutes} min'
            )
        return changed

    async def release_table_in_uow(
        self,
        uow: AbstractUnitOfWork,
        *,
        table: Table,
        now: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        """Automatic release of a row-locked table; True when it went RESERVED -> FREE"""
        if table.status != TableStatus.RESERVED:
            return False
        after, until = upcoming_window(now, self.lock_horizon_minutes)
        claims = await uow.reservations.list_claims_for_table(
            table_id=table.id,
            after=after,
            until=until,
            exclude_reservation_id=exclude_reservation_id,
        )
        transition = release(table, is_claimed=bool(claims), now=now)
        await self.apply_transition(uow, transition, reason='release', now=now)
        if transition.changed:
            Logger.base.info(f'🔓 [RELEASE] Table {table.table_code} reserved -> free')
        return transition.changed

    async def settle_table_in_uow(
        self,
        uow: AbstractUnitOfWork,
        *,
        table: Table,
        now: datetime,
        exclude_reservation_id: UUID,
    ) -> Table:
        """Resolve a table after the reservation seated on it finished"""
        after, until = upcoming_window(now, self.lock_horizon_minutes)
        claims = await uow.reservations.list_claims_for_table(
            table_id=table.id,
            after=after,
            until=until,
            exclude_reservation_id=exclude_reservation_id,
        )
        transition = settle(
            table,
            has_in_progress_claim=any(c.status == ReservationStatus.IN_PROGRESS for c in claims),
            has_upcoming_claim=any(c.status == ReservationStatus.PENDING for c in claims),
            now=now,
        )
        settled = await self.apply_transition(uow, transition, reason='settle', now=now)
        if transition.changed:
            Logger.base.info(
                f'🔓 [RELEASE] Table {table.table_code} {table.status.value} -> {settled.status.value}'
            )
        return settled

    # ------------------------------------------------------------------
    # Ad hoc triggers (own transaction each)
    # ------------------------------------------------------------------

    @Logger.io
    async def process_reservation_if_upcoming(self, reservation_id: UUID) -> int:
        """
        Lock the tables of one reservation if it is PENDING and upcoming right now

        The reservation row is locked before its tables, so a start, cancel or
        update committing in between is seen here and the lock is skipped.
        """

        async def work(uow: AbstractUnitOfWork) -> int:
            reservation = await uow.reservations.get_for_update(reservation_id=reservation_id)
            if reservation is None or reservation.status != ReservationStatus.PENDING:
                return 0
            now = self.clock.now()
            if not is_upcoming(reservation, now, self.lock_horizon_minutes):
                return 0
            tables = await uow.tables.get_many_for_update(table_ids=reservation.table_ids)
            return await self.lock_tables_in_uow(
                uow, reservation=reservation, tables=tables, now=now
            )

        return await run_in_transaction(self.uow_factory, work, operation='lock_reservation_tables')

    @Logger.io
    async def process_reservations_for_table(self, table_id: UUID) -> int:
        """Re-apply the upcoming lock of every PENDING reservation that uses this table"""
        async with self.uow_factory() as uow:
            pending = await uow.reservations.list_pending_for_table(table_id=table_id)

        now = self.clock.now()
        locked = 0
        for reservation in pending:
            if not is_upcoming(reservation, now, self.lock_horizon_minutes):
                continue
            Logger.base.info(
                f'🔄 [SYNC] Re-processing reservation {reservation.id} after change on table {table_id}'
            )
            locked += await self.process_reservation_if_upcoming(reservation.id)
        return locked

    @Logger.io
    async def release_table_if_unclaimed(self, table_id: UUID) -> bool:
        async def work(uow: AbstractUnitOfWork) -> bool:
            table = await uow.tables.get_for_update(table_id=table_id)
            if table is None:
                return False
            return await self.release_table_in_uow(uow, table=table, now=self.clock.now())

        return await run_in_transaction(self.uow_factory, work, operation='release_table')

    @Logger.io
    async def expire_reservation(self, reservation_id: UUID) -> bool:
        """PENDING past its end -> NO_SHOW, and its tables -> FREE unconditionally"""

        async def work(uow: AbstractUnitOfWork) -> bool:
            reservation = await uow.reservations.get_for_update(reservation_id=reservation_id)
            now = self.clock.now()
            if reservation is None or not reservation.is_expired(now):
                return False

            await uow.reservations.save(reservation=reservation.expire(now=now))
            tables = await uow.tables.get_many_for_update(table_ids=reservation.table_ids)
            for table in tables:
                transition = set_status(table, TableStatus.FREE, now=now)
                await self.apply_transition(uow, transition, reason='expire', now=now)
            Logger.base.warning(
                f'⏰ [EXPIRY] Reservation {reservation.id} expired without starting -> no_show'
            )
            return True

        return await run_in_transaction(self.uow_factory, work, operation='expire_reservation')

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    async def _guarded(
        self,
        report: SweepReport,
        sweep: str,
        label: str,
        operation: Callable[[], Awaitable[_T]],
    ) -> Optional[_T]:
        try:
            return await operation()
        except Exception as e:
            report.failures += 1
            metrics.sweep_item_failures.labels(sweep=sweep).inc()
            Logger.base.exception(f'⚠️ [{sweep.upper()}] Skipped {label}: {type(e).__name__}: {e}')
            return None

    @staticmethod
    def _record_sweep(sweep: str, report: SweepReport, started: float) -> None:
        metrics.record_sweep(
            sweep=sweep,
            result='partial' if report.failures else 'success',
            duration=time.perf_counter() - started,
        )

    async def _lock_upcoming(self, report: SweepReport, reservation_ids: Iterable[UUID], sweep: str):
        for reservation_id in reservation_ids:
            locked = await self._guarded(
                report,
                sweep,
                f'reservation {reservation_id}',
                lambda rid=reservation_id: self.process_reservation_if_upcoming(rid),
            )
            report.tables_locked += locked or 0

    @Logger.io
    async def run_lock_sweep(self) -> SweepReport:
        """Steps 1-3: hold every table of every upcoming reservation"""
        started = time.perf_counter()
        report = SweepReport()
        after, until = upcoming_window(self.clock.now(), self.lock_horizon_minutes)
        async with self.uow_factory() as uow:
            upcoming = await uow.reservations.list_upcoming(after=after, until=until)

        plan = plan_reconciliation(upcoming=upcoming)
        if plan.reservations_to_lock:
            Logger.base.info(
                f'🔒 [LOCK] Processing {len(plan.reservations_to_lock)} upcoming reservation(s)'
            )
        await self._lock_upcoming(report, plan.reservations_to_lock, 'lock')

        self._record_sweep('lock', report, started)
        return report

    @Logger.io
    async def run_full_sync(self) -> SweepReport:
        """
        Steps 1-4: lock upcoming tables, then release every RESERVED table nothing claims.

        Locking runs first so a table eligible for both at the boundary ends up RESERVED.
        """
        started = time.perf_counter()
        report = SweepReport()
        after, until = upcoming_window(self.clock.now(), self.lock_horizon_minutes)
        async with self.uow_factory() as uow:
            upcoming = await uow.reservations.list_upcoming(after=after, until=until)
            in_progress = await uow.reservations.list_in_progress()
            reserved_ids = await uow.tables.list_ids_by_status(status=TableStatus.RESERVED)

        plan = plan_reconciliation(
            upcoming=upcoming, in_progress=in_progress, reserved_table_ids=reserved_ids
        )
        await self._lock_upcoming(report, plan.reservations_to_lock, 'sync')

        for table_id in sorted(plan.tables_to_release):
            released = await self._guarded(
                report,
                'sync',
                f'table {table_id}',
                lambda tid=table_id: self.release_table_if_unclaimed(tid),
            )
            report.tables_released += int(bool(released))

        Logger.base.info(
            f'🔄 [SYNC] Completed: {len(plan.tables_to_hold)} table(s) should be reserved, '
            f'{report.tables_locked} locked, {report.tables_released} released, '
            f'{report.failures} failure(s)'
        )
        self._record_sweep('full_sync', report, started)
        return report

    @Logger.io
    async def run_expiry_sweep(self) -> SweepReport:
        """Mark PENDING reservations past their end as NO_SHOW; IN_PROGRESS is never auto-expired"""
        started = time.perf_counter()
        report = SweepReport()
        async with self.uow_factory() as uow:
            expired = await uow.reservations.list_expired_pending(now=self.clock.now())

        if expired:
            Logger.base.warning(
                f'⏰ [EXPIRY] Found {len(expired)} expired pending reservation(s), marking no_show'
            )
        for reservation in expired:
            done = await self._guarded(
                report,
                'expiry',
                f'reservation {reservation.id}',
                lambda rid=reservation.id: self.expire_reservation(rid),
            )
            report.reservations_expired += int(bool(done))

        self._record_sweep('expiry', report, started)
        return report
