from datetime import datetime
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.transaction import run_in_transaction
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.app.service.ownership import get_owned_reservation
from src.service.table_reservation.app.service.reservation_guard import (
    check_overlap,
    check_tables,
)
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.time_window_policy import is_upcoming


class UpdateReservationUseCase:
    """
    Partially update a PENDING reservation.

    Any change to tables, time range or party size re-validates the whole
    resulting reservation: schedule rules, capacity and overlap on every final
    table (excluding the reservation itself). Afterwards:
    - tables dropped from the reservation go through the automatic release rule
    - the reservation is re-checked for the upcoming lock; if it is no longer
      upcoming, the holds it had are released as well
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: IClock,
        reconciler: TableStatusReconciler,
    ) -> None:
        self.uow_factory = uow_factory
        self.clock = clock
        self.reconciler = reconciler

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        clock: IClock = Depends(Provide[Container.clock]),
        reconciler: TableStatusReconciler = Depends(Provide[Container.table_status_reconciler]),
    ) -> Self:
        return cls(uow_factory=uow_factory, clock=clock, reconciler=reconciler)

    @Logger.io
    async def execute(
        self,
        *,
        business_id: UUID,
        reservation_id: UUID,
        table_ids: Optional[list[UUID]] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        party_size: Optional[int] = None,
        customer_name: Optional[str] = None,
        customer_contact: Optional[str] = None,
        customer_document: Optional[str] = None,
        notes: Optional[str] = None,
        forced: Optional[bool] = None,
    ) -> Reservation:
        async def work(uow: AbstractUnitOfWork) -> Reservation:
            now = self.clock.now()
            current = await get_owned_reservation(
                uow, business_id=business_id, reservation_id=reservation_id, for_update=True
            )
            revised = current.revise(
                now=now,
                max_hours=settings.RESERVATION_MAX_HOURS,
                table_ids=table_ids,
                start_time=start_time,
                end_time=end_time,
                party_size=party_size,
                customer_name=customer_name,
                customer_contact=customer_contact,
                customer_document=customer_document,
                notes=notes,
                forced=forced,
            )

            if not current.schedule_changed(revised):
                return await uow.reservations.save(reservation=revised)

            touched = await uow.tables.get_many_for_update(
                table_ids=current.table_ids | revised.table_ids
            )
            kept = [t for t in touched if t.id in revised.table_ids]
            removed = [t for t in touched if t.id not in revised.table_ids]

            check_tables(
                business_id=business_id,
                requested_ids=revised.table_ids,
                tables=kept,
                party_size=revised.party_size,
                forced=revised.forced,
            )
            await check_overlap(uow, reservation=revised, exclude_reservation_id=revised.id)
            saved = await uow.reservations.save(reservation=revised)

            for table in removed:
                await self.reconciler.release_table_in_uow(
                    uow, table=table, now=now, exclude_reservation_id=saved.id
                )

            if is_upcoming(saved, now, self.reconciler.lock_horizon_minutes):
                await self.reconciler.lock_tables_in_uow(
                    uow, reservation=saved, tables=kept, now=now
                )
            else:
                for table in kept:
                    await self.reconciler.release_table_in_uow(
                        uow, table=table, now=now, exclude_reservation_id=saved.id
                    )
            return saved

        try:
            updated = await run_in_transaction(
                self.uow_factory, work, operation='update_reservation'
            )
        except Exception:
            metrics.record_reservation_request(operation='update', result='rejected')
            raise

        metrics.record_reservation_request(operation='update', result='success')
        Logger.base.info(f'✏️ [RESERVATION] Updated {updated.id}')
        return updated
