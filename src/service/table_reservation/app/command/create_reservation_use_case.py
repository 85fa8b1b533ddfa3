from datetime import datetime
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.transaction import run_in_transaction
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.app.service.reservation_guard import (
    check_overlap,
    check_tables,
)
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.time_window_policy import is_upcoming


class CreateReservationUseCase:
    """
    Create a PENDING reservation on one or more tables.

    Flow (one transaction, retried on contention):
    1. Validate schedule / party (domain)
    2. Row-lock the target tables in ascending id order
    3. Check ownership, capacity and per-table overlap (all tables or nothing)
    4. Insert the reservation
    5. If it is already upcoming, hold its tables right away
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
        table_ids: list[UUID],
        customer_name: str,
        start_time: datetime,
        end_time: datetime,
        party_size: int,
        forced: bool = False,
        customer_contact: Optional[str] = None,
        customer_document: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[UUID] = None,
    ) -> Reservation:
        now = self.clock.now()
        reservation = Reservation.create(
            id=UUID(str(uuid_utils.uuid7())),
            business_id=business_id,
            table_ids=table_ids,
            customer_name=customer_name,
            customer_contact=customer_contact,
            customer_document=customer_document,
            start_time=start_time,
            end_time=end_time,
            party_size=party_size,
            forced=forced,
            notes=notes,
            created_by=created_by,
            now=now,
            max_hours=settings.RESERVATION_MAX_HOURS,
        )

        async def work(uow: AbstractUnitOfWork) -> Reservation:
            tables = await uow.tables.get_many_for_update(table_ids=reservation.table_ids)
            check_tables(
                business_id=business_id,
                requested_ids=reservation.table_ids,
                tables=tables,
                party_size=reservation.party_size,
                forced=reservation.forced,
            )
            await check_overlap(uow, reservation=reservation)
            created = await uow.reservations.add(reservation=reservation)

            if is_upcoming(created, now, self.reconciler.lock_horizon_minutes):
                await self.reconciler.lock_tables_in_uow(
                    uow, reservation=created, tables=tables, now=now
                )
            return created

        try:
            created = await run_in_transaction(
                self.uow_factory, work, operation='create_reservation'
            )
        except Exception:
            metrics.record_reservation_request(operation='create', result='rejected')
            raise

        metrics.record_reservation_request(
            operation='create', result='forced' if created.forced else 'success'
        )
        Logger.base.info(
            f'📝 [RESERVATION] Created {created.id} on {len(created.table_ids)} table(s) '
            f'{created.start_time.isoformat()} - {created.end_time.isoformat()}'
        )
        return created
