from typing import Self
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
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.table_state_machine import occupy


class StartReservationUseCase:
    """
    Customer seated: PENDING -> IN_PROGRESS, every table of the reservation -> OCCUPIED.

    Allowed from RESERVATION_START_EARLY_MINUTES before start until the reservation's end.
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
    async def execute(self, *, business_id: UUID, reservation_id: UUID) -> Reservation:
        async def work(uow: AbstractUnitOfWork) -> Reservation:
            now = self.clock.now()
            reservation = await get_owned_reservation(
                uow, business_id=business_id, reservation_id=reservation_id, for_update=True
            )
            started = await uow.reservations.save(
                reservation=reservation.start(
                    now=now, early_minutes=settings.RESERVATION_START_EARLY_MINUTES
                )
            )
            tables = await uow.tables.get_many_for_update(table_ids=started.table_ids)
            for table in tables:
                await self.reconciler.apply_transition(
                    uow, occupy(table, now=now), reason='occupy', now=now
                )
            return started

        try:
            started = await run_in_transaction(
                self.uow_factory, work, operation='start_reservation'
            )
        except Exception:
            metrics.record_reservation_request(operation='start', result='rejected')
            raise

        metrics.record_reservation_request(operation='start', result='success')
        Logger.base.info(f'🍽️ [RESERVATION] Started {started.id}, tables occupied')
        return started
