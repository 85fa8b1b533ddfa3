from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.transaction import run_in_transaction
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.app.service.ownership import get_owned_table
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.table_status import TableStatus
from src.service.table_reservation.domain.table_state_machine import set_status


class SetTableStatusUseCase:
    """
    Manual table status change (any state to any state).

    Afterwards the upcoming reservations using the table are re-processed right
    away, so e.g. freeing a table 10 minutes before a reservation puts the hold
    back immediately instead of waiting for the next sweep.
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
    async def execute(self, *, business_id: UUID, table_id: UUID, status: TableStatus) -> Table:
        async def work(uow: AbstractUnitOfWork) -> Table:
            now = self.clock.now()
            table = await get_owned_table(
                uow, business_id=business_id, table_id=table_id, for_update=True
            )
            updated = await self.reconciler.apply_transition(
                uow, set_status(table, status, now=now), reason='manual', now=now
            )
            if updated.status != table.status:
                Logger.base.info(
                    f'🪑 [TABLE] {table.table_code} {table.status.value} -> {updated.status.value} (manual)'
                )
            return updated

        updated = await run_in_transaction(self.uow_factory, work, operation='set_table_status')

        try:
            if await self.reconciler.process_reservations_for_table(table_id):
                async with self.uow_factory() as uow:
                    refreshed = await uow.tables.get_by_id(table_id=table_id)
                updated = refreshed or updated
        except Exception as e:
            # Committed already; the next lock sweep converges the table
            Logger.base.warning(f'⚠️ [SYNC] Re-processing table {table_id} failed: {e}')
        return updated
