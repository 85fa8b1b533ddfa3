from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.transaction import run_in_transaction
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError, InvalidStateError
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.app.service.ownership import get_owned_table
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.time_window_policy import upcoming_window


class UpdateTableUseCase:
    """
    Edit code, capacity or sector of a table.

    Only a FREE table that no reservation currently claims (seated, or starting
    within the lock horizon) can be edited, so the capacity a reservation was
    validated against never changes under it while it is being served.
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
        table_id: UUID,
        table_code: Optional[str] = None,
        capacity: Optional[int] = None,
        sector: Optional[str] = None,
    ) -> Table:
        async def work(uow: AbstractUnitOfWork) -> Table:
            now = self.clock.now()
            table = await get_owned_table(
                uow, business_id=business_id, table_id=table_id, for_update=True
            )
            revised = table.revise(
                now=now, table_code=table_code, capacity=capacity, sector=sector
            )

            after, until = upcoming_window(now, self.reconciler.lock_horizon_minutes)
            claims = await uow.reservations.list_claims_for_table(
                table_id=table.id, after=after, until=until
            )
            if claims:
                raise InvalidStateError(
                    f'Table {table.table_code} cannot be edited, a reservation starts within '
                    f'{self.reconciler.lock_horizon_minutes} minutes or is seated on it'
                )

            if revised.table_code != table.table_code and await uow.tables.exists_by_code(
                business_id=business_id, table_code=revised.table_code
            ):
                raise ConflictError(f'Table code {revised.table_code} already exists')
            return await uow.tables.save(table=revised)

        updated = await run_in_transaction(self.uow_factory, work, operation='update_table')
        Logger.base.info(
            f'🪑 [TABLE] Updated {updated.table_code} (capacity {updated.capacity}, '
            f'sector {updated.sector})'
        )
        return updated
