from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
import uuid_utils

from src.platform.config.di import Container
from src.platform.database.transaction import run_in_transaction
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.domain.entity.table_entity import Table


class CreateTableUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory, clock: IClock) -> None:
        self.uow_factory = uow_factory
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        clock: IClock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(uow_factory=uow_factory, clock=clock)

    @Logger.io
    async def execute(
        self,
        *,
        business_id: UUID,
        table_code: str,
        capacity: int,
        sector: Optional[str] = None,
    ) -> Table:
        table = Table.create(
            id=UUID(str(uuid_utils.uuid7())),
            business_id=business_id,
            table_code=table_code,
            capacity=capacity,
            sector=sector,
            now=self.clock.now(),
        )

        async def work(uow: AbstractUnitOfWork) -> Table:
            if await uow.tables.exists_by_code(
                business_id=business_id, table_code=table.table_code
            ):
                raise ConflictError(f'Table code {table.table_code} already exists')
            return await uow.tables.add(table=table)

        created = await run_in_transaction(self.uow_factory, work, operation='create_table')
        Logger.base.info(f'🪑 [TABLE] Created {created.table_code} (capacity {created.capacity})')
        return created
