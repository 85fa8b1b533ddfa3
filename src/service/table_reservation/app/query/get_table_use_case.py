from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.service.ownership import get_owned_table
from src.service.table_reservation.domain.entity.table_entity import Table


class GetTableUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, business_id: UUID, table_id: UUID) -> Table:
        async with self.uow_factory() as uow:
            return await get_owned_table(uow, business_id=business_id, table_id=table_id)
