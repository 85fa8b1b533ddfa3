from typing import Self
from uuid import UUID

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.table_status import TableStatus


@attrs.frozen
class TableOccupancyStats:
    total_tables: int
    free_tables: int
    reserved_tables: int
    occupied_tables: int
    occupancy_rate: float  # (reserved + occupied) / total * 100, 2 decimals

    @classmethod
    def from_tables(cls, tables: list[Table]) -> 'TableOccupancyStats':
        total = len(tables)
        free = sum(1 for t in tables if t.status == TableStatus.FREE)
        reserved = sum(1 for t in tables if t.status == TableStatus.RESERVED)
        occupied = sum(1 for t in tables if t.status == TableStatus.OCCUPIED)
        rate = round((reserved + occupied) / total * 100, 2) if total else 0.0
        return cls(
            total_tables=total,
            free_tables=free,
            reserved_tables=reserved,
            occupied_tables=occupied,
            occupancy_rate=rate,
        )


class GetTableOccupancyStatsUseCase:
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
    async def execute(self, *, business_id: UUID) -> TableOccupancyStats:
        async with self.uow_factory() as uow:
            tables = await uow.tables.list_by_business(business_id=business_id)
        return TableOccupancyStats.from_tables(tables)
