"""
Table Repository Implementation (SQLAlchemy, PostgreSQL)

Row locks use SELECT ... FOR UPDATE and live until the unit of work ends.
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_table_repo import ITableRepo
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.table_status import TableStatus
from src.service.table_reservation.driven_adapter.model.table_model import TableModel


class TableRepoImpl(ITableRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _model_to_entity(model: TableModel) -> Table:
        return Table(
            id=model.id,
            business_id=model.business_id,
            table_code=model.table_code,
            capacity=model.capacity,
            sector=model.sector,
            status=TableStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @Logger.io
    async def get_by_id(self, *, table_id: UUID) -> Table | None:
        result = await self.session.execute(select(TableModel).where(TableModel.id == table_id))
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    @Logger.io
    async def get_for_update(self, *, table_id: UUID) -> Table | None:
        result = await self.session.execute(
            select(TableModel)
            .where(TableModel.id == table_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    @Logger.io
    async def get_many_for_update(self, *, table_ids: Iterable[UUID]) -> list[Table]:
        ids = sorted(set(table_ids))
        if not ids:
            return []
        result = await self.session.execute(
            select(TableModel)
            .where(TableModel.id.in_(ids))
            .order_by(TableModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return [self._model_to_entity(m) for m in result.scalars().all()]

    @Logger.io
    async def list_by_business(self, *, business_id: UUID) -> list[Table]:
        result = await self.session.execute(
            select(TableModel)
            .where(TableModel.business_id == business_id)
            .order_by(TableModel.table_code)
        )
        return [self._model_to_entity(m) for m in result.scalars().all()]

    @Logger.io
    async def list_ids_by_status(self, *, status: TableStatus) -> list[UUID]:
        result = await self.session.execute(
            select(TableModel.id).where(TableModel.status == status.value).order_by(TableModel.id)
        )
        return list(result.scalars().all())

    @Logger.io
    async def exists_by_code(self, *, business_id: UUID, table_code: str) -> bool:
        result = await self.session.execute(
            select(TableModel.id).where(
                TableModel.business_id == business_id, TableModel.table_code == table_code
            )
        )
        return result.scalar_one_or_none() is not None

    @Logger.io
    async def add(self, *, table: Table) -> Table:
        model = TableModel(
            id=table.id,
            business_id=table.business_id,
            table_code=table.table_code,
            capacity=table.capacity,
            sector=table.sector,
            status=table.status.value,
            created_at=table.created_at,
            updated_at=table.updated_at,
        )
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost the race against a concurrent insert of the same code
            raise ConflictError(f'Table code {table.table_code} already exists') from e
        return table

    @Logger.io
    async def save(self, *, table: Table) -> Table:
        try:
            await self.session.execute(
                update(TableModel)
                .where(TableModel.id == table.id)
                .values(
                    table_code=table.table_code,
                    capacity=table.capacity,
                    sector=table.sector,
                    status=table.status.value,
                    updated_at=table.updated_at,
                )
            )
        except IntegrityError as e:
            raise ConflictError(f'Table code {table.table_code} already exists') from e
        return table
