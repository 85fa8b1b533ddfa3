from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_sale_closer import ISaleCloser
from src.service.table_reservation.driven_adapter.model.sale_model import SaleItemModel, SaleModel


class SaleCloserImpl(ISaleCloser):
    """
    Closes open sales in the caller's transaction

    A sale is open while occurred_at IS NULL. Closing stamps occurred_at and
    recomputes total_amount from its items.
    """

    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def close_open_sales_for_table(self, *, table_id: UUID, closed_at: datetime) -> int:
        items_total = (
            select(func.coalesce(func.sum(SaleItemModel.line_total), 0))
            .where(SaleItemModel.sale_id == SaleModel.id)
            .scalar_subquery()
        )
        result = await self.session.execute(
            update(SaleModel)
            .where(SaleModel.table_id == table_id, SaleModel.occurred_at.is_(None))
            .values(occurred_at=closed_at, total_amount=items_total)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
