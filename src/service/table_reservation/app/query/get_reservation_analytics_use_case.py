from typing import Optional, Self
from uuid import UUID
from zoneinfo import ZoneInfo

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.reservation_analytics import (
    ReservationAnalytics,
    build_reservation_analytics,
)


class GetReservationAnalyticsUseCase:
    """Aggregates the whole reservation history of a business; hours are in the business timezone"""

    def __init__(self, *, uow_factory: UnitOfWorkFactory, timezone: Optional[str] = None) -> None:
        self.uow_factory = uow_factory
        self.tz = ZoneInfo(timezone or settings.BUSINESS_TIMEZONE)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, business_id: UUID) -> ReservationAnalytics:
        async with self.uow_factory() as uow:
            tables = await uow.tables.list_by_business(business_id=business_id)
            reservations = await uow.reservations.list_by_business(business_id=business_id)

        analytics = build_reservation_analytics(reservations, tables, self.tz)
        Logger.base.info(
            f'📊 [ANALYTICS] business={business_id} reservations={analytics.summary.total}'
        )
        return analytics
