from datetime import date, datetime, time, timedelta
from typing import Optional, Self
from uuid import UUID
from zoneinfo import ZoneInfo

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.entity.table_entity import Table


@attrs.frozen
class TableSchedule:
    table: Table
    reservations: list[Reservation]  # ordered by start


class GetTableScheduleUseCase:
    """
    Day view of every table of a business and the reservations touching that day.

    A reservation appears when its range intersects [day 00:00, next day 00:00)
    in the business timezone, so one that started the evening before or ends after
    midnight is shown on both days. All statuses are included.
    """

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

    def day_range(self, day: date) -> tuple[datetime, datetime]:
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        return start, datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)

    @Logger.io
    async def execute(self, *, business_id: UUID, day: date) -> list[TableSchedule]:
        start, end = self.day_range(day)
        async with self.uow_factory() as uow:
            tables = await uow.tables.list_by_business(business_id=business_id)
            reservations = await uow.reservations.list_by_business(
                business_id=business_id, start=start, end=end
            )

        by_start = sorted(reservations, key=lambda r: r.start_time)
        return [
            TableSchedule(
                table=table,
                reservations=[r for r in by_start if table.id in r.table_ids],
            )
            for table in tables
        ]
