from datetime import datetime
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.entity.reservation_entity import Reservation


class ListReservationsUseCase:
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
    async def execute(
        self,
        *,
        business_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Reservation]:
        """Reservations whose range intersects [start, end), newest start first"""
        if start and end and start >= end:
            raise DomainError('start must be before end')
        async with self.uow_factory() as uow:
            return await uow.reservations.list_by_business(
                business_id=business_id, start=start, end=end
            )
