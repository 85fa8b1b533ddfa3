from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.service.ownership import get_owned_reservation
from src.service.table_reservation.domain.entity.reservation_entity import Reservation


class GetReservationUseCase:
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
    async def execute(self, *, business_id: UUID, reservation_id: UUID) -> Reservation:
        async with self.uow_factory() as uow:
            return await get_owned_reservation(
                uow, business_id=business_id, reservation_id=reservation_id
            )
