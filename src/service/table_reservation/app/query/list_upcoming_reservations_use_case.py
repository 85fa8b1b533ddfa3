from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.domain.entity.reservation_entity import Reservation


class ListUpcomingReservationsUseCase:
    """Reservations starting now or later, in any status, soonest first"""

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
    async def execute(self, *, business_id: UUID) -> list[Reservation]:
        now = self.clock.now()
        async with self.uow_factory() as uow:
            reservations = await uow.reservations.list_by_business(business_id=business_id)
        return sorted(
            (r for r in reservations if r.start_time >= now), key=lambda r: r.start_time
        )
