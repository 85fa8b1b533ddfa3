from uuid import UUID

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.entity.table_entity import Table


async def get_owned_reservation(
    uow: AbstractUnitOfWork,
    *,
    business_id: UUID,
    reservation_id: UUID,
    for_update: bool = False,
) -> Reservation:
    """A reservation of another business is reported as not found"""
    if for_update:
        reservation = await uow.reservations.get_for_update(reservation_id=reservation_id)
    else:
        reservation = await uow.reservations.get_by_id(reservation_id=reservation_id)
    if reservation is None or reservation.business_id != business_id:
        raise NotFoundError('Reservation not found')
    return reservation


async def get_owned_table(
    uow: AbstractUnitOfWork,
    *,
    business_id: UUID,
    table_id: UUID,
    for_update: bool = False,
) -> Table:
    if for_update:
        table = await uow.tables.get_for_update(table_id=table_id)
    else:
        table = await uow.tables.get_by_id(table_id=table_id)
    if table is None or table.business_id != business_id:
        raise NotFoundError('Table not found')
    return table
