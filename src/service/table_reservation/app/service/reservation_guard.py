"""
Reservation Guard - checks that must pass inside the writing transaction

Runs after the target tables are row-locked, so once it returns no concurrent
writer can slip a colliding reservation onto the same tables before commit.
"""

from datetime import timedelta
from typing import Iterable, Optional
from uuid import UUID

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import (
    DomainError,
    NotFoundError,
    ReservationConflictError,
)
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.overlap_detector import find_conflicts


def check_tables(
    *,
    business_id: UUID,
    requested_ids: Iterable[UUID],
    tables: Iterable[Table],
    party_size: int,
    forced: bool,
) -> None:
    """
    Raises:
        NotFoundError: a requested table does not exist
        DomainError: a table belongs to another business, or capacity < party_size (unless forced)
    """
    tables = list(tables)
    found = {t.id for t in tables}
    missing = sorted(set(requested_ids) - found)
    if missing:
        raise NotFoundError(f'Table not found: {", ".join(str(m) for m in missing)}')

    for table in tables:
        if table.business_id != business_id:
            raise DomainError(f'Table {table.table_code} does not belong to this business')

    total_capacity = sum(t.capacity for t in tables)
    if total_capacity < party_size and not forced:
        raise DomainError(
            f'Total capacity of the selected tables ({total_capacity}) '
            f'is lower than the party size ({party_size})'
        )


async def check_overlap(
    uow: AbstractUnitOfWork,
    *,
    reservation: Reservation,
    exclude_reservation_id: Optional[UUID] = None,
) -> dict[UUID, frozenset[UUID]]:
    """
    Per-table overlap check of `reservation` against every other active claim.

    Returns:
        The conflicts found; empty, or non-empty only when the reservation is forced

    Raises:
        ReservationConflictError: at least one table collides and the reservation is not forced
    """
    start = reservation.start_time - timedelta(minutes=settings.RESERVATION_BUFFER_BEFORE_MINUTES)
    end = reservation.end_time + timedelta(minutes=settings.RESERVATION_BUFFER_AFTER_MINUTES)

    candidates = await uow.reservations.list_active_overlapping(
        table_ids=reservation.table_ids, start=start, end=end
    )
    conflicts = find_conflicts(
        candidates,
        table_ids=reservation.table_ids,
        start=start,
        end=end,
        exclude_reservation_id=exclude_reservation_id,
    )
    if not conflicts:
        return conflicts

    if not reservation.forced:
        raise ReservationConflictError(
            f'{len(conflicts)} table(s) already have an overlapping reservation in this time range',
            conflicts=conflicts,
        )

    Logger.base.warning(
        f'⚠️ [OVERLAP] Forced reservation {reservation.id} overlaps on '
        f'{len(conflicts)} table(s): {sorted(str(t) for t in conflicts)}'
    )
    return conflicts
