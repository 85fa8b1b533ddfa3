"""
Overlap Detector - half-open interval intersection over active reservations

Two ranges [s1, e1) and [s2, e2) collide iff NOT (e1 <= s2 OR s1 >= e2), so a
reservation ending exactly when another starts never conflicts with it.
Only PENDING / IN_PROGRESS reservations are candidates.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Optional
from uuid import UUID


if TYPE_CHECKING:
    from src.service.table_reservation.domain.entity.reservation_entity import Reservation


def ranges_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    return not (end_a <= start_b or start_a >= end_b)


def find_overlapping(
    candidates: Iterable['Reservation'],
    *,
    table_id: UUID,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[UUID] = None,
) -> list['Reservation']:
    """
    Active reservations on `table_id` whose range intersects [start, end).

    `candidates` may be any superset (e.g. every reservation of the business);
    terminal reservations, other tables and the excluded reservation are filtered here.
    """
    return [
        reservation
        for reservation in candidates
        if reservation.id != exclude_reservation_id
        and reservation.status.is_active
        and table_id in reservation.table_ids
        and ranges_overlap(reservation.start_time, reservation.end_time, start, end)
    ]


def find_conflicts(
    candidates: Iterable['Reservation'],
    *,
    table_ids: Iterable[UUID],
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[UUID] = None,
) -> dict[UUID, frozenset[UUID]]:
    """
    Per-table overlap check for a multi-table request.

    Returns:
        table id -> colliding reservation ids, only for tables with at least one collision
    """
    candidates = list(candidates)
    conflicts: dict[UUID, frozenset[UUID]] = {}
    for table_id in sorted(set(table_ids)):
        overlapping = find_overlapping(
            candidates,
            table_id=table_id,
            start=start,
            end=end,
            exclude_reservation_id=exclude_reservation_id,
        )
        if overlapping:
            conflicts[table_id] = frozenset(r.id for r in overlapping)
    return conflicts
