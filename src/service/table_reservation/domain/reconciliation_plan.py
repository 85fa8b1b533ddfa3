"""
Reconciliation planning - which tables to lock and which to release

Pure set computations over a snapshot; the engine executes the plan one
entity transaction at a time and re-checks each decision under row locks.
"""

from typing import Iterable
from uuid import UUID

import attrs

from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus


@attrs.frozen
class ReconciliationPlan:
    # Steps 1-3: upcoming reservations, locked in order of start time
    reservations_to_lock: tuple[UUID, ...]
    # T_lock
    tables_to_hold: frozenset[UUID]
    # Step 4: RESERVED tables outside every claim
    tables_to_release: frozenset[UUID]


def tables_claimed_by(reservations: Iterable[Reservation]) -> frozenset[UUID]:
    return frozenset(table_id for r in reservations for table_id in r.table_ids)


def plan_reconciliation(
    *,
    upcoming: Iterable[Reservation],
    in_progress: Iterable[Reservation] = (),
    reserved_table_ids: Iterable[UUID] = (),
) -> ReconciliationPlan:
    """
    Args:
        upcoming: PENDING reservations starting within the lock horizon
        in_progress: IN_PROGRESS reservations, their tables count as claimed too
        reserved_table_ids: tables currently RESERVED (empty for the cheap lock-only sweep)
    """
    upcoming = sorted(
        (r for r in upcoming if r.status == ReservationStatus.PENDING),
        key=lambda r: (r.start_time, r.id),
    )
    tables_to_hold = tables_claimed_by(upcoming)
    claimed = tables_to_hold | tables_claimed_by(
        r for r in in_progress if r.status == ReservationStatus.IN_PROGRESS
    )
    return ReconciliationPlan(
        reservations_to_lock=tuple(r.id for r in upcoming),
        tables_to_hold=tables_to_hold,
        tables_to_release=frozenset(reserved_table_ids) - claimed,
    )
