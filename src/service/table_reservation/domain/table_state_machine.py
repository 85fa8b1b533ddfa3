"""
Table State Machine - pure transitions over a table snapshot

Every function takes the current Table plus inputs and returns a TableTransition:
the resulting snapshot, whether it changed, and the side effects the caller must
execute BEFORE persisting it. Reaching a state the table is already in is a
successful no-op, never an error, so the reconciliation sweep and ad hoc triggers
may apply the same transition any number of times.

    FREE ──lock──> RESERVED ──(seat)──> OCCUPIED
     ^                │                    │
     └──release───────┘                    │
     └───────────── settle ────────────────┘
    OCCUPIED ──lock (close open sales first)──> RESERVED
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

import attrs

from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.table_status import TableStatus


@attrs.frozen
class CloseOpenSales:
    """Open sale(s) on the table must be closed before it is handed to a reservation"""

    table_id: UUID


@attrs.frozen
class TableTransition:
    table: Table
    changed: bool
    side_effects: Sequence[CloseOpenSales] = ()


def _unchanged(table: Table) -> TableTransition:
    return TableTransition(table=table, changed=False)


def set_status(table: Table, target: TableStatus, *, now: datetime) -> TableTransition:
    """Manual assignment - any state to any state, no side effects"""
    if table.status == target:
        return _unchanged(table)
    return TableTransition(table=table.with_status(target, now=now), changed=True)


def lock_for_reservation(table: Table, *, now: datetime) -> TableTransition:
    """
    Hold a table for an upcoming reservation.

    RESERVED  -> no-op (held by this or another claim)
    FREE      -> RESERVED
    OCCUPIED  -> RESERVED, after closing the table's open sales
    """
    if table.status == TableStatus.RESERVED:
        return _unchanged(table)

    side_effects: tuple[CloseOpenSales, ...] = ()
    if table.status == TableStatus.OCCUPIED:
        side_effects = (CloseOpenSales(table_id=table.id),)

    return TableTransition(
        table=table.with_status(TableStatus.RESERVED, now=now),
        changed=True,
        side_effects=side_effects,
    )


def release(table: Table, *, is_claimed: bool, now: datetime) -> TableTransition:
    """
    Drop a stale hold: RESERVED -> FREE iff no upcoming or in-progress reservation claims the table.

    FREE and OCCUPIED tables are never touched by a release.
    """
    if table.status != TableStatus.RESERVED or is_claimed:
        return _unchanged(table)
    return TableTransition(table=table.with_status(TableStatus.FREE, now=now), changed=True)


def occupy(table: Table, *, now: datetime) -> TableTransition:
    """Guests of a reservation are seated"""
    return set_status(table, TableStatus.OCCUPIED, now=now)


def settle(
    table: Table,
    *,
    has_in_progress_claim: bool,
    has_upcoming_claim: bool,
    now: datetime,
) -> TableTransition:
    """
    Resolve a table after the reservation seated on it finished.

    Another in-progress claim keeps the table OCCUPIED, another upcoming claim
    hands it over to RESERVED (through lock_for_reservation), otherwise it is FREE.
    """
    if has_in_progress_claim:
        return occupy(table, now=now)
    if has_upcoming_claim:
        return lock_for_reservation(table, now=now)
    return set_status(table, TableStatus.FREE, now=now)
