"""
Reservation analytics - pure aggregation over a business's reservation history

Five views:
- summary: counts per status and completion / no-show / cancellation rates
- table utilization: reservations, reserved hours and completion rate per table
- client reliability: top clients by volume with a weighted reliability score
- time slots: volume, no-shows and average party size per start hour
- capacity waste: tables whose completed reservations leave > 20% of seats unused

Rates are percentages rounded to 2 decimals.
"""

from collections import defaultdict
from datetime import tzinfo
from typing import Iterable, Optional
from uuid import UUID

import attrs

from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus


TOP_CLIENTS = 20
CAPACITY_WASTE_THRESHOLD = 20.0

# Reliability weights per reservation outcome
_COMPLETED_WEIGHT = 100.0
_NO_SHOW_PENALTY = 50.0
_CANCELLATION_PENALTY = 25.0


@attrs.frozen
class ReservationSummary:
    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
    no_show: int
    completion_rate: float
    no_show_rate: float
    cancellation_rate: float


@attrs.frozen
class TableUtilization:
    table_code: str
    total_reservations: int
    total_hours_reserved: int
    completed: int
    no_shows: int
    utilization_rate: float


@attrs.frozen
class ClientReliability:
    customer_name: str
    customer_contact: Optional[str]
    customer_document: Optional[str]
    total_reservations: int
    completed: int
    no_shows: int
    cancellations: int
    reliability_score: float


@attrs.frozen
class TimeSlotAnalysis:
    hour_of_day: int
    total_reservations: int
    no_shows: int
    no_show_rate: float
    avg_party_size: float


@attrs.frozen
class CapacityWaste:
    table_code: str
    table_capacity: int
    reservation_count: int
    avg_party_size: float
    waste_percentage: float


@attrs.frozen
class ReservationAnalytics:
    summary: ReservationSummary
    table_utilization: list[TableUtilization]
    client_reliability: list[ClientReliability]
    time_slots: list[TimeSlotAnalysis]
    capacity_waste: list[CapacityWaste]


def _rate(part: float, total: float) -> float:
    return round(part * 100 / total, 2) if total else 0.0


def _count(reservations: Iterable[Reservation], status: ReservationStatus) -> int:
    return sum(1 for r in reservations if r.status == status)


def summarize(reservations: list[Reservation]) -> ReservationSummary:
    total = len(reservations)
    completed = _count(reservations, ReservationStatus.COMPLETED)
    cancelled = _count(reservations, ReservationStatus.CANCELLED)
    no_show = _count(reservations, ReservationStatus.NO_SHOW)
    return ReservationSummary(
        total=total,
        pending=_count(reservations, ReservationStatus.PENDING),
        in_progress=_count(reservations, ReservationStatus.IN_PROGRESS),
        completed=completed,
        cancelled=cancelled,
        no_show=no_show,
        completion_rate=_rate(completed, total),
        no_show_rate=_rate(no_show, total),
        cancellation_rate=_rate(cancelled, total),
    )


def table_utilization(
    reservations: list[Reservation], tables: list[Table]
) -> list[TableUtilization]:
    by_table: dict[str, list[Reservation]] = defaultdict(list)
    codes = {t.id: t.table_code for t in tables}
    for reservation in reservations:
        for table_id in reservation.table_ids:
            if table_id in codes:
                by_table[codes[table_id]].append(reservation)

    rows = []
    for code, claimed in by_table.items():
        minutes = sum((r.end_time - r.start_time).total_seconds() // 60 for r in claimed)
        completed = _count(claimed, ReservationStatus.COMPLETED)
        rows.append(
            TableUtilization(
                table_code=code,
                total_reservations=len(claimed),
                total_hours_reserved=int(minutes // 60),
                completed=completed,
                no_shows=_count(claimed, ReservationStatus.NO_SHOW),
                utilization_rate=_rate(completed, len(claimed)),
            )
        )
    return sorted(rows, key=lambda row: (-row.total_reservations, row.table_code))


def client_reliability(reservations: list[Reservation]) -> list[ClientReliability]:
    """Clients are keyed by document, or by name when no document was given"""
    by_client: dict[str, list[Reservation]] = defaultdict(list)
    for reservation in reservations:
        key = reservation.customer_document or f'name:{reservation.customer_name.casefold()}'
        by_client[key].append(reservation)

    rows = []
    for history in by_client.values():
        # Most recent reservation wins for name and contact
        latest = max(history, key=lambda r: (r.created_at or r.start_time, r.start_time))
        completed = _count(history, ReservationStatus.COMPLETED)
        no_shows = _count(history, ReservationStatus.NO_SHOW)
        cancellations = _count(history, ReservationStatus.CANCELLED)
        score = (
            completed * _COMPLETED_WEIGHT
            - no_shows * _NO_SHOW_PENALTY
            - cancellations * _CANCELLATION_PENALTY
        ) / len(history)
        rows.append(
            ClientReliability(
                customer_name=latest.customer_name,
                customer_contact=latest.customer_contact,
                customer_document=latest.customer_document,
                total_reservations=len(history),
                completed=completed,
                no_shows=no_shows,
                cancellations=cancellations,
                reliability_score=round(score, 2),
            )
        )
    rows.sort(key=lambda row: (-row.total_reservations, row.customer_name))
    return rows[:TOP_CLIENTS]


def time_slots(reservations: list[Reservation], tz: tzinfo) -> list[TimeSlotAnalysis]:
    by_hour: dict[int, list[Reservation]] = defaultdict(list)
    for reservation in reservations:
        by_hour[reservation.start_time.astimezone(tz).hour].append(reservation)

    rows = []
    for hour in sorted(by_hour):
        slot = by_hour[hour]
        no_shows = _count(slot, ReservationStatus.NO_SHOW)
        rows.append(
            TimeSlotAnalysis(
                hour_of_day=hour,
                total_reservations=len(slot),
                no_shows=no_shows,
                no_show_rate=_rate(no_shows, len(slot)),
                avg_party_size=round(sum(r.party_size for r in slot) / len(slot), 2),
            )
        )
    return rows


def capacity_waste(reservations: list[Reservation], tables: list[Table]) -> list[CapacityWaste]:
    """
    Seats left empty by COMPLETED reservations, per table

    A multi-table reservation counts its whole party against each of its tables.
    """
    by_id = {t.id: t for t in tables}
    party_sizes: dict[UUID, list[int]] = defaultdict(list)
    for reservation in reservations:
        if reservation.status != ReservationStatus.COMPLETED:
            continue
        for table_id in reservation.table_ids:
            if table_id in by_id:
                party_sizes[table_id].append(reservation.party_size)

    rows = []
    for table_id, sizes in party_sizes.items():
        table = by_id[table_id]
        avg_party = sum(sizes) / len(sizes)
        waste = _rate(table.capacity - avg_party, table.capacity)
        if waste <= CAPACITY_WASTE_THRESHOLD:
            continue
        rows.append(
            CapacityWaste(
                table_code=table.table_code,
                table_capacity=table.capacity,
                reservation_count=len(sizes),
                avg_party_size=round(avg_party, 2),
                waste_percentage=waste,
            )
        )
    return sorted(rows, key=lambda row: (-row.waste_percentage, row.table_code))


def build_reservation_analytics(
    reservations: list[Reservation], tables: list[Table], tz: tzinfo
) -> ReservationAnalytics:
    return ReservationAnalytics(
        summary=summarize(reservations),
        table_utilization=table_utilization(reservations, tables),
        client_reliability=client_reliability(reservations),
        time_slots=time_slots(reservations, tz),
        capacity_waste=capacity_waste(reservations, tables),
    )
