from datetime import datetime, timedelta
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from src.service.table_reservation.domain.entity.reservation_entity import Reservation


DEFAULT_LOCK_HORIZON_MINUTES = 20


def upcoming_window(
    now: datetime, horizon_minutes: int = DEFAULT_LOCK_HORIZON_MINUTES
) -> tuple[datetime, datetime]:
    """(now, now + horizon] - the start times that make a reservation upcoming"""
    return now, now + timedelta(minutes=horizon_minutes)


def is_start_upcoming(
    start_time: datetime, now: datetime, horizon_minutes: int = DEFAULT_LOCK_HORIZON_MINUTES
) -> bool:
    lower, upper = upcoming_window(now, horizon_minutes)
    return lower < start_time <= upper


def is_upcoming(
    reservation: 'Reservation',
    now: datetime,
    horizon_minutes: int = DEFAULT_LOCK_HORIZON_MINUTES,
) -> bool:
    """
    True iff `now < start <= now + horizon`.

    A reservation whose start already passed is never upcoming, it is left to
    start / expiry instead. Status is not considered here; callers only ask about
    PENDING reservations.
    """
    return is_start_upcoming(reservation.start_time, now, horizon_minutes)
