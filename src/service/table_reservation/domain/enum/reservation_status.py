from enum import StrEnum


class ReservationStatus(StrEnum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'

    @property
    def is_active(self) -> bool:
        """Active reservations hold their tables and block overlapping claims"""
        return self in (ReservationStatus.PENDING, ReservationStatus.IN_PROGRESS)
