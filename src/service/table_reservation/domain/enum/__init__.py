"""Table Reservation Domain Enums"""

from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus
from src.service.table_reservation.domain.enum.table_status import TableStatus

__all__ = ['ReservationStatus', 'TableStatus']
