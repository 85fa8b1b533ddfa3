"""Application layer interfaces (Ports)"""

from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.table_reservation.app.interface.i_sale_closer import ISaleCloser
from src.service.table_reservation.app.interface.i_table_repo import ITableRepo

__all__ = ['IClock', 'IReservationRepo', 'ISaleCloser', 'ITableRepo']
