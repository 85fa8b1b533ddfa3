"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.table_reservation.driven_adapter.model.reservation_model import ReservationModel
from src.service.table_reservation.driven_adapter.model.reservation_table_model import (
    ReservationTableModel,
)
from src.service.table_reservation.driven_adapter.model.sale_model import SaleItemModel, SaleModel
from src.service.table_reservation.driven_adapter.model.table_model import TableModel

__all__ = [
    'ReservationModel',
    'ReservationTableModel',
    'SaleItemModel',
    'SaleModel',
    'TableModel',
]
