from uuid import UUID

from sqlalchemy import ForeignKey
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class ReservationTableModel(Base):
    """Explicit join collection: the set of table ids claimed by a reservation"""

    __tablename__ = 'reservation_table'

    reservation_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey('reservation.id', ondelete='CASCADE'),
        primary_key=True,
    )
    table_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey('restaurant_table.id'),
        primary_key=True,
        index=True,
    )
