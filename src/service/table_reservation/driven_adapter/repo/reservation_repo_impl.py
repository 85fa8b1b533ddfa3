"""
Reservation Repository Implementation (SQLAlchemy, PostgreSQL)

The table set of a reservation lives in reservation_table and is loaded with
one extra query per batch; no ORM relationships are involved.
"""

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, and_, delete, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus
from src.service.table_reservation.driven_adapter.model.reservation_model import ReservationModel
from src.service.table_reservation.driven_adapter.model.reservation_table_model import (
    ReservationTableModel,
)


_ACTIVE_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.IN_PROGRESS.value)


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _model_to_entity(model: ReservationModel, table_ids: Iterable[UUID]) -> Reservation:
        return Reservation(
            id=model.id,
            business_id=model.business_id,
            table_ids=table_ids,
            customer_name=model.customer_name,
            customer_contact=model.customer_contact,
            customer_document=model.customer_document,
            start_time=model.start_time,
            end_time=model.end_time,
            party_size=model.party_size,
            status=ReservationStatus(model.status),
            forced=model.forced,
            notes=model.notes,
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _entity_values(reservation: Reservation) -> dict:
        return {
            'business_id': reservation.business_id,
            'customer_name': reservation.customer_name,
            'customer_contact': reservation.customer_contact,
            'customer_document': reservation.customer_document,
            'start_time': reservation.start_time,
            'end_time': reservation.end_time,
            'party_size': reservation.party_size,
            'status': reservation.status.value,
            'forced': reservation.forced,
            'notes': reservation.notes,
            'created_by': reservation.created_by,
            'updated_at': reservation.updated_at,
        }

    async def _load_table_ids(self, reservation_ids: Sequence[UUID]) -> dict[UUID, set[UUID]]:
        if not reservation_ids:
            return {}
        result = await self.session.execute(
            select(ReservationTableModel.reservation_id, ReservationTableModel.table_id).where(
                ReservationTableModel.reservation_id.in_(reservation_ids)
            )
        )
        table_ids: dict[UUID, set[UUID]] = defaultdict(set)
        for reservation_id, table_id in result.all():
            table_ids[reservation_id].add(table_id)
        return table_ids

    async def _fetch(self, stmt: Select) -> list[Reservation]:
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        models = list(result.scalars().unique().all())
        table_ids = await self._load_table_ids([m.id for m in models])
        return [self._model_to_entity(m, table_ids.get(m.id, ())) for m in models]

    async def _fetch_one(self, stmt: Select) -> Reservation | None:
        reservations = await self._fetch(stmt)
        return reservations[0] if reservations else None

    @staticmethod
    def _on_tables(table_ids: Iterable[UUID]) -> Select:
        return (
            select(ReservationModel)
            .join(
                ReservationTableModel,
                ReservationTableModel.reservation_id == ReservationModel.id,
            )
            .where(ReservationTableModel.table_id.in_(list(table_ids)))
            .distinct()
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @Logger.io
    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        return await self._fetch_one(
            select(ReservationModel).where(ReservationModel.id == reservation_id)
        )

    @Logger.io
    async def get_for_update(self, *, reservation_id: UUID) -> Reservation | None:
        return await self._fetch_one(
            select(ReservationModel).where(ReservationModel.id == reservation_id).with_for_update()
        )

    @Logger.io
    async def list_active_overlapping(
        self, *, table_ids: Iterable[UUID], start: datetime, end: datetime
    ) -> list[Reservation]:
        table_ids = list(table_ids)
        if not table_ids:
            return []
        return await self._fetch(
            self._on_tables(table_ids).where(
                ReservationModel.status.in_(_ACTIVE_STATUSES),
                # Half-open intersection, back-to-back ranges excluded
                ReservationModel.start_time < end,
                ReservationModel.end_time > start,
            )
        )

    @Logger.io
    async def list_upcoming(self, *, after: datetime, until: datetime) -> list[Reservation]:
        return await self._fetch(
            select(ReservationModel)
            .where(
                ReservationModel.status == ReservationStatus.PENDING.value,
                ReservationModel.start_time > after,
                ReservationModel.start_time <= until,
            )
            .order_by(ReservationModel.start_time)
        )

    @Logger.io
    async def list_in_progress(self) -> list[Reservation]:
        return await self._fetch(
            select(ReservationModel).where(
                ReservationModel.status == ReservationStatus.IN_PROGRESS.value
            )
        )

    @Logger.io
    async def list_claims_for_table(
        self,
        *,
        table_id: UUID,
        after: datetime,
        until: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        stmt = self._on_tables([table_id]).where(
            or_(
                ReservationModel.status == ReservationStatus.IN_PROGRESS.value,
                and_(
                    ReservationModel.status == ReservationStatus.PENDING.value,
                    ReservationModel.start_time > after,
                    ReservationModel.start_time <= until,
                ),
            )
        )
        if exclude_reservation_id is not None:
            stmt = stmt.where(ReservationModel.id != exclude_reservation_id)
        return await self._fetch(stmt)

    @Logger.io
    async def list_pending_for_table(self, *, table_id: UUID) -> list[Reservation]:
        return await self._fetch(
            self._on_tables([table_id]).where(
                ReservationModel.status == ReservationStatus.PENDING.value
            )
        )

    @Logger.io
    async def list_expired_pending(self, *, now: datetime) -> list[Reservation]:
        return await self._fetch(
            select(ReservationModel)
            .where(
                ReservationModel.status == ReservationStatus.PENDING.value,
                ReservationModel.end_time < now,
            )
            .order_by(ReservationModel.end_time)
        )

    @Logger.io
    async def list_by_business(
        self,
        *,
        business_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Reservation]:
        stmt = select(ReservationModel).where(ReservationModel.business_id == business_id)
        if start is not None:
            stmt = stmt.where(ReservationModel.end_time > start)
        if end is not None:
            stmt = stmt.where(ReservationModel.start_time < end)
        return await self._fetch(stmt.order_by(ReservationModel.start_time.desc()))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @Logger.io
    async def add(self, *, reservation: Reservation) -> Reservation:
        await self.session.execute(
            insert(ReservationModel).values(
                id=reservation.id,
                created_at=reservation.created_at,
                **self._entity_values(reservation),
            )
        )
        await self._replace_tables(reservation.id, reservation.table_ids, previous=set())
        return reservation

    @Logger.io
    async def save(self, *, reservation: Reservation) -> Reservation:
        await self.session.execute(
            update(ReservationModel)
            .where(ReservationModel.id == reservation.id)
            .values(**self._entity_values(reservation))
        )
        previous = (await self._load_table_ids([reservation.id])).get(reservation.id, set())
        await self._replace_tables(reservation.id, reservation.table_ids, previous=previous)
        return reservation

    async def _replace_tables(
        self, reservation_id: UUID, table_ids: Iterable[UUID], *, previous: set[UUID]
    ) -> None:
        wanted = set(table_ids)
        removed = previous - wanted
        added = wanted - previous
        if removed:
            await self.session.execute(
                delete(ReservationTableModel).where(
                    ReservationTableModel.reservation_id == reservation_id,
                    ReservationTableModel.table_id.in_(removed),
                )
            )
        if added:
            await self.session.execute(
                insert(ReservationTableModel),
                [{'reservation_id': reservation_id, 'table_id': t} for t in sorted(added)],
            )
