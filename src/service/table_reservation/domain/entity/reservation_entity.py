from datetime import datetime, timedelta
from typing import Iterable, Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidStateError
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus


def _to_table_ids(value: Iterable[UUID]) -> frozenset[UUID]:
    return frozenset(value)


@attrs.define
class Reservation:
    id: UUID
    business_id: UUID
    table_ids: frozenset[UUID] = attrs.field(converter=_to_table_ids)
    customer_name: str
    start_time: datetime = attrs.field(kw_only=True)
    end_time: datetime = attrs.field(kw_only=True)
    party_size: int = attrs.field(kw_only=True)
    status: ReservationStatus = attrs.field(default=ReservationStatus.PENDING, kw_only=True)
    forced: bool = attrs.field(default=False, kw_only=True)
    customer_contact: Optional[str] = attrs.field(default=None, kw_only=True)
    customer_document: Optional[str] = attrs.field(default=None, kw_only=True)
    notes: Optional[str] = attrs.field(default=None, kw_only=True)
    created_by: Optional[UUID] = attrs.field(default=None, kw_only=True)
    created_at: Optional[datetime] = attrs.field(default=None, kw_only=True)
    updated_at: Optional[datetime] = attrs.field(default=None, kw_only=True)

    @staticmethod
    def validate_schedule(
        *, start_time: datetime, end_time: datetime, now: datetime, max_hours: int
    ) -> None:
        """
        Raises:
            DomainError: naive datetimes, start in the past, start not before end,
                or longer than max_hours
        """
        if start_time.tzinfo is None or end_time.tzinfo is None:
            raise DomainError('Reservation start and end must include a timezone offset')
        if start_time < now:
            raise DomainError('Reservation start cannot be in the past')
        if start_time >= end_time:
            raise DomainError('Reservation start must be before its end')
        if end_time - start_time > timedelta(hours=max_hours):
            raise DomainError(f'Reservation cannot last more than {max_hours} hours')

    @staticmethod
    def validate_party(*, table_ids: frozenset[UUID], party_size: int) -> None:
        if party_size < 1:
            raise DomainError('party_size must be at least 1')
        if not table_ids:
            raise DomainError('At least one table is required')

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        business_id: UUID,
        table_ids: Iterable[UUID],
        customer_name: str,
        start_time: datetime,
        end_time: datetime,
        party_size: int,
        now: datetime,
        max_hours: int,
        forced: bool = False,
        customer_contact: Optional[str] = None,
        customer_document: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[UUID] = None,
    ) -> 'Reservation':
        table_ids = frozenset(table_ids)
        if not customer_name or not customer_name.strip():
            raise DomainError('customer_name is required')
        cls.validate_party(table_ids=table_ids, party_size=party_size)
        cls.validate_schedule(
            start_time=start_time, end_time=end_time, now=now, max_hours=max_hours
        )

        return cls(
            id=id,
            business_id=business_id,
            table_ids=table_ids,
            customer_name=customer_name.strip(),
            customer_contact=customer_contact,
            customer_document=customer_document,
            start_time=start_time,
            end_time=end_time,
            party_size=party_size,
            status=ReservationStatus.PENDING,
            forced=forced,
            notes=notes,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def is_expired(self, now: datetime) -> bool:
        """PENDING and its end already passed - eligible for the automatic NO_SHOW sweep"""
        return self.status == ReservationStatus.PENDING and self.end_time < now

    def _require_status(self, expected: ReservationStatus, action: str) -> None:
        if self.status != expected:
            raise InvalidStateError(
                f'Cannot {action} a reservation in status {self.status.value}, '
                f'it must be {expected.value}'
            )

    @Logger.io
    def revise(
        self,
        *,
        now: datetime,
        max_hours: int,
        table_ids: Optional[Iterable[UUID]] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        party_size: Optional[int] = None,
        customer_name: Optional[str] = None,
        customer_contact: Optional[str] = None,
        customer_document: Optional[str] = None,
        notes: Optional[str] = None,
        forced: Optional[bool] = None,
    ) -> 'Reservation':
        """
        Apply a partial update to a PENDING reservation.

        Fields left as None keep their value. When tables, time range or party size
        change, the whole resulting reservation is validated again (not only the
        changed field); overlap and capacity are checked by the caller.

        Raises:
            InvalidStateError: reservation is not PENDING
            DomainError: resulting schedule or party is invalid
        """
        self._require_status(ReservationStatus.PENDING, 'update')

        revised = attrs.evolve(
            self,
            table_ids=self.table_ids if table_ids is None else frozenset(table_ids),
            start_time=self.start_time if start_time is None else start_time,
            end_time=self.end_time if end_time is None else end_time,
            party_size=self.party_size if party_size is None else party_size,
            customer_name=self.customer_name if customer_name is None else customer_name.strip(),
            customer_contact=self.customer_contact if customer_contact is None else customer_contact,
            customer_document=(
                self.customer_document if customer_document is None else customer_document
            ),
            notes=self.notes if notes is None else notes,
            forced=self.forced if forced is None else forced,
            updated_at=now,
        )

        if not revised.customer_name:
            raise DomainError('customer_name is required')
        if self.schedule_changed(revised):
            revised.validate_party(table_ids=revised.table_ids, party_size=revised.party_size)
            if (revised.start_time, revised.end_time) != (self.start_time, self.end_time):
                revised.validate_schedule(
                    start_time=revised.start_time,
                    end_time=revised.end_time,
                    now=now,
                    max_hours=max_hours,
                )
        return revised

    def schedule_changed(self, other: 'Reservation') -> bool:
        """True when tables, time range or party size differ - the fields that need re-validation"""
        return (
            self.table_ids != other.table_ids
            or self.start_time != other.start_time
            or self.end_time != other.end_time
            or self.party_size != other.party_size
        )

    @Logger.io
    def start(self, *, now: datetime, early_minutes: int) -> 'Reservation':
        """
        Seat the customer: PENDING -> IN_PROGRESS.

        Allowed from `early_minutes` before start until the reservation's end.
        """
        self._require_status(ReservationStatus.PENDING, 'start')
        allowed_from = self.start_time - timedelta(minutes=early_minutes)
        if now < allowed_from:
            raise InvalidStateError(
                f'Reservation can only be started from {allowed_from.isoformat()}'
            )
        if now > self.end_time:
            raise InvalidStateError(
                f'Reservation already ended at {self.end_time.isoformat()} and cannot be started'
            )
        return attrs.evolve(self, status=ReservationStatus.IN_PROGRESS, updated_at=now)

    @Logger.io
    def complete(self, *, now: datetime) -> 'Reservation':
        self._require_status(ReservationStatus.IN_PROGRESS, 'complete')
        return attrs.evolve(self, status=ReservationStatus.COMPLETED, updated_at=now)

    @Logger.io
    def cancel(self, *, now: datetime) -> 'Reservation':
        self._require_status(ReservationStatus.PENDING, 'cancel')
        if now > self.end_time:
            raise InvalidStateError(
                f'Reservation already ended at {self.end_time.isoformat()} and cannot be cancelled'
            )
        return attrs.evolve(self, status=ReservationStatus.CANCELLED, updated_at=now)

    @Logger.io
    def mark_no_show(self, *, now: datetime) -> 'Reservation':
        """Manual NO_SHOW, only between the reservation's start and end"""
        self._require_status(ReservationStatus.PENDING, 'mark as no-show')
        if now < self.start_time:
            raise InvalidStateError(
                f'Reservation can only be marked as no-show from {self.start_time.isoformat()}'
            )
        if now > self.end_time:
            raise InvalidStateError(
                f'Reservation already ended at {self.end_time.isoformat()}, it will expire automatically'
            )
        return attrs.evolve(self, status=ReservationStatus.NO_SHOW, updated_at=now)

    @Logger.io
    def expire(self, *, now: datetime) -> 'Reservation':
        """Automatic NO_SHOW for a PENDING reservation whose end already passed"""
        if not self.is_expired(now):
            raise InvalidStateError('Only a PENDING reservation past its end can expire')
        return attrs.evolve(self, status=ReservationStatus.NO_SHOW, updated_at=now)
