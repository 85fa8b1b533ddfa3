"""
Reservation Repository Interface

All methods run on the session of the enclosing unit of work. Time filters use
the same half-open conventions as the domain so the database prefilter never
drops a candidate the domain would keep.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from src.service.table_reservation.domain.entity.reservation_entity import Reservation


class IReservationRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        pass

    @abstractmethod
    async def get_for_update(self, *, reservation_id: UUID) -> Reservation | None:
        """Get a reservation and hold its row lock until the unit of work ends"""
        pass

    @abstractmethod
    async def add(self, *, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def save(self, *, reservation: Reservation) -> Reservation:
        """
        Persist a modified reservation, including its table set

        Returns:
            The saved reservation
        """
        pass

    @abstractmethod
    async def list_active_overlapping(
        self, *, table_ids: Iterable[UUID], start: datetime, end: datetime
    ) -> list[Reservation]:
        """
        PENDING / IN_PROGRESS reservations on any of `table_ids` whose range intersects [start, end)

        Args:
            table_ids: Candidate tables
            start: Range start (inclusive)
            end: Range end (exclusive)
        """
        pass

    @abstractmethod
    async def list_upcoming(self, *, after: datetime, until: datetime) -> list[Reservation]:
        """PENDING reservations (all businesses) with `after < start <= until`"""
        pass

    @abstractmethod
    async def list_in_progress(self) -> list[Reservation]:
        pass

    @abstractmethod
    async def list_claims_for_table(
        self,
        *,
        table_id: UUID,
        after: datetime,
        until: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        """
        Reservations currently claiming a table

        A claim is an IN_PROGRESS reservation on the table, or a PENDING one whose
        start lies in (after, until].
        """
        pass

    @abstractmethod
    async def list_pending_for_table(self, *, table_id: UUID) -> list[Reservation]:
        pass

    @abstractmethod
    async def list_expired_pending(self, *, now: datetime) -> list[Reservation]:
        """PENDING reservations whose end is before `now`"""
        pass

    @abstractmethod
    async def list_by_business(
        self,
        *,
        business_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Reservation]:
        """
        Reservations of a business, newest start first

        Args:
            start: When given, only reservations ending after it
            end: When given, only reservations starting before it
        """
        pass
