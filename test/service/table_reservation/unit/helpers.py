"""
In-memory doubles of the unit of work and its repositories

Every unit of work works on a copy of the store's state and only publishes it
on commit, so a use case that raises half-way leaves the store untouched just
like a rolled back database transaction.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID, uuid4

import attrs

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import ConflictError
from src.service.table_reservation.app.interface.i_clock import IClock
from src.service.table_reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.table_reservation.app.interface.i_sale_closer import ISaleCloser
from src.service.table_reservation.app.interface.i_table_repo import ITableRepo
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus
from src.service.table_reservation.domain.enum.table_status import TableStatus
from src.service.table_reservation.domain.overlap_detector import ranges_overlap


BASE_NOW = datetime(2025, 1, 10, 19, 0, tzinfo=timezone.utc)


class FakeClock(IClock):
    def __init__(self, now: datetime = BASE_NOW) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, *, minutes: int = 0, hours: int = 0) -> None:
        self.current += timedelta(minutes=minutes, hours=hours)


@attrs.define
class Sale:
    id: UUID
    table_id: UUID
    item_totals: list[Decimal] = attrs.field(factory=list)
    occurred_at: Optional[datetime] = None
    total_amount: Optional[Decimal] = None

    @property
    def is_open(self) -> bool:
        return self.occurred_at is None


@attrs.define
class StoreState:
    tables: dict[UUID, Table] = attrs.field(factory=dict)
    reservations: dict[UUID, Reservation] = attrs.field(factory=dict)
    sales: dict[UUID, Sale] = attrs.field(factory=dict)

    def copy(self) -> 'StoreState':
        return StoreState(
            tables=dict(self.tables),
            reservations=dict(self.reservations),
            sales=dict(self.sales),
        )


class InMemoryStore:
    """Committed state shared by every unit of work of a test"""

    def __init__(self) -> None:
        self.state = StoreState()
        self.commits = 0
        # Row locks in acquisition order: ('reservation' | 'table', ids)
        self.lock_log: list[tuple[str, tuple[UUID, ...]]] = []
        # Raised (one per commit) before anything is published
        self.commit_errors: list[Exception] = []
        # Raised by the sale closer, e.g. to abort a table lock
        self.sale_closer_error: Optional[Exception] = None

    # Seeding helpers bypass any unit of work
    def add_table(self, table: Table) -> Table:
        self.state.tables[table.id] = table
        return table

    def add_reservation(self, reservation: Reservation) -> Reservation:
        self.state.reservations[reservation.id] = reservation
        return reservation

    def add_sale(self, sale: Sale) -> Sale:
        self.state.sales[sale.id] = sale
        return sale

    def table(self, table_id: UUID) -> Table:
        return self.state.tables[table_id]

    def reservation(self, reservation_id: UUID) -> Reservation:
        return self.state.reservations[reservation_id]

    def sale(self, sale_id: UUID) -> Sale:
        return self.state.sales[sale_id]


class InMemoryTableRepo(ITableRepo):
    def __init__(self, uow: 'InMemoryUnitOfWork') -> None:
        self.uow = uow

    @property
    def _tables(self) -> dict[UUID, Table]:
        return self.uow.state.tables

    async def get_by_id(self, *, table_id: UUID) -> Table | None:
        return self._tables.get(table_id)

    async def get_for_update(self, *, table_id: UUID) -> Table | None:
        self.uow.store.lock_log.append(('table', (table_id,)))
        return self._tables.get(table_id)

    async def get_many_for_update(self, *, table_ids: Iterable[UUID]) -> list[Table]:
        ordered = sorted(set(table_ids))
        self.uow.store.lock_log.append(('table', tuple(ordered)))
        return [self._tables[t] for t in ordered if t in self._tables]

    async def list_by_business(self, *, business_id: UUID) -> list[Table]:
        return sorted(
            (t for t in self._tables.values() if t.business_id == business_id),
            key=lambda t: t.table_code,
        )

    async def list_ids_by_status(self, *, status: TableStatus) -> list[UUID]:
        return [t.id for t in self._tables.values() if t.status == status]

    async def exists_by_code(self, *, business_id: UUID, table_code: str) -> bool:
        return any(
            t.business_id == business_id and t.table_code == table_code
            for t in self._tables.values()
        )

    async def add(self, *, table: Table) -> Table:
        if await self.exists_by_code(business_id=table.business_id, table_code=table.table_code):
            raise ConflictError(f'Table code {table.table_code} already exists')
        self._tables[table.id] = table
        return table

    async def save(self, *, table: Table) -> Table:
        if any(
            t.id != table.id
            and t.business_id == table.business_id
            and t.table_code == table.table_code
            for t in self._tables.values()
        ):
            raise ConflictError(f'Table code {table.table_code} already exists')
        self._tables[table.id] = table
        return table


class InMemoryReservationRepo(IReservationRepo):
    def __init__(self, uow: 'InMemoryUnitOfWork') -> None:
        self.uow = uow

    @property
    def _reservations(self) -> list[Reservation]:
        return list(self.uow.state.reservations.values())

    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        return self.uow.state.reservations.get(reservation_id)

    async def get_for_update(self, *, reservation_id: UUID) -> Reservation | None:
        self.uow.store.lock_log.append(('reservation', (reservation_id,)))
        return self.uow.state.reservations.get(reservation_id)

    async def add(self, *, reservation: Reservation) -> Reservation:
        self.uow.state.reservations[reservation.id] = reservation
        return reservation

    async def save(self, *, reservation: Reservation) -> Reservation:
        self.uow.state.reservations[reservation.id] = reservation
        return reservation

    async def list_active_overlapping(
        self, *, table_ids: Iterable[UUID], start: datetime, end: datetime
    ) -> list[Reservation]:
        wanted = set(table_ids)
        return [
            r
            for r in self._reservations
            if r.is_active
            and wanted & r.table_ids
            and ranges_overlap(r.start_time, r.end_time, start, end)
        ]

    async def list_upcoming(self, *, after: datetime, until: datetime) -> list[Reservation]:
        return [
            r
            for r in self._reservations
            if r.status == ReservationStatus.PENDING and after < r.start_time <= until
        ]

    async def list_in_progress(self) -> list[Reservation]:
        return [r for r in self._reservations if r.status == ReservationStatus.IN_PROGRESS]

    async def list_claims_for_table(
        self,
        *,
        table_id: UUID,
        after: datetime,
        until: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        return [
            r
            for r in self._reservations
            if table_id in r.table_ids
            and r.id != exclude_reservation_id
            and (
                r.status == ReservationStatus.IN_PROGRESS
                or (r.status == ReservationStatus.PENDING and after < r.start_time <= until)
            )
        ]

    async def list_pending_for_table(self, *, table_id: UUID) -> list[Reservation]:
        return [
            r
            for r in self._reservations
            if r.status == ReservationStatus.PENDING and table_id in r.table_ids
        ]

    async def list_expired_pending(self, *, now: datetime) -> list[Reservation]:
        return [r for r in self._reservations if r.is_expired(now)]

    async def list_by_business(
        self,
        *,
        business_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Reservation]:
        found = [
            r
            for r in self._reservations
            if r.business_id == business_id
            and (start is None or r.end_time > start)
            and (end is None or r.start_time < end)
        ]
        return sorted(found, key=lambda r: r.start_time, reverse=True)


class InMemorySaleCloser(ISaleCloser):
    def __init__(self, uow: 'InMemoryUnitOfWork') -> None:
        self.uow = uow

    async def close_open_sales_for_table(self, *, table_id: UUID, closed_at: datetime) -> int:
        if self.uow.store.sale_closer_error is not None:
            raise self.uow.store.sale_closer_error

        closed = 0
        for sale in list(self.uow.state.sales.values()):
            if sale.table_id != table_id or not sale.is_open:
                continue
            self.uow.state.sales[sale.id] = attrs.evolve(
                sale, occurred_at=closed_at, total_amount=sum(sale.item_totals, Decimal('0'))
            )
            closed += 1
        return closed


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.state = store.state.copy()
        self.tables = InMemoryTableRepo(self)
        self.reservations = InMemoryReservationRepo(self)
        self.sales = InMemorySaleCloser(self)

    async def __aenter__(self) -> AbstractUnitOfWork:
        self.state = self.store.state.copy()
        return await super().__aenter__()

    async def _commit(self) -> None:
        if self.store.commit_errors:
            raise self.store.commit_errors.pop(0)
        self.store.state = self.state
        self.state = self.store.state.copy()
        self.store.commits += 1

    async def rollback(self) -> None:
        self.state = self.store.state.copy()


# =============================================================================
# Entity builders (bypass the create() validation to seed any state)
# =============================================================================


def make_table(
    *,
    business_id: UUID,
    table_code: str = 'T1',
    capacity: int = 4,
    status: TableStatus = TableStatus.FREE,
    table_id: Optional[UUID] = None,
) -> Table:
    return Table(
        id=table_id or uuid4(),
        business_id=business_id,
        table_code=table_code,
        capacity=capacity,
        status=status,
        created_at=BASE_NOW,
        updated_at=BASE_NOW,
    )


def make_reservation(
    *,
    business_id: UUID,
    table_ids: Iterable[UUID],
    start_time: datetime,
    end_time: Optional[datetime] = None,
    party_size: int = 2,
    status: ReservationStatus = ReservationStatus.PENDING,
    forced: bool = False,
    reservation_id: Optional[UUID] = None,
) -> Reservation:
    return Reservation(
        id=reservation_id or uuid4(),
        business_id=business_id,
        table_ids=table_ids,
        customer_name='Ana Perez',
        start_time=start_time,
        end_time=end_time or start_time + timedelta(hours=1),
        party_size=party_size,
        status=status,
        forced=forced,
        created_at=BASE_NOW,
        updated_at=BASE_NOW,
    )


def at(hour: int, minute: int = 0) -> datetime:
    """A time on the same day as BASE_NOW"""
    return BASE_NOW.replace(hour=hour, minute=minute)
