"""
Unit tests for the reservation lifecycle use cases

Test Focus:
1. Update: re-validation excludes the reservation itself, dropped tables are released
2. Start: tables become OCCUPIED
3. Complete: tables are settled against the remaining claims
4. Cancel / no-show: holds are released unless another reservation claims the table
5. Ownership: a reservation of another business is not found
"""

from uuid import uuid4

import pytest

from src.platform.exception.exceptions import (
    InvalidStateError,
    NotFoundError,
    ReservationConflictError,
)
from src.service.table_reservation.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.table_reservation.app.command.complete_reservation_use_case import (
    CompleteReservationUseCase,
)
from src.service.table_reservation.app.command.mark_no_show_use_case import MarkNoShowUseCase
from src.service.table_reservation.app.command.start_reservation_use_case import (
    StartReservationUseCase,
)
from src.service.table_reservation.app.command.update_reservation_use_case import (
    UpdateReservationUseCase,
)
from src.service.table_reservation.app.query.get_reservation_use_case import (
    GetReservationUseCase,
)
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus
from src.service.table_reservation.domain.enum.table_status import TableStatus
from test.service.table_reservation.unit.helpers import at, make_reservation, make_table


@pytest.fixture
def deps(uow_factory, clock, reconciler) -> dict:
    return {'uow_factory': uow_factory, 'clock': clock, 'reconciler': reconciler}


@pytest.fixture
def t1(store, business_id):
    return store.add_table(make_table(business_id=business_id, table_code='T1'))


@pytest.fixture
def t2(store, business_id):
    return store.add_table(make_table(business_id=business_id, table_code='T2'))


class TestUpdateReservation:
    @pytest.mark.asyncio
    async def test_shifting_own_range_does_not_conflict_with_itself(
        self, deps, store, business_id, t1
    ):
        # Arrange
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id], start_time=at(20), end_time=at(21)
            )
        )

        # Act
        updated = await UpdateReservationUseCase(**deps).execute(
            business_id=business_id,
            reservation_id=r1.id,
            start_time=at(20, 30),
            end_time=at(21, 30),
        )

        # Assert
        assert updated.start_time == at(20, 30)
        assert store.reservation(r1.id).end_time == at(21, 30)

    @pytest.mark.asyncio
    async def test_moving_onto_another_reservation_is_rejected(
        self, deps, store, business_id, t1
    ):
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id], start_time=at(20), end_time=at(21)
            )
        )
        r2 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id], start_time=at(21), end_time=at(22)
            )
        )

        with pytest.raises(ReservationConflictError) as exc_info:
            await UpdateReservationUseCase(**deps).execute(
                business_id=business_id, reservation_id=r1.id, end_time=at(21, 30)
            )

        assert exc_info.value.conflicts == {t1.id: frozenset({r2.id})}
        assert store.reservation(r1.id).end_time == at(21)

    @pytest.mark.asyncio
    async def test_dropped_table_is_released(self, deps, store, business_id, t1, t2):
        """
        Given: R1 starting in 10 minutes holds T1 and T2
        When: R1 is updated to use T1 only
        Then: T2 goes back to FREE, T1 stays RESERVED
        """
        # Arrange
        for table in (t1, t2):
            store.add_table(
                make_table(
                    business_id=business_id,
                    table_code=table.table_code,
                    status=TableStatus.RESERVED,
                    table_id=table.id,
                )
            )
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id, t2.id], start_time=at(19, 10)
            )
        )

        # Act
        updated = await UpdateReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id, table_ids=[t1.id]
        )

        # Assert
        assert updated.table_ids == frozenset({t1.id})
        assert store.table(t1.id).status == TableStatus.RESERVED
        assert store.table(t2.id).status == TableStatus.FREE

    @pytest.mark.asyncio
    async def test_postponed_reservation_releases_its_hold(self, deps, store, business_id):
        t1 = store.add_table(make_table(business_id=business_id, status=TableStatus.RESERVED))
        r1 = store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(19, 10))
        )

        await UpdateReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id, start_time=at(21), end_time=at(22)
        )

        assert store.table(t1.id).status == TableStatus.FREE

    @pytest.mark.asyncio
    async def test_brought_forward_reservation_is_locked(self, deps, store, business_id, t1):
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id], start_time=at(21), end_time=at(22)
            )
        )

        await UpdateReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id, start_time=at(19, 15)
        )

        assert store.table(t1.id).status == TableStatus.RESERVED

    @pytest.mark.asyncio
    async def test_contact_change_does_not_touch_tables(self, deps, store, business_id, t1):
        r1 = store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(20))
        )
        store.lock_log.clear()

        updated = await UpdateReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id, customer_contact='+54 11 5555-0000'
        )

        assert updated.customer_contact == '+54 11 5555-0000'
        assert store.lock_log == [('reservation', (r1.id,))]

    @pytest.mark.asyncio
    async def test_only_pending_reservation_can_be_updated(self, deps, store, business_id, t1):
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id,
                table_ids=[t1.id],
                start_time=at(18, 30),
                status=ReservationStatus.IN_PROGRESS,
            )
        )

        with pytest.raises(InvalidStateError):
            await UpdateReservationUseCase(**deps).execute(
                business_id=business_id, reservation_id=r1.id, party_size=3
            )


class TestStartAndComplete:
    @pytest.mark.asyncio
    async def test_start_occupies_every_table(self, deps, store, business_id, t1, t2):
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id, t2.id], start_time=at(19, 10)
            )
        )

        started = await StartReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id
        )

        assert started.status == ReservationStatus.IN_PROGRESS
        assert store.table(t1.id).status == TableStatus.OCCUPIED
        assert store.table(t2.id).status == TableStatus.OCCUPIED

    @pytest.mark.asyncio
    async def test_start_too_early_leaves_everything_untouched(self, deps, store, business_id, t1):
        r1 = store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(20))
        )

        with pytest.raises(InvalidStateError):
            await StartReservationUseCase(**deps).execute(
                business_id=business_id, reservation_id=r1.id
            )

        assert store.reservation(r1.id).status == ReservationStatus.PENDING
        assert store.table(t1.id).status == TableStatus.FREE

    @pytest.mark.asyncio
    async def test_complete_frees_unclaimed_table(self, deps, store, business_id):
        t1 = store.add_table(make_table(business_id=business_id, status=TableStatus.OCCUPIED))
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id,
                table_ids=[t1.id],
                start_time=at(18),
                status=ReservationStatus.IN_PROGRESS,
            )
        )

        completed = await CompleteReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id
        )

        assert completed.status == ReservationStatus.COMPLETED
        assert store.table(t1.id).status == TableStatus.FREE

    @pytest.mark.asyncio
    async def test_complete_hands_table_to_next_upcoming_reservation(
        self, deps, store, business_id
    ):
        t1 = store.add_table(make_table(business_id=business_id, status=TableStatus.OCCUPIED))
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id,
                table_ids=[t1.id],
                start_time=at(18),
                end_time=at(19, 15),
                status=ReservationStatus.IN_PROGRESS,
            )
        )
        store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(19, 15))
        )

        await CompleteReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id
        )

        assert store.table(t1.id).status == TableStatus.RESERVED

    @pytest.mark.asyncio
    async def test_complete_pending_reservation_is_rejected(self, deps, store, business_id, t1):
        r1 = store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(20))
        )

        with pytest.raises(InvalidStateError):
            await CompleteReservationUseCase(**deps).execute(
                business_id=business_id, reservation_id=r1.id
            )


class TestCancelAndNoShow:
    @pytest.mark.asyncio
    async def test_cancel_releases_held_table(self, deps, store, business_id):
        t1 = store.add_table(make_table(business_id=business_id, status=TableStatus.RESERVED))
        r1 = store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(19, 10))
        )

        cancelled = await CancelReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id
        )

        assert cancelled.status == ReservationStatus.CANCELLED
        assert store.table(t1.id).status == TableStatus.FREE

    @pytest.mark.asyncio
    async def test_cancel_keeps_table_claimed_by_another_reservation(
        self, deps, store, business_id
    ):
        t1 = store.add_table(make_table(business_id=business_id, status=TableStatus.RESERVED))
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id,
                table_ids=[t1.id],
                start_time=at(19, 5),
                end_time=at(19, 10),
            )
        )
        store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(19, 15))
        )

        await CancelReservationUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id
        )

        assert store.table(t1.id).status == TableStatus.RESERVED

    @pytest.mark.asyncio
    async def test_cancel_twice_is_rejected(self, deps, store, business_id, t1):
        r1 = store.add_reservation(
            make_reservation(business_id=business_id, table_ids=[t1.id], start_time=at(20))
        )
        use_case = CancelReservationUseCase(**deps)
        await use_case.execute(business_id=business_id, reservation_id=r1.id)

        with pytest.raises(InvalidStateError):
            await use_case.execute(business_id=business_id, reservation_id=r1.id)

    @pytest.mark.asyncio
    async def test_mark_no_show_frees_table(self, deps, store, clock, business_id):
        t1 = store.add_table(make_table(business_id=business_id, status=TableStatus.RESERVED))
        r1 = store.add_reservation(
            make_reservation(
                business_id=business_id, table_ids=[t1.id], start_time=at(19), end_time=at(20)
            )
        )
        clock.advance(minutes=10)

        no_show = await MarkNoShowUseCase(**deps).execute(
            business_id=business_id, reservation_id=r1.id
        )

        assert no_show.status == ReservationStatus.NO_SHOW
        assert store.table(t1.id).status == TableStatus.FREE


class TestOwnership:
    @pytest.mark.asyncio
    async def test_reservation_of_another_business_is_not_found(self, deps, store, t1):
        r1 = store.add_reservation(
            make_reservation(business_id=t1.business_id, table_ids=[t1.id], start_time=at(20))
        )

        with pytest.raises(NotFoundError):
            await CancelReservationUseCase(**deps).execute(
                business_id=uuid4(), reservation_id=r1.id
            )
        with pytest.raises(NotFoundError):
            await GetReservationUseCase(uow_factory=deps['uow_factory']).execute(
                business_id=uuid4(), reservation_id=r1.id
            )

        assert store.reservation(r1.id).status == ReservationStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_reservation_is_not_found(self, deps, business_id):
        with pytest.raises(NotFoundError):
            await StartReservationUseCase(**deps).execute(
                business_id=business_id, reservation_id=uuid4()
            )
