"""
HTTP mapping of the table reservation endpoints

Use cases are replaced through FastAPI dependency overrides, so these tests only
cover request parsing, response shapes and error-to-status mapping.
"""

from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager
from datetime import date, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from src.platform.app_factory import create_app
from src.platform.exception.exceptions import (
    InvalidStateError,
    NotFoundError,
    ReservationConflictError,
    TransientStoreError,
)
from src.service.table_reservation.app.command.create_reservation_use_case import (
    CreateReservationUseCase,
)
from src.service.table_reservation.app.command.start_reservation_use_case import (
    StartReservationUseCase,
)
from src.service.table_reservation.app.command.update_table_use_case import UpdateTableUseCase
from src.service.table_reservation.app.query.get_reservation_analytics_use_case import (
    GetReservationAnalyticsUseCase,
)
from src.service.table_reservation.app.query.get_table_occupancy_stats_use_case import (
    GetTableOccupancyStatsUseCase,
    TableOccupancyStats,
)
from src.service.table_reservation.app.query.get_table_schedule_use_case import (
    GetTableScheduleUseCase,
    TableSchedule,
)
from src.service.table_reservation.app.query.get_table_use_case import GetTableUseCase
from src.service.table_reservation.app.query.list_reservations_use_case import (
    ListReservationsUseCase,
)
from src.service.table_reservation.app.query.list_tables_use_case import ListTablesUseCase
from src.service.table_reservation.app.query.list_upcoming_reservations_use_case import (
    ListUpcomingReservationsUseCase,
)
from src.service.table_reservation.domain.enum.reservation_status import ReservationStatus
from src.service.table_reservation.domain.reservation_analytics import build_reservation_analytics
from test.service.table_reservation.unit.helpers import at, make_reservation, make_table


@asynccontextmanager
async def _no_lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield


@pytest.fixture
def app() -> FastAPI:
    return create_app(lifespan=_no_lifespan, title_suffix=' (Test)')


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


def _override(app: FastAPI, dependency, use_case: AsyncMock) -> AsyncMock:
    app.dependency_overrides[dependency] = lambda: use_case
    return use_case


class TestReservationEndpoints:
    def test_create_returns_201(self, app, client, business_id):
        table_id = uuid4()
        reservation = make_reservation(
            business_id=business_id, table_ids=[table_id], start_time=at(20)
        )
        use_case = _override(app, CreateReservationUseCase.depends, AsyncMock())
        use_case.execute.return_value = reservation

        response = client.post(
            f'/api/business/{business_id}/reservation',
            json={
                'table_ids': [str(table_id)],
                'customer_name': 'Ana Perez',
                'start_time': at(20).isoformat(),
                'end_time': at(21).isoformat(),
                'party_size': 2,
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body['id'] == str(reservation.id)
        assert body['status'] == 'pending'
        assert body['table_ids'] == [str(table_id)]
        assert use_case.execute.await_args.kwargs['forced'] is False

    def test_conflict_returns_409_with_details(self, app, client, business_id):
        table_id, other_id = uuid4(), uuid4()
        use_case = _override(app, CreateReservationUseCase.depends, AsyncMock())
        use_case.execute.side_effect = ReservationConflictError(
            '1 table(s) already have an overlapping reservation in this time range',
            conflicts={table_id: frozenset({other_id})},
        )

        response = client.post(
            f'/api/business/{business_id}/reservation',
            json={
                'table_ids': [str(table_id)],
                'customer_name': 'Bruno',
                'start_time': at(20, 30).isoformat(),
                'end_time': at(21, 30).isoformat(),
                'party_size': 2,
            },
        )

        assert response.status_code == 409
        assert response.json()['conflicts'] == {str(table_id): [str(other_id)]}

    def test_invalid_body_returns_400(self, client, business_id):
        response = client.post(
            f'/api/business/{business_id}/reservation',
            json={'table_ids': [], 'customer_name': 'Ana', 'party_size': 0},
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        'error, status_code',
        [
            (NotFoundError('Reservation not found'), 404),
            (InvalidStateError('Cannot start a reservation in status completed'), 409),
            (TransientStoreError('start_reservation could not be committed'), 503),
        ],
    )
    def test_lifecycle_errors_are_mapped(self, app, client, business_id, error, status_code):
        use_case = _override(app, StartReservationUseCase.depends, AsyncMock())
        use_case.execute.side_effect = error

        response = client.post(f'/api/business/{business_id}/reservation/{uuid4()}/start')

        assert response.status_code == status_code
        assert response.json()['detail'] == error.message

    @pytest.mark.parametrize('field', ['start_time', 'end_time'])
    def test_naive_datetime_returns_400(self, app, client, business_id, field):
        use_case = _override(app, CreateReservationUseCase.depends, AsyncMock())
        body = {
            'table_ids': [str(uuid4())],
            'customer_name': 'Ana Perez',
            'start_time': at(20).isoformat(),
            'end_time': at(21).isoformat(),
            'party_size': 2,
        }
        body[field] = '2025-01-10T20:30:00'

        response = client.post(f'/api/business/{business_id}/reservation', json=body)

        assert response.status_code == 400
        use_case.execute.assert_not_awaited()

    def test_naive_range_filter_returns_400(self, app, client, business_id):
        use_case = _override(app, ListReservationsUseCase.depends, AsyncMock())

        response = client.get(
            f'/api/business/{business_id}/reservation',
            params={'start': '2025-01-10T19:00:00', 'end': '2025-01-10T23:00:00+00:00'},
        )

        assert response.status_code == 400
        use_case.execute.assert_not_awaited()

    def test_upcoming_is_not_taken_for_a_reservation_id(self, app, client, business_id):
        reservation = make_reservation(
            business_id=business_id, table_ids=[uuid4()], start_time=at(20)
        )
        use_case = _override(app, ListUpcomingReservationsUseCase.depends, AsyncMock())
        use_case.execute.return_value = [reservation]

        response = client.get(f'/api/business/{business_id}/reservation/upcoming')

        assert response.status_code == 200
        assert [r['id'] for r in response.json()] == [str(reservation.id)]

    def test_schedule_for_a_day(self, app, client, business_id):
        table = make_table(business_id=business_id, table_code='A1')
        reservation = make_reservation(
            business_id=business_id, table_ids=[table.id], start_time=at(20)
        )
        use_case = _override(app, GetTableScheduleUseCase.depends, AsyncMock())
        use_case.execute.return_value = [TableSchedule(table=table, reservations=[reservation])]

        response = client.get(
            f'/api/business/{business_id}/reservation/schedule', params={'day': '2025-01-10'}
        )

        assert response.status_code == 200
        assert response.json()[0]['table']['table_code'] == 'A1'
        assert response.json()[0]['reservations'][0]['id'] == str(reservation.id)
        assert use_case.execute.await_args.kwargs['day'] == date(2025, 1, 10)

    def test_analytics(self, app, client, business_id):
        table = make_table(business_id=business_id, table_code='A1', capacity=8)
        reservation = make_reservation(
            business_id=business_id,
            table_ids=[table.id],
            start_time=at(20),
            status=ReservationStatus.COMPLETED,
        )
        use_case = _override(app, GetReservationAnalyticsUseCase.depends, AsyncMock())
        use_case.execute.return_value = build_reservation_analytics(
            [reservation], [table], timezone.utc
        )

        response = client.get(f'/api/business/{business_id}/reservation/analytics')

        assert response.status_code == 200
        body = response.json()
        assert body['summary']['completion_rate'] == 100.0
        assert body['table_utilization'][0]['table_code'] == 'A1'
        assert body['capacity_waste'][0]['waste_percentage'] == 75.0
        assert body['client_reliability'][0]['customer_document'] is None


class TestTableEndpoints:
    def test_list_tables(self, app, client, business_id):
        tables = [make_table(business_id=business_id, table_code='A1')]
        use_case = _override(app, ListTablesUseCase.depends, AsyncMock())
        use_case.execute.return_value = tables

        response = client.get(f'/api/business/{business_id}/table')

        assert response.status_code == 200
        assert [t['table_code'] for t in response.json()] == ['A1']
        assert response.json()[0]['status'] == 'free'

    def test_occupancy_stats(self, app, client, business_id):
        use_case = _override(app, GetTableOccupancyStatsUseCase.depends, AsyncMock())
        use_case.execute.return_value = TableOccupancyStats(
            total_tables=4, free_tables=2, reserved_tables=1, occupied_tables=1, occupancy_rate=50.0
        )

        response = client.get(f'/api/business/{business_id}/table/stats')

        assert response.status_code == 200
        assert response.json()['occupancy_rate'] == 50.0

    def test_get_table(self, app, client, business_id):
        table = make_table(business_id=business_id, table_code='A1')
        use_case = _override(app, GetTableUseCase.depends, AsyncMock())
        use_case.execute.return_value = table

        response = client.get(f'/api/business/{business_id}/table/{table.id}')

        assert response.status_code == 200
        assert response.json()['table_code'] == 'A1'

    def test_update_table_passes_only_sent_fields(self, app, client, business_id):
        table = make_table(business_id=business_id, table_code='A1', capacity=6)
        use_case = _override(app, UpdateTableUseCase.depends, AsyncMock())
        use_case.execute.return_value = table

        response = client.patch(
            f'/api/business/{business_id}/table/{table.id}', json={'capacity': 6}
        )

        assert response.status_code == 200
        assert use_case.execute.await_args.kwargs == {
            'business_id': business_id,
            'table_id': table.id,
            'capacity': 6,
        }

    def test_update_capacity(self, app, client, business_id):
        table = make_table(business_id=business_id, capacity=2)
        use_case = _override(app, UpdateTableUseCase.depends, AsyncMock())
        use_case.execute.return_value = table

        response = client.patch(
            f'/api/business/{business_id}/table/{table.id}/capacity', json={'capacity': 2}
        )

        assert response.status_code == 200
        assert response.json()['capacity'] == 2
        assert use_case.execute.await_args.kwargs['capacity'] == 2

    def test_update_capacity_below_one_returns_400(self, client, business_id):
        response = client.patch(
            f'/api/business/{business_id}/table/{uuid4()}/capacity', json={'capacity': 0}
        )

        assert response.status_code == 400

    def test_editing_table_in_use_returns_409(self, app, client, business_id):
        use_case = _override(app, UpdateTableUseCase.depends, AsyncMock())
        use_case.execute.side_effect = InvalidStateError('Only a free table can be edited')

        response = client.patch(
            f'/api/business/{business_id}/table/{uuid4()}', json={'table_code': 'B1'}
        )

        assert response.status_code == 409

    def test_health(self, client):
        assert client.get('/health').json()['status'] == 'healthy'
