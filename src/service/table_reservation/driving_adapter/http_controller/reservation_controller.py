from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import AwareDatetime

from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.table_reservation.app.command.complete_reservation_use_case import (
    CompleteReservationUseCase,
)
from src.service.table_reservation.app.command.create_reservation_use_case import (
    CreateReservationUseCase,
)
from src.service.table_reservation.app.command.mark_no_show_use_case import MarkNoShowUseCase
from src.service.table_reservation.app.command.start_reservation_use_case import (
    StartReservationUseCase,
)
from src.service.table_reservation.app.command.update_reservation_use_case import (
    UpdateReservationUseCase,
)
from src.service.table_reservation.app.query.get_reservation_analytics_use_case import (
    GetReservationAnalyticsUseCase,
)
from src.service.table_reservation.app.query.get_reservation_use_case import (
    GetReservationUseCase,
)
from src.service.table_reservation.app.query.get_table_schedule_use_case import (
    GetTableScheduleUseCase,
)
from src.service.table_reservation.app.query.list_past_reservations_use_case import (
    ListPastReservationsUseCase,
)
from src.service.table_reservation.app.query.list_reservations_use_case import (
    ListReservationsUseCase,
)
from src.service.table_reservation.app.query.list_upcoming_reservations_use_case import (
    ListUpcomingReservationsUseCase,
)
from src.service.table_reservation.driving_adapter.schema.reservation_schema import (
    ReservationAnalyticsResponse,
    ReservationCreateRequest,
    ReservationResponse,
    ReservationUpdateRequest,
    TableScheduleResponse,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_reservation(
    business_id: UUID,
    request: ReservationCreateRequest,
    use_case: CreateReservationUseCase = Depends(CreateReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(business_id=business_id, **request.model_dump())
    return ReservationResponse.from_entity(reservation)


@router.get('', response_model=List[ReservationResponse])
@Logger.io
async def list_reservations(
    business_id: UUID,
    start: Optional[AwareDatetime] = None,
    end: Optional[AwareDatetime] = None,
    use_case: ListReservationsUseCase = Depends(ListReservationsUseCase.depends),
) -> list[ReservationResponse]:
    reservations = await use_case.execute(business_id=business_id, start=start, end=end)
    return [ReservationResponse.from_entity(r) for r in reservations]


@router.get('/upcoming', response_model=List[ReservationResponse])
@Logger.io
async def list_upcoming_reservations(
    business_id: UUID,
    use_case: ListUpcomingReservationsUseCase = Depends(ListUpcomingReservationsUseCase.depends),
) -> list[ReservationResponse]:
    reservations = await use_case.execute(business_id=business_id)
    return [ReservationResponse.from_entity(r) for r in reservations]


@router.get('/past', response_model=List[ReservationResponse])
@Logger.io
async def list_past_reservations(
    business_id: UUID,
    use_case: ListPastReservationsUseCase = Depends(ListPastReservationsUseCase.depends),
) -> list[ReservationResponse]:
    reservations = await use_case.execute(business_id=business_id)
    return [ReservationResponse.from_entity(r) for r in reservations]


@router.get('/schedule', response_model=List[TableScheduleResponse])
@Logger.io
async def get_table_schedule(
    business_id: UUID,
    day: date,
    use_case: GetTableScheduleUseCase = Depends(GetTableScheduleUseCase.depends),
) -> list[TableScheduleResponse]:
    """Per-table day view, `day` is a calendar date in the business timezone"""
    schedules = await use_case.execute(business_id=business_id, day=day)
    return [TableScheduleResponse.from_schedule(s) for s in schedules]


@router.get('/analytics')
@Logger.io
async def get_reservation_analytics(
    business_id: UUID,
    use_case: GetReservationAnalyticsUseCase = Depends(GetReservationAnalyticsUseCase.depends),
) -> ReservationAnalyticsResponse:
    analytics = await use_case.execute(business_id=business_id)
    return ReservationAnalyticsResponse.from_analytics(analytics)


@router.get('/{reservation_id}')
@Logger.io
async def get_reservation(
    business_id: UUID,
    reservation_id: UUID,
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(business_id=business_id, reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.patch('/{reservation_id}')
@Logger.io
async def update_reservation(
    business_id: UUID,
    reservation_id: UUID,
    request: ReservationUpdateRequest,
    use_case: UpdateReservationUseCase = Depends(UpdateReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(
        business_id=business_id,
        reservation_id=reservation_id,
        **request.model_dump(exclude_unset=True),
    )
    return ReservationResponse.from_entity(reservation)


@router.post('/{reservation_id}/start')
@Logger.io
async def start_reservation(
    business_id: UUID,
    reservation_id: UUID,
    use_case: StartReservationUseCase = Depends(StartReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(business_id=business_id, reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.post('/{reservation_id}/complete')
@Logger.io
async def complete_reservation(
    business_id: UUID,
    reservation_id: UUID,
    use_case: CompleteReservationUseCase = Depends(CompleteReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(business_id=business_id, reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.post('/{reservation_id}/cancel')
@Logger.io
async def cancel_reservation(
    business_id: UUID,
    reservation_id: UUID,
    use_case: CancelReservationUseCase = Depends(CancelReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(business_id=business_id, reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.post('/{reservation_id}/no-show')
@Logger.io
async def mark_no_show(
    business_id: UUID,
    reservation_id: UUID,
    use_case: MarkNoShowUseCase = Depends(MarkNoShowUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(business_id=business_id, reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)
