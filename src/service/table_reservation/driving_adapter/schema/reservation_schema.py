from datetime import datetime
from typing import List, Optional
from uuid import UUID

import attrs
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from src.service.table_reservation.app.query.get_table_schedule_use_case import TableSchedule
from src.service.table_reservation.domain.entity.reservation_entity import Reservation
from src.service.table_reservation.domain.reservation_analytics import ReservationAnalytics
from src.service.table_reservation.driving_adapter.schema.table_schema import TableResponse


class ReservationCreateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'table_ids': ['01934b7e-0000-7000-8000-000000000001'],
                'customer_name': 'Ana Perez',
                'customer_contact': '+54 11 5555-0000',
                'start_time': '2025-01-10T20:00:00Z',
                'end_time': '2025-01-10T21:30:00Z',
                'party_size': 4,
                'forced': False,
            }
        }
    )

    table_ids: List[UUID] = Field(min_length=1)
    customer_name: str = Field(min_length=1, max_length=200)
    customer_contact: Optional[str] = Field(default=None, max_length=100)
    customer_document: Optional[str] = Field(default=None, max_length=50)
    start_time: AwareDatetime
    end_time: AwareDatetime
    party_size: int = Field(ge=1)
    forced: bool = False
    notes: Optional[str] = None
    created_by: Optional[UUID] = None


class ReservationUpdateRequest(BaseModel):
    """Every field is optional; omitted fields keep their value"""

    table_ids: Optional[List[UUID]] = Field(default=None, min_length=1)
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    customer_contact: Optional[str] = Field(default=None, max_length=100)
    customer_document: Optional[str] = Field(default=None, max_length=50)
    start_time: Optional[AwareDatetime] = None
    end_time: Optional[AwareDatetime] = None
    party_size: Optional[int] = Field(default=None, ge=1)
    forced: Optional[bool] = None
    notes: Optional[str] = None


class ReservationResponse(BaseModel):
    id: UUID
    business_id: UUID
    table_ids: List[UUID]
    customer_name: str
    customer_contact: Optional[str] = None
    customer_document: Optional[str] = None
    start_time: datetime
    end_time: datetime
    party_size: int
    status: str
    forced: bool
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> 'ReservationResponse':
        return cls(
            id=reservation.id,
            business_id=reservation.business_id,
            table_ids=sorted(reservation.table_ids),
            customer_name=reservation.customer_name,
            customer_contact=reservation.customer_contact,
            customer_document=reservation.customer_document,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            party_size=reservation.party_size,
            status=reservation.status.value,
            forced=reservation.forced,
            notes=reservation.notes,
            created_by=reservation.created_by,
            created_at=reservation.created_at,
        )


class TableScheduleResponse(BaseModel):
    table: TableResponse
    reservations: List[ReservationResponse]

    @classmethod
    def from_schedule(cls, schedule: TableSchedule) -> 'TableScheduleResponse':
        return cls(
            table=TableResponse.from_entity(schedule.table),
            reservations=[ReservationResponse.from_entity(r) for r in schedule.reservations],
        )


class ReservationSummaryResponse(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
    no_show: int
    completion_rate: float
    no_show_rate: float
    cancellation_rate: float


class TableUtilizationResponse(BaseModel):
    table_code: str
    total_reservations: int
    total_hours_reserved: int
    completed: int
    no_shows: int
    utilization_rate: float


class ClientReliabilityResponse(BaseModel):
    customer_name: str
    customer_contact: Optional[str] = None
    customer_document: Optional[str] = None
    total_reservations: int
    completed: int
    no_shows: int
    cancellations: int
    reliability_score: float


class TimeSlotAnalysisResponse(BaseModel):
    hour_of_day: int
    total_reservations: int
    no_shows: int
    no_show_rate: float
    avg_party_size: float


class CapacityWasteResponse(BaseModel):
    table_code: str
    table_capacity: int
    reservation_count: int
    avg_party_size: float
    waste_percentage: float


class ReservationAnalyticsResponse(BaseModel):
    summary: ReservationSummaryResponse
    table_utilization: List[TableUtilizationResponse]
    client_reliability: List[ClientReliabilityResponse]
    time_slots: List[TimeSlotAnalysisResponse]
    capacity_waste: List[CapacityWasteResponse]

    @classmethod
    def from_analytics(cls, analytics: ReservationAnalytics) -> 'ReservationAnalyticsResponse':
        # attrs.asdict recurses into the nested frozen rows
        return cls.model_validate(attrs.asdict(analytics))
