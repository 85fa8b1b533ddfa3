from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.table_status import TableStatus


class TableCreateRequest(BaseModel):
    table_code: str = Field(min_length=1, max_length=32)
    capacity: int = Field(ge=1)
    sector: Optional[str] = Field(default=None, max_length=64)


class TableStatusUpdateRequest(BaseModel):
    status: TableStatus


class TableResponse(BaseModel):
    id: UUID
    business_id: UUID
    table_code: str
    capacity: int
    sector: Optional[str] = None
    status: str
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, table: Table) -> 'TableResponse':
        return cls(
            id=table.id,
            business_id=table.business_id,
            table_code=table.table_code,
            capacity=table.capacity,
            sector=table.sector,
            status=table.status.value,
            updated_at=table.updated_at,
        )


class TableOccupancyStatsResponse(BaseModel):
    total_tables: int
    free_tables: int
    reserved_tables: int
    occupied_tables: int
    occupancy_rate: float


class SyncReportResponse(BaseModel):
    tables_locked: int
    tables_released: int
    failures: int


class TableUpdateRequest(BaseModel):
    """Omitted fields keep their value"""

    table_code: Optional[str] = Field(default=None, min_length=1, max_length=32)
    capacity: Optional[int] = Field(default=None, ge=1)
    sector: Optional[str] = Field(default=None, max_length=64)


class TableCapacityUpdateRequest(BaseModel):
    capacity: int = Field(ge=1)
