from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.command.create_table_use_case import CreateTableUseCase
from src.service.table_reservation.app.command.set_table_status_use_case import (
    SetTableStatusUseCase,
)
from src.service.table_reservation.app.command.sync_table_statuses_use_case import (
    SyncTableStatusesUseCase,
)
from src.service.table_reservation.app.command.update_table_use_case import UpdateTableUseCase
from src.service.table_reservation.app.query.get_table_occupancy_stats_use_case import (
    GetTableOccupancyStatsUseCase,
)
from src.service.table_reservation.app.query.get_table_use_case import GetTableUseCase
from src.service.table_reservation.app.query.list_tables_use_case import ListTablesUseCase
from src.service.table_reservation.driving_adapter.schema.table_schema import (
    SyncReportResponse,
    TableCapacityUpdateRequest,
    TableCreateRequest,
    TableOccupancyStatsResponse,
    TableResponse,
    TableStatusUpdateRequest,
    TableUpdateRequest,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_table(
    business_id: UUID,
    request: TableCreateRequest,
    use_case: CreateTableUseCase = Depends(CreateTableUseCase.depends),
) -> TableResponse:
    table = await use_case.execute(
        business_id=business_id,
        table_code=request.table_code,
        capacity=request.capacity,
        sector=request.sector,
    )
    return TableResponse.from_entity(table)


@router.get('', response_model=List[TableResponse])
@Logger.io
async def list_tables(
    business_id: UUID,
    use_case: ListTablesUseCase = Depends(ListTablesUseCase.depends),
) -> list[TableResponse]:
    tables = await use_case.execute(business_id=business_id)
    return [TableResponse.from_entity(t) for t in tables]


@router.get('/stats')
@Logger.io
async def get_table_occupancy_stats(
    business_id: UUID,
    use_case: GetTableOccupancyStatsUseCase = Depends(GetTableOccupancyStatsUseCase.depends),
) -> TableOccupancyStatsResponse:
    stats = await use_case.execute(business_id=business_id)
    return TableOccupancyStatsResponse(
        total_tables=stats.total_tables,
        free_tables=stats.free_tables,
        reserved_tables=stats.reserved_tables,
        occupied_tables=stats.occupied_tables,
        occupancy_rate=stats.occupancy_rate,
    )


@router.post('/sync')
@Logger.io
async def sync_table_statuses(
    business_id: UUID,
    use_case: SyncTableStatusesUseCase = Depends(SyncTableStatusesUseCase.depends),
) -> SyncReportResponse:
    """Full reconciliation (all businesses - the sweep is idempotent so running it wide is safe)"""
    report = await use_case.execute()
    return SyncReportResponse(
        tables_locked=report.tables_locked,
        tables_released=report.tables_released,
        failures=report.failures,
    )


@router.patch('/{table_id}/status')
@Logger.io
async def set_table_status(
    business_id: UUID,
    table_id: UUID,
    request: TableStatusUpdateRequest,
    use_case: SetTableStatusUseCase = Depends(SetTableStatusUseCase.depends),
) -> TableResponse:
    table = await use_case.execute(
        business_id=business_id, table_id=table_id, status=request.status
    )
    return TableResponse.from_entity(table)


@router.get('/{table_id}')
@Logger.io
async def get_table(
    business_id: UUID,
    table_id: UUID,
    use_case: GetTableUseCase = Depends(GetTableUseCase.depends),
) -> TableResponse:
    table = await use_case.execute(business_id=business_id, table_id=table_id)
    return TableResponse.from_entity(table)


@router.patch('/{table_id}')
@Logger.io
async def update_table(
    business_id: UUID,
    table_id: UUID,
    request: TableUpdateRequest,
    use_case: UpdateTableUseCase = Depends(UpdateTableUseCase.depends),
) -> TableResponse:
    table = await use_case.execute(
        business_id=business_id, table_id=table_id, **request.model_dump(exclude_unset=True)
    )
    return TableResponse.from_entity(table)


@router.patch('/{table_id}/capacity')
@Logger.io
async def update_table_capacity(
    business_id: UUID,
    table_id: UUID,
    request: TableCapacityUpdateRequest,
    use_case: UpdateTableUseCase = Depends(UpdateTableUseCase.depends),
) -> TableResponse:
    table = await use_case.execute(
        business_id=business_id, table_id=table_id, capacity=request.capacity
    )
    return TableResponse.from_entity(table)
