from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidStateError
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.domain.enum.table_status import TableStatus


@attrs.define
class Table:
    id: UUID
    business_id: UUID
    table_code: str
    capacity: int
    sector: Optional[str] = None
    status: TableStatus = TableStatus.FREE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        business_id: UUID,
        table_code: str,
        capacity: int,
        sector: Optional[str] = None,
        now: datetime,
    ) -> 'Table':
        table_code = cls._validate(table_code=table_code, capacity=capacity)

        return cls(
            id=id,
            business_id=business_id,
            table_code=table_code,
            capacity=capacity,
            sector=sector.strip() if sector else None,
            status=TableStatus.FREE,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _validate(*, table_code: str, capacity: int) -> str:
        table_code = table_code.strip()
        if not table_code:
            raise DomainError('table_code is required')
        if len(table_code) > 32:
            raise DomainError('table_code must be at most 32 characters')
        if capacity < 1:
            raise DomainError('capacity must be at least 1')
        return table_code

    @Logger.io
    def revise(
        self,
        *,
        now: datetime,
        table_code: Optional[str] = None,
        capacity: Optional[int] = None,
        sector: Optional[str] = None,
    ) -> 'Table':
        """
        Edit the descriptive fields of a FREE table; None keeps the current value

        Raises:
            InvalidStateError: table is not FREE
            DomainError: empty or too long code, capacity below 1
        """
        if self.status != TableStatus.FREE:
            raise InvalidStateError(
                f'Only a free table can be edited, table {self.table_code} is {self.status.value}'
            )
        code = self._validate(
            table_code=self.table_code if table_code is None else table_code,
            capacity=self.capacity if capacity is None else capacity,
        )
        return attrs.evolve(
            self,
            table_code=code,
            capacity=self.capacity if capacity is None else capacity,
            sector=self.sector if sector is None else (sector.strip() or None),
            updated_at=now,
        )

    def with_status(self, status: TableStatus, *, now: datetime) -> 'Table':
        return attrs.evolve(self, status=status, updated_at=now)
