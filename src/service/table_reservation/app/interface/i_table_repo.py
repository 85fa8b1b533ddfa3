"""
Table Repository Interface

All methods run on the session of the enclosing unit of work.
"""

from abc import ABC, abstractmethod
from typing import Iterable
from uuid import UUID

from src.service.table_reservation.domain.entity.table_entity import Table
from src.service.table_reservation.domain.enum.table_status import TableStatus


class ITableRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, table_id: UUID) -> Table | None:
        pass

    @abstractmethod
    async def get_for_update(self, *, table_id: UUID) -> Table | None:
        """
        Get a table and hold its row lock until the unit of work ends

        Returns:
            Table entity or None if not found
        """
        pass

    @abstractmethod
    async def get_many_for_update(self, *, table_ids: Iterable[UUID]) -> list[Table]:
        """
        Lock several tables at once

        Rows are locked in ascending id order so two writers touching overlapping
        table sets can never deadlock each other.

        Returns:
            Tables found, ordered by id (unknown ids are simply absent)
        """
        pass

    @abstractmethod
    async def list_by_business(self, *, business_id: UUID) -> list[Table]:
        """Tables of a business ordered by table_code"""
        pass

    @abstractmethod
    async def list_ids_by_status(self, *, status: TableStatus) -> list[UUID]:
        """Ids of every table (all businesses) currently in `status`"""
        pass

    @abstractmethod
    async def exists_by_code(self, *, business_id: UUID, table_code: str) -> bool:
        pass

    @abstractmethod
    async def add(self, *, table: Table) -> Table:
        pass

    @abstractmethod
    async def save(self, *, table: Table) -> Table:
        """
        Persist an existing table: code, capacity, sector, status and updated_at

        Raises:
            ConflictError: the new code is already used in the business
        """
        pass
