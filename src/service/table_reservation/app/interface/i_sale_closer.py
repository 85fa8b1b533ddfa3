"""
Sale Closer Interface

Consumed from sale management: a table switching from OCCUPIED to RESERVED must
not keep an open sale.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID


class ISaleCloser(ABC):
    @abstractmethod
    async def close_open_sales_for_table(self, *, table_id: UUID, closed_at: datetime) -> int:
        """
        Close every open sale on a table

        Runs inside the caller's unit of work; an exception aborts the surrounding
        table lock instead of leaving an open sale on a RESERVED table.

        Args:
            table_id: Table whose open sales are closed
            closed_at: Timestamp stamped on the closed sales

        Returns:
            Number of sales closed (0 when none were open)
        """
        pass
