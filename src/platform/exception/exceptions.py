from typing import Mapping
from uuid import UUID


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InvalidStateError(CustomBaseError):
    """Operation not allowed from the entity's current lifecycle state (client error, never retried)"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class TransientStoreError(CustomBaseError):
    """Data-store contention that survived every retry attempt"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class ReservationConflictError(ConflictError):
    """
    Overlap detected on one or more tables and the caller did not force the write.

    Attributes:
        conflicts: table id -> ids of the active reservations colliding on that table
    """

    def __init__(self, message: str, *, conflicts: Mapping[UUID, frozenset[UUID]]) -> None:
        self.conflicts = dict(conflicts)
        super().__init__(message)

    @property
    def table_ids(self) -> list[UUID]:
        return sorted(self.conflicts)

    @property
    def reservation_ids(self) -> list[UUID]:
        return sorted({rid for rids in self.conflicts.values() for rid in rids})
