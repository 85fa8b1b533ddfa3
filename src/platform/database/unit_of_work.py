"""
Unit of Work Pattern - one database session and one transaction per unit

Architecture:
- UoW owns the session lifecycle and commit/rollback
- Repositories receive the UoW's shared session
- Use cases open one UoW per entity (or per small set of tables of one reservation)
  so row locks are held as briefly as possible
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import get_session_maker


if TYPE_CHECKING:
    from src.service.table_reservation.app.interface.i_reservation_repo import IReservationRepo
    from src.service.table_reservation.app.interface.i_sale_closer import ISaleCloser
    from src.service.table_reservation.app.interface.i_table_repo import ITableRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the table reservation service

    Usage:
        async with uow_factory() as uow:
            table = await uow.tables.get_for_update(table_id=table_id)
            ...
            await uow.commit()

    Leaving the block without commit() rolls everything back.
    """

    tables: ITableRepo
    reservations: IReservationRepo
    sales: ISaleCloser

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    A fresh session is opened on every `async with`, so one instance must not be
    entered concurrently. Use the DI factory to get a new instance per transaction.
    """

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None) -> None:
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.table_reservation.driven_adapter.repo.reservation_repo_impl import (
            ReservationRepoImpl,
        )
        from src.service.table_reservation.driven_adapter.repo.sale_closer_impl import (
            SaleCloserImpl,
        )
        from src.service.table_reservation.driven_adapter.repo.table_repo_impl import (
            TableRepoImpl,
        )

        session_factory = self._session_factory or get_session_maker()
        self.session = session_factory()

        # Repositories share the UoW session
        self.tables = TableRepoImpl(session=self.session)
        self.reservations = ReservationRepoImpl(session=self.session)
        self.sales = SaleCloserImpl(session=self.session)

        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'UnitOfWork used outside of async with'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
