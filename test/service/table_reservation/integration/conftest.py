"""
Integration test configuration for the table reservation service.

The test database (POSTGRES_DB from the root conftest) is created when missing
and its schema rebuilt from the ORM models once per session; every test starts
from truncated tables. Without a reachable PostgreSQL the tests are skipped.
"""

import asyncio
from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.platform.config.core_setting import settings
from src.platform.database.orm_db_setting import Base
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork, UnitOfWorkFactory
import src.service.table_reservation.driven_adapter.model  # noqa: F401


async def _setup_test_database() -> None:
    db_url = settings.DATABASE_URL_ASYNC

    # Create database if not exists
    postgres_url = db_url.rsplit('/', 1)[0] + '/postgres'
    engine = create_async_engine(postgres_url, isolation_level='AUTOCOMMIT')
    try:
        async with engine.begin() as conn:
            result = await conn.execute(
                text('SELECT 1 FROM pg_database WHERE datname = :name'),
                {'name': settings.POSTGRES_DB},
            )
            if not result.fetchone():
                await conn.execute(text(f'CREATE DATABASE "{settings.POSTGRES_DB}"'))
    finally:
        await engine.dispose()

    # Reset schema and rebuild it from the models
    reset_engine = create_async_engine(db_url)
    try:
        async with reset_engine.begin() as conn:
            await conn.execute(text('DROP SCHEMA public CASCADE'))
            await conn.execute(text('CREATE SCHEMA public'))
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await reset_engine.dispose()


@pytest.fixture(scope='session')
def test_database() -> None:
    try:
        asyncio.run(_setup_test_database())
    except (OSError, SQLAlchemyError) as e:
        pytest.skip(f'PostgreSQL not reachable for integration tests: {e}')


@pytest.fixture
async def engine(test_database: None) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(settings.DATABASE_URL_ASYNC)
    quoted = ', '.join(f'"{t.name}"' for t in Base.metadata.sorted_tables)
    async with engine.begin() as conn:
        await conn.execute(text(f'TRUNCATE {quoted} RESTART IDENTITY CASCADE'))
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def uow_factory(session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWorkFactory:
    return lambda: SqlAlchemyUnitOfWork(session_factory=session_factory)


@pytest.fixture
def business_id() -> UUID:
    return uuid4()
