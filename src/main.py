"""
Production FastAPI Application

Table reservation API plus the background reconciliation scheduler.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import cleanup, container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine
from src.platform.logging.loguru_io import Logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Table Reservation] Starting up...')

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Table Reservation] Dependency injection wired')

    await create_db_and_tables()
    Logger.base.info('🗄️  [Table Reservation] Database schema ready')

    async with anyio.create_task_group() as tg:
        if settings.ENABLE_SCHEDULER:
            scheduler = container.reservation_scheduler()
            tg.start_soon(scheduler.start)
            Logger.base.info('⏱️ [Table Reservation] Reconciliation scheduler started')
        else:
            Logger.base.info('⏭️  [Table Reservation] Scheduler disabled (ENABLE_SCHEDULER=false)')

        Logger.base.info('✅ [Table Reservation] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Table Reservation] Shutting down...')
        tg.cancel_scope.cancel()

    await dispose_engine()
    Logger.base.info('🗄️  [Table Reservation] Database engine disposed')

    # Unwire DI
    container.unwire()
    cleanup()

    Logger.base.info('👋 [Table Reservation] Shutdown complete')


# Create FastAPI app using shared factory
app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
