from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.table_reservation.app.service.table_status_reconciler import (
    SweepReport,
    TableStatusReconciler,
)


class SyncTableStatusesUseCase:
    """Manual trigger of the full reconciliation (lock upcoming, release stale holds)"""

    def __init__(self, *, reconciler: TableStatusReconciler) -> None:
        self.reconciler = reconciler

    @classmethod
    @inject
    def depends(
        cls,
        reconciler: TableStatusReconciler = Depends(Provide[Container.table_status_reconciler]),
    ) -> Self:
        return cls(reconciler=reconciler)

    @Logger.io
    async def execute(self) -> SweepReport:
        return await self.reconciler.run_full_sync()
