"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.table_reservation.app.service.table_status_reconciler import (
    TableStatusReconciler,
)
from src.service.table_reservation.driven_adapter.clock.system_clock import SystemClock
from src.service.table_reservation.driving_adapter.scheduler.reservation_scheduler import (
    ReservationScheduler,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # A new unit of work per transaction - inject `unit_of_work.provider` as the factory
    unit_of_work = providers.Factory(SqlAlchemyUnitOfWork)

    clock = providers.Singleton(SystemClock)

    # Reconciliation engine shared by use cases and the scheduler
    table_status_reconciler = providers.Singleton(
        TableStatusReconciler,
        uow_factory=unit_of_work.provider,
        clock=clock,
        lock_horizon_minutes=config_service.provided.RESERVATION_LOCK_MINUTES,
    )

    # Timer driven sweeps (started by main.py lifespan)
    reservation_scheduler = providers.Singleton(
        ReservationScheduler,
        reconciler=table_status_reconciler,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
