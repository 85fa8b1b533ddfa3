"""
Atomic transaction runner with bounded retry on data-store contention

Serialization failures, deadlocks, lock timeouts and dropped connections are
retryable: the whole unit of work is replayed from scratch with exponential
backoff. Anything else propagates on the first attempt.
"""

from typing import Awaitable, Callable, TypeVar

import anyio
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import TransientStoreError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics


_T = TypeVar('_T')

# serialization_failure, deadlock_detected, lock_not_available, query_canceled (lock_timeout)
TRANSIENT_SQLSTATES = frozenset({'40001', '40P01', '55P03', '57014'})


def is_transient_error(error: BaseException) -> bool:
    if isinstance(error, PoolTimeoutError):
        return True
    if not isinstance(error, DBAPIError):
        return False
    if error.connection_invalidated:
        return True
    orig = error.orig
    sqlstate = getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)
    return sqlstate in TRANSIENT_SQLSTATES


async def run_in_transaction(
    uow_factory: UnitOfWorkFactory,
    work: Callable[[AbstractUnitOfWork], Awaitable[_T]],
    *,
    operation: str,
    max_retries: int | None = None,
    base_delay: float | None = None,
) -> _T:
    """
    Run `work` inside one unit of work and commit it.

    Args:
        uow_factory: Creates a fresh unit of work per attempt
        work: Coroutine function doing reads + writes through the given UoW
        operation: Label used in logs and in the surfaced error
        max_retries: Retries after the first attempt (default from settings)
        base_delay: First backoff delay in seconds, doubled on each retry

    Raises:
        TransientStoreError: contention persisted through every retry
    """
    retries = settings.DB_TX_MAX_RETRIES if max_retries is None else max_retries
    delay = settings.DB_TX_RETRY_BASE_DELAY_SECONDS if base_delay is None else base_delay

    for attempt in range(1, retries + 2):
        try:
            async with uow_factory() as uow:
                result = await work(uow)
                await uow.commit()
                return result
        except (DBAPIError, PoolTimeoutError) as e:
            if not is_transient_error(e):
                raise
            if attempt > retries:
                metrics.transaction_failures.labels(operation=operation).inc()
                Logger.base.error(
                    f'❌ [TX] {operation} failed after {attempt} attempts: {type(e).__name__}'
                )
                raise TransientStoreError(
                    f'{operation} could not be committed due to data store contention, please retry'
                ) from e
            Logger.base.warning(
                f'⏳ [TX] {operation} hit contention, retry {attempt}/{retries} in {delay:.3f}s'
            )
            metrics.transaction_retries.labels(operation=operation).inc()
            await anyio.sleep(delay)
            delay *= 2

    # Unreachable: the last iteration either returns or raises
    raise TransientStoreError(f'{operation} could not be committed')
