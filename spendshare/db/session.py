"""
Transaction boundary for ledger-mutating operations.

Storage failures are translated here into the ledger error taxonomy; the
services above never see a raw pymongo exception except for faults that
are not worth retrying.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo.errors import (
    ConnectionFailure,
    ExecutionTimeout,
    PyMongoError,
    WTimeoutError,
)

from spendshare.core.config import settings
from spendshare.core.errors import TransientError

logger = logging.getLogger(__name__)

TRANSIENT_LABELS = ("TransientTransactionError", "UnknownTransactionCommitResult")

Work = Callable[[AsyncIOMotorClientSession], Awaitable[Any]]


def as_transient(exc: PyMongoError) -> TransientError | None:
    """Map a storage exception to TransientError, or None if it is not retryable."""
    if isinstance(exc, (ConnectionFailure, ExecutionTimeout, WTimeoutError)):
        return TransientError(f"Storage unavailable: {exc.__class__.__name__}", code="storage_timeout")
    if any(exc.has_error_label(label) for label in TRANSIENT_LABELS):
        return TransientError("Storage contention, retry the operation", code="storage_contention")
    return None


async def run_in_transaction(
    db: AsyncIOMotorDatabase,
    work: Work,
    max_attempts: int | None = None
) -> Any:
    """
    Run ``work(session)`` as one multi-document transaction.

    Either every write made through ``session`` commits or none do. On a
    transient failure the whole unit is retried from the start; the last
    failure is raised as TransientError.
    """
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            async with await db.client.start_session() as session:
                async with session.start_transaction():
                    return await work(session)
        except PyMongoError as exc:
            error = as_transient(exc)
            if error is None:
                raise
            if attempt == attempts:
                logger.warning("Transaction failed after %d attempts: %s", attempt, exc)
                raise error from exc
            logger.warning("Transient storage failure (attempt %d/%d): %s", attempt, attempts, exc)
            await asyncio.sleep(settings.TRANSACTION_RETRY_BACKOFF_SECONDS * attempt)
