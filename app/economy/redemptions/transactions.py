from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import SessionLocal
from app.economy.redemptions.constants import DEFAULT_TX_TIMEOUT_SECONDS
from app.economy.redemptions.errors import RedemptionTimeoutError, RedemptionTransientError

T = TypeVar("T")

logger = structlog.get_logger(__name__)

# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if isinstance(value, str):
            return value
    cause = getattr(orig, "__cause__", None)
    value = getattr(cause, "sqlstate", None)
    return value if isinstance(value, str) else None


def is_retryable_db_error(exc: DBAPIError) -> bool:
    if exc.connection_invalidated:
        return True
    return _sqlstate(exc) in RETRYABLE_SQLSTATES


async def run_in_transaction(
    operation: Callable[[AsyncSession], Awaitable[T]],
    *,
    timeout_seconds: float = DEFAULT_TX_TIMEOUT_SECONDS,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> T:
    """Runs ``operation`` in one transaction bounded by ``timeout_seconds``.

    Nothing is committed unless ``operation`` returns; timeouts and
    serialization failures surface as transient errors the caller may retry
    as a fresh request.
    """
    factory = session_factory or SessionLocal
    try:
        async with asyncio.timeout(timeout_seconds):
            async with factory.begin() as session:
                return await operation(session)
    except TimeoutError as exc:
        logger.warning("redemption_transaction_timeout", timeout_seconds=timeout_seconds)
        raise RedemptionTimeoutError from exc
    except DBAPIError as exc:
        if not is_retryable_db_error(exc):
            raise
        logger.warning("redemption_transaction_transient", sqlstate=_sqlstate(exc))
        raise RedemptionTransientError from exc
