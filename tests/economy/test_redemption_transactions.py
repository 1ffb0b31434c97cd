from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError

from app.db.models.merchants import Merchant
from app.economy.redemptions.errors import RedemptionTimeoutError, RedemptionTransientError
from app.economy.redemptions.transactions import is_retryable_db_error, run_in_transaction
from tests.economy.redemption_fixtures import NOW_UTC, create_merchant


class _PgError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(sqlstate)
        self.sqlstate = sqlstate


def _dbapi_error(sqlstate: str) -> DBAPIError:
    return DBAPIError("UPDATE offers SET current_redemptions = 1", {}, _PgError(sqlstate))


async def _merchant_count(session_factory) -> int:
    async with session_factory() as session:
        return int(await session.scalar(select(func.count(Merchant.id))))


@pytest.mark.asyncio
async def test_run_in_transaction_commits_on_success(session_factory) -> None:
    async def _operation(session) -> str:
        merchant = await create_merchant(session, now_utc=NOW_UTC)
        return merchant.business_name

    assert await run_in_transaction(_operation, session_factory=session_factory) == "Chai Corner"
    assert await _merchant_count(session_factory) == 1


@pytest.mark.asyncio
async def test_run_in_transaction_times_out_and_rolls_back(session_factory) -> None:
    async def _slow_operation(session) -> None:
        await create_merchant(session, now_utc=NOW_UTC)
        await asyncio.sleep(1)

    with pytest.raises(RedemptionTimeoutError) as exc_info:
        await run_in_transaction(_slow_operation, timeout_seconds=0.05, session_factory=session_factory)

    assert exc_info.value.code == "E_TRANSIENT"
    assert await _merchant_count(session_factory) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03"])
async def test_run_in_transaction_maps_lock_failures_to_transient(session_factory, sqlstate: str) -> None:
    async def _operation(session) -> None:
        await create_merchant(session, now_utc=NOW_UTC)
        raise _dbapi_error(sqlstate)

    with pytest.raises(RedemptionTransientError):
        await run_in_transaction(_operation, session_factory=session_factory)

    assert await _merchant_count(session_factory) == 0


@pytest.mark.asyncio
async def test_run_in_transaction_reraises_other_database_errors(session_factory) -> None:
    async def _operation(session) -> None:
        raise _dbapi_error("23505")

    with pytest.raises(DBAPIError):
        await run_in_transaction(_operation, session_factory=session_factory)


def test_is_retryable_db_error_reads_sqlstate() -> None:
    assert is_retryable_db_error(_dbapi_error("40P01")) is True
    assert is_retryable_db_error(_dbapi_error("23505")) is False
