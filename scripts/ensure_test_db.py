from __future__ import annotations

import asyncio

import asyncpg
import structlog
from sqlalchemy.engine import make_url

from app.core.config import get_settings
from app.core.integration_db_safety import assert_safe_integration_db
from app.core.logging import configure_logging

logger = structlog.get_logger("scripts.ensure_test_db")


async def ensure_test_database(database_url: str) -> bool:
    """Creates the integration-test database if missing. Returns True when it was created."""
    assert_safe_integration_db(database_url)

    parsed = make_url(database_url)
    db_name = parsed.database or ""
    if not db_name.replace("_", "").isalnum():
        raise RuntimeError(f"Unsupported database name '{db_name}'.")

    conn = await asyncpg.connect(
        host=parsed.host or "localhost",
        port=int(parsed.port or 5432),
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
        if exists:
            logger.info("test_database_exists", database=db_name, host=parsed.host)
            return False
        await conn.execute(f'CREATE DATABASE "{db_name}"')
        logger.info("test_database_created", database=db_name, host=parsed.host)
        return True
    finally:
        await conn.close()


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)
    asyncio.run(ensure_test_database(settings.database_url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
