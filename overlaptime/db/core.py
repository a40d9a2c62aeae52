"""PostgreSQL connection handling for the durable store."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import psycopg
from psycopg_pool import AsyncConnectionPool

from overlaptime.config import PostgresSettings

_logger = logging.getLogger(__name__)


async def open_pool(settings: PostgresSettings) -> AsyncConnectionPool:
    pool = AsyncConnectionPool(
        settings.get_dsn(),
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        max_lifetime=settings.pool_max_lifetime,
        max_idle=settings.pool_max_idle,
        reconnect_timeout=settings.pool_reconnect_timeout,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await pool.open()
    _logger.info(
        "Database connection pool opened (min=%d, max=%d, timeout=%ds)",
        settings.pool_min_size,
        settings.pool_max_size,
        settings.pool_timeout,
    )
    return pool


async def close_pool(pool: AsyncConnectionPool | None) -> None:
    if pool is not None:
        await pool.close()
        _logger.info("Database connection pool closed")


@asynccontextmanager
async def get_connection(
    pool: AsyncConnectionPool | None,
    dsn: str,
    autocommit: bool = True,
) -> AsyncIterator[psycopg.AsyncConnection]:
    """Borrow a connection from ``pool``, or open a one-off one from ``dsn``."""
    if pool is not None:
        async with pool.connection() as conn:
            if autocommit:
                await conn.set_autocommit(True)
            yield conn
    else:
        async with await psycopg.AsyncConnection.connect(dsn, autocommit=autocommit) as conn:
            yield conn


def get_pool_stats(pool: AsyncConnectionPool | None) -> dict[str, object]:
    if pool is None:
        return {"status": "not_initialized"}
    stats = pool.get_stats()
    return {
        "status": "active",
        "size": stats["pool_size"],
        "available": stats["pool_available"],
        "waiting": stats["requests_waiting"],
        "min_size": stats["pool_min"],
        "max_size": stats["pool_max"],
    }
