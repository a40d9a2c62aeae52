"""Versioned SQL migrations for the durable store.

Migrations are ``NNN_description.sql`` files in this directory, applied in
version order and recorded in ``schema_migrations``.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Any

import psycopg

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

Connect = Callable[[], AbstractAsyncContextManager[psycopg.AsyncConnection]]

_CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    description TEXT
);
"""


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[dict[str, Any]]:
    """List migration files sorted by version, skipping unversioned names."""
    found = []
    for path in sorted(directory.glob("*.sql")):
        head, _, rest = path.stem.partition("_")
        try:
            version = int(head)
        except ValueError:
            continue
        found.append({"version": version, "filename": path.name, "description": rest, "path": path})
    return sorted(found, key=lambda m: m["version"])


async def get_current_version(connect: Connect) -> int:
    async with connect() as conn:
        await conn.execute(_CREATE_MIGRATIONS_TABLE)
        cur = await conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        row = await cur.fetchone()
        return int(row[0]) if row and row[0] else 0


async def apply_migration(connect: Connect, version: int, sql: str, description: str = "") -> bool:
    """Apply one migration; False if it is already recorded."""
    current = await get_current_version(connect)
    if version <= current:
        logger.debug("Migration %d already applied", version)
        return False

    async with connect() as conn:
        try:
            await conn.execute(sql)
            await conn.execute(
                "INSERT INTO schema_migrations (version, description) VALUES (%s, %s)",
                (version, description),
            )
        except Exception as e:
            logger.error("Failed to apply migration %d: %s", version, e)
            raise
    logger.info("Applied migration %d: %s", version, description)
    return True


async def run_migrations(connect: Connect, directory: Path = MIGRATIONS_DIR) -> int:
    current = await get_current_version(connect)
    applied = 0
    for migration in discover_migrations(directory):
        if migration["version"] <= current:
            continue
        if await apply_migration(
            connect,
            migration["version"],
            migration["path"].read_text(),
            migration["description"],
        ):
            applied += 1

    if applied:
        logger.info("Applied %d migrations", applied)
    else:
        logger.debug("No pending migrations")
    return applied
