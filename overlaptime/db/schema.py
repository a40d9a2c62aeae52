"""Schema bootstrap for the durable store."""

import logging

from overlaptime.db.migrations import Connect, get_current_version, run_migrations

logger = logging.getLogger(__name__)


async def ensure_schema(connect: Connect) -> None:
    """Apply pending migrations. Safe to call on every startup."""
    current_version = await get_current_version(connect)
    logger.info("Current schema version: %d", current_version)

    applied = await run_migrations(connect)

    if applied > 0:
        new_version = await get_current_version(connect)
        logger.info("Schema updated from version %d to %d", current_version, new_version)
    else:
        logger.debug("Schema is up to date at version %d", current_version)
