"""Application startup and shutdown.

The store, Redis client and event bus are built once per application and
kept on ``app.state.resources``; routes reach them through
:mod:`overlaptime.dependencies`.
"""

import logging
from dataclasses import dataclass

import redis.asyncio as redis
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool
from redis.asyncio import Redis

from overlaptime.bus import EventBus
from overlaptime.config import Settings, get_settings
from overlaptime.store import AvailabilityStore, build_store

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    store: AvailabilityStore | None = None
    redis_client: redis.Redis | None = None
    event_bus: EventBus | None = None


async def init_redis(settings: Settings) -> redis.Redis:
    """Initialize Redis connection with connection pool.

    Returns:
        Configured Redis client.
    """
    redis_pool = RedisConnectionPool(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password if settings.redis.password else None,
        max_connections=settings.redis.max_connections,
        timeout=settings.redis.pool_timeout_sec,
        health_check_interval=settings.redis.health_check_interval,
        socket_timeout=settings.redis.socket_timeout,
        socket_connect_timeout=settings.redis.socket_connect_timeout,
        retry_on_timeout=settings.redis.retry_on_timeout,
        decode_responses=True,
    )

    candidate_client = Redis(connection_pool=redis_pool)
    if hasattr(candidate_client, "__await__"):
        return await candidate_client
    return candidate_client


async def setup_resources(settings: Settings | None = None) -> LifespanResources:
    """Build the store and, when realtime is enabled, the notification bus.

    Args:
        settings: Configuration to use; defaults to the cached settings.

    Returns:
        LifespanResources containing all initialized resources.
    """
    settings = settings or get_settings()
    resources = LifespanResources()

    resources.store = await build_store(settings)
    logger.info("Using %s store (timezone=%s)", resources.store.backend, resources.store.timezone)

    if settings.features.realtime:
        resources.redis_client = await init_redis(settings)
        resources.event_bus = EventBus(resources.redis_client)
        resources.store.add_listener(resources.event_bus.publish_availability)

    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown."""
    if resources.store is not None:
        try:
            await resources.store.close()
        except Exception as e:
            logger.warning("Failed to close store: %s", e)

    if resources.redis_client is not None:
        aclose = getattr(resources.redis_client, "aclose", None)
        if callable(aclose):
            await aclose()
        else:
            close = getattr(resources.redis_client, "close", None)
            if callable(close):
                await close()

    resources.store = None
    resources.redis_client = None
    resources.event_bus = None
