"""Dependency injection for FastAPI endpoints.

Resources live on ``app.state.resources`` (see :mod:`overlaptime.lifespan`).
These dependencies accept an ``HTTPConnection`` so they work for both HTTP
routes and WebSockets.

Usage in controllers:
    from overlaptime.dependencies import Store

    @router.get("/events/{event_id}")
    async def get_event(event_id: str, store: Store):
        return await store.get_event(event_id)
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from starlette.requests import HTTPConnection

from overlaptime.errors import ServiceUnavailableError
from overlaptime.lifespan import LifespanResources
from overlaptime.store import AvailabilityStore


def get_resources(conn: HTTPConnection) -> LifespanResources:
    """Get the resources built at startup.

    Raises:
        ServiceUnavailableError: If the application has not started.
    """
    resources = getattr(conn.app.state, "resources", None)
    if resources is None:
        raise ServiceUnavailableError(detail="Application not started")
    return resources


def get_store(conn: HTTPConnection) -> AvailabilityStore:
    """Get the availability store.

    Raises:
        ServiceUnavailableError: If the store is not initialized.
    """
    store = get_resources(conn).store
    if store is None:
        raise ServiceUnavailableError(detail="Store not initialized")
    return store


def get_optional_redis(conn: HTTPConnection) -> redis.Redis | None:
    """Get the Redis client, or None when realtime is disabled."""
    resources = getattr(conn.app.state, "resources", None)
    return resources.redis_client if resources is not None else None


Store = Annotated[AvailabilityStore, Depends(get_store)]
OptionalRedis = Annotated[redis.Redis | None, Depends(get_optional_redis)]
