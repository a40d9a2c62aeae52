"""Availability storage: one interface, two backends chosen by configuration."""

from overlaptime.config import Settings
from overlaptime.store.base import AvailabilityStore, ChangeListener, StoreError, normalize_bitset
from overlaptime.store.memory import MemoryStore
from overlaptime.store.postgres import PostgresStore


async def build_store(settings: Settings) -> AvailabilityStore:
    """Construct and open the backend named by ``settings.store.backend``."""
    timezone = settings.events.timezone
    if settings.store.backend == "postgres":
        store = PostgresStore(settings.postgres, timezone=timezone)
        await store.open()
        return store
    return MemoryStore(timezone=timezone)


__all__ = [
    "AvailabilityStore",
    "ChangeListener",
    "MemoryStore",
    "PostgresStore",
    "StoreError",
    "build_store",
    "normalize_bitset",
]
