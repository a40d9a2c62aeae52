"""
Change-notification bus, backed by Redis pub/sub.
"""
import json
import logging
from typing import Final

import redis.asyncio as redis

from overlaptime.events import AvailabilityUpdatedEvent
from overlaptime.models.scheduling import Availability

CHANNEL_EVENT_PREFIX: Final[str] = "overlaptime:event:"

logger = logging.getLogger(__name__)


def build_availability_updated(record: Availability) -> AvailabilityUpdatedEvent:
    return {
        "type": "availability_updated",
        "event_id": record.event_id,
        "participant_id": record.participant_id,
        "date": record.date,
        "updated_at": record.updated_at.isoformat(),
    }


class EventBus:
    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    @staticmethod
    def event_channel(event_id: str) -> str:
        return f"{CHANNEL_EVENT_PREFIX}{event_id}"

    async def publish(self, event_id: str, message: AvailabilityUpdatedEvent) -> int:
        receivers = await self.redis_client.publish(self.event_channel(event_id), json.dumps(message))
        logger.debug("Published %s to event %s (receivers=%s)", message["type"], event_id, receivers)
        return receivers

    async def publish_availability(self, record: Availability) -> None:
        """Store change listener: signal that ``record`` was written."""
        await self.publish(record.event_id, build_availability_updated(record))
