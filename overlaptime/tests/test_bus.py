import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from overlaptime.bus import EventBus, build_availability_updated
from overlaptime.models.scheduling import Availability


@pytest.fixture
def record():
    return Availability(
        event_id="evt1",
        participant_id="p1",
        date="2024-06-01",
        bitset="10",
        updated_at=datetime(2024, 6, 1, 9, 0, tzinfo=UTC),
    )


def test_event_channel():
    assert EventBus.event_channel("evt1") == "overlaptime:event:evt1"


def test_build_availability_updated(record):
    assert build_availability_updated(record) == {
        "type": "availability_updated",
        "event_id": "evt1",
        "participant_id": "p1",
        "date": "2024-06-01",
        "updated_at": "2024-06-01T09:00:00+00:00",
    }


@pytest.mark.asyncio
async def test_publish_availability(record):
    redis_client = AsyncMock()
    redis_client.publish.return_value = 1
    bus = EventBus(redis_client)

    await bus.publish_availability(record)

    channel, payload = redis_client.publish.await_args.args
    assert channel == "overlaptime:event:evt1"
    assert json.loads(payload)["type"] == "availability_updated"
