import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
from fastapi.testclient import TestClient
import fakeredis.aioredis as fakeredis

import overlaptime.lifespan as lifespan
import overlaptime.main as main
from overlaptime.config import clear_settings_cache
from overlaptime.models.scheduling import EventCreate
from overlaptime.store import MemoryStore


class _AwaitableRedis:
    def __init__(self, client):
        self._client = client

    def __await__(self):
        async def _coro():
            return self._client

        return _coro().__await__()


@pytest.fixture
def app_factory(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("ENABLE_REALTIME", "1")

    def fake_redis_constructor(*_args, **_kwargs):
        fake = fakeredis.FakeRedis(decode_responses=True)
        return _AwaitableRedis(fake)

    monkeypatch.setattr(lifespan, "Redis", fake_redis_constructor)

    def _factory():
        clear_settings_cache()
        return main.create_app()

    yield _factory
    clear_settings_cache()


@pytest.fixture
def client(app_factory):
    with TestClient(app_factory()) as c:
        yield c


@pytest.fixture
def store():
    return MemoryStore(timezone="Asia/Tokyo")


@pytest.fixture
def event_params():
    return EventCreate(
        name="Team offsite",
        start_date="2024-06-01",
        end_date="2024-06-02",
        day_start_time="09:00",
        day_end_time="10:00",
        slot_minutes=30,
    )
