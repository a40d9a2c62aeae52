"""Tests for dependency injection."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from overlaptime.errors import ServiceUnavailableError
from overlaptime.lifespan import LifespanResources


def _conn(resources):
    state = SimpleNamespace()
    if resources is not None:
        state.resources = resources
    return SimpleNamespace(app=SimpleNamespace(state=state))


class TestGetStore:

    def test_returns_store_when_started(self, store):
        from overlaptime.dependencies import get_store

        assert get_store(_conn(LifespanResources(store=store))) is store

    def test_raises_before_startup(self):
        from overlaptime.dependencies import get_store

        with pytest.raises(ServiceUnavailableError) as exc_info:
            get_store(_conn(None))
        assert "Application not started" in str(exc_info.value.detail)

    def test_raises_without_store(self):
        from overlaptime.dependencies import get_store

        with pytest.raises(ServiceUnavailableError) as exc_info:
            get_store(_conn(LifespanResources()))
        assert "Store not initialized" in str(exc_info.value.detail)


class TestGetOptionalRedis:

    def test_returns_client_when_connected(self):
        from overlaptime.dependencies import get_optional_redis

        mock_redis = MagicMock()
        assert get_optional_redis(_conn(LifespanResources(redis_client=mock_redis))) is mock_redis

    def test_returns_none_when_disabled(self):
        from overlaptime.dependencies import get_optional_redis

        assert get_optional_redis(_conn(LifespanResources())) is None
        assert get_optional_redis(_conn(None)) is None

    def test_fake_redis_fixture_leaves_client_class_alone(self, app_factory):
        import redis.asyncio

        # Annotations such as ``redis.Redis | None`` are evaluated at import
        assert isinstance(redis.asyncio.Redis, type)
        assert redis.asyncio.Redis | None
        with TestClient(app_factory()) as c:
            assert c.get("/health").json()["redis"] == "healthy"
