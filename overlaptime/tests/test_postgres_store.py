"""Tests for the PostgreSQL store backend with psycopg mocked out."""

from datetime import UTC, date, datetime
from unittest.mock import MagicMock, patch

import psycopg
import pytest
from psycopg import errors as pg_errors

from overlaptime.config import PostgresSettings
from overlaptime.models.scheduling import EventCreate, FailureReason
from overlaptime.store import PostgresStore, StoreError
from overlaptime.store.base import hash_secret

CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
EVENT_ROW = ("evt1", "Standup", "Asia/Tokyo", date(2024, 6, 1), date(2024, 6, 2), "09:00", "10:00", 30, CREATED)
PARTICIPANT_ROW = ("p1", "evt1", "Aki", hash_secret("secret"), CREATED)


class MockAsyncCursor:

    def __init__(self, rows=None):
        self.rows = rows or []
        self._index = 0

    async def fetchone(self):
        if self.rows:
            return self.rows[0]
        return None

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self.rows):
            raise StopAsyncIteration
        row = self.rows[self._index]
        self._index += 1
        return row


class FakeDatabase:
    """Hands out connections that share one queue of results."""

    def __init__(self):
        self.results = []
        self.executed = []

    async def connect(self, *args, **kwargs):
        return MockAsyncConnection(self)


class MockAsyncConnection:

    def __init__(self, db):
        self.db = db

    async def execute(self, sql, params=None):
        self.db.executed.append((sql, params))
        result = self.db.results.pop(0) if self.db.results else []
        if isinstance(result, Exception):
            raise result
        return MockAsyncCursor(result)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def fake_db():
    db = FakeDatabase()
    with patch("overlaptime.db.core.psycopg.AsyncConnection") as mock:
        mock.connect = db.connect
        yield db


@pytest.fixture
def pg_store(fake_db):
    return PostgresStore(PostgresSettings(), timezone="Asia/Tokyo")


class TestEvents:

    @pytest.mark.asyncio
    async def test_get_event_maps_row(self, fake_db, pg_store):
        fake_db.results = [[EVENT_ROW]]

        event = await pg_store.get_event("evt1")

        assert event.id == "evt1"
        assert event.start_date == "2024-06-01"
        assert event.end_date == "2024-06-02"
        assert event.slot_minutes == 30
        assert fake_db.executed[0][1] == ("evt1",)

    @pytest.mark.asyncio
    async def test_get_event_missing(self, fake_db, pg_store):
        fake_db.results = [[]]
        assert await pg_store.get_event("nope") is None

    @pytest.mark.asyncio
    async def test_create_event_retries_on_unique_violation(self, fake_db, pg_store):
        fake_db.results = [pg_errors.UniqueViolation(), []]

        event = await pg_store.create_event(
            EventCreate(
                name="Standup",
                start_date="2024-06-01",
                end_date="2024-06-02",
                day_start_time="09:00",
                day_end_time="10:00",
                slot_minutes=30,
            )
        )

        assert len(fake_db.executed) == 2
        first_params, second_params = fake_db.executed[0][1], fake_db.executed[1][1]
        assert first_params[0] != second_params[0]
        assert second_params[0] == event.id
        assert second_params[3] == date(2024, 6, 1)
        assert event.timezone == "Asia/Tokyo"


class TestParticipants:

    @pytest.mark.asyncio
    async def test_get_participants_ordered(self, fake_db, pg_store):
        fake_db.results = [[PARTICIPANT_ROW, ("p2", "evt1", "Bo", "hash", CREATED)]]

        participants = await pg_store.get_participants("evt1")

        assert [p.id for p in participants] == ["p1", "p2"]
        assert "ORDER BY created_at, seq" in fake_db.executed[0][0]

    @pytest.mark.asyncio
    async def test_create_participant_for_missing_event(self, fake_db, pg_store):
        fake_db.results = [[]]
        assert await pg_store.create_participant("nope", "Aki") is None
        assert len(fake_db.executed) == 1


class TestUpdateAvailability:

    @pytest.mark.asyncio
    async def test_upserts_normalized_bitset(self, fake_db, pg_store):
        fake_db.results = [[EVENT_ROW], [PARTICIPANT_ROW], []]

        result = await pg_store.update_availability("evt1", "p1", "2024-06-01", "1", "secret")

        assert result.ok is True
        sql, params = fake_db.executed[2]
        assert "ON CONFLICT (event_id, participant_id, date)" in sql
        assert params[:4] == ("evt1", "p1", date(2024, 6, 1), "10")

    @pytest.mark.asyncio
    async def test_wrong_secret_never_writes(self, fake_db, pg_store):
        fake_db.results = [[EVENT_ROW], [PARTICIPANT_ROW]]

        result = await pg_store.update_availability("evt1", "p1", "2024-06-01", "1", "guess")

        assert result.reason == FailureReason.FORBIDDEN
        assert len(fake_db.executed) == 2

    @pytest.mark.asyncio
    async def test_unknown_participant(self, fake_db, pg_store):
        fake_db.results = [[EVENT_ROW], []]
        result = await pg_store.update_availability("evt1", "ghost", "2024-06-01", "1", "secret")
        assert result.reason == FailureReason.NOT_FOUND

    @pytest.mark.asyncio
    async def test_date_outside_range(self, fake_db, pg_store):
        fake_db.results = [[EVENT_ROW], [PARTICIPANT_ROW]]
        result = await pg_store.update_availability("evt1", "p1", "2024-06-05", "1", "secret")
        assert result.reason == FailureReason.INVALID_DATE
        assert len(fake_db.executed) == 2


class TestOverlay:

    @pytest.mark.asyncio
    async def test_overlay_from_rows(self, fake_db, pg_store):
        fake_db.results = [
            [EVENT_ROW],
            [
                ("evt1", "p1", date(2024, 6, 1), "10", CREATED),
                ("evt1", "p2", date(2024, 6, 1), "11", CREATED),
            ],
        ]

        overlay = await pg_store.get_overlay("evt1")

        assert overlay == {"2024-06-01": [2, 1], "2024-06-02": [0, 0]}


class TestFaults:

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_error(self, fake_db, pg_store):
        fake_db.results = [psycopg.OperationalError("connection refused")]

        with pytest.raises(StoreError):
            await pg_store.get_event("evt1")

    def test_stats_without_pool(self, pg_store):
        assert pg_store.stats() == {"status": "not_initialized"}

    def test_stats_reports_pool_sizes(self):
        pool = MagicMock()
        pool.get_stats.return_value = {
            "pool_size": 3,
            "pool_available": 2,
            "requests_waiting": 0,
            "pool_min": 2,
            "pool_max": 10,
        }
        pg = PostgresStore(PostgresSettings(), pool=pool)
        assert pg.stats() == {
            "status": "active",
            "size": 3,
            "available": 2,
            "waiting": 0,
            "min_size": 2,
            "max_size": 10,
        }
