"""PostgreSQL store backend (psycopg 3, async)."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import UTC, date

import psycopg
from psycopg import errors as pg_errors
from psycopg_pool import AsyncConnectionPool

from overlaptime.config import PostgresSettings
from overlaptime.db.core import close_pool, get_connection, get_pool_stats, open_pool
from overlaptime.db.schema import ensure_schema
from overlaptime.models.scheduling import Availability, Event, Participant
from overlaptime.store.base import AvailabilityStore, StoreError

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = (
    "id, name, timezone, start_date, end_date, day_start_time, day_end_time, slot_minutes, created_at"
)


def _row_to_event(row) -> Event:
    return Event(
        id=row[0],
        name=row[1],
        timezone=row[2],
        start_date=row[3].isoformat(),
        end_date=row[4].isoformat(),
        day_start_time=row[5],
        day_end_time=row[6],
        slot_minutes=row[7],
        created_at=row[8].astimezone(UTC),
    )


def _row_to_participant(row) -> Participant:
    return Participant(
        id=row[0],
        event_id=row[1],
        display_name=row[2],
        edit_token_hash=row[3],
        created_at=row[4].astimezone(UTC),
    )


def _row_to_availability(row) -> Availability:
    return Availability(
        event_id=row[0],
        participant_id=row[1],
        date=row[2].isoformat(),
        bitset=row[3],
        updated_at=row[4].astimezone(UTC),
    )


class PostgresStore(AvailabilityStore):
    backend = "postgres"

    def __init__(
        self,
        settings: PostgresSettings,
        timezone: str = "Asia/Tokyo",
        pool: AsyncConnectionPool | None = None,
    ) -> None:
        super().__init__(timezone)
        self._settings = settings
        self._dsn = settings.get_dsn()
        self._pool = pool

    async def open(self) -> None:
        """Open the pool and bring the schema up to date."""
        if self._pool is None:
            self._pool = await open_pool(self._settings)
        await ensure_schema(self._connection)

    async def close(self) -> None:
        await close_pool(self._pool)
        self._pool = None

    def stats(self) -> dict[str, object]:
        return get_pool_stats(self._pool)

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        try:
            async with get_connection(self._pool, self._dsn) as conn:
                yield conn
        except psycopg.Error as e:
            logger.error("Database operation failed: %s", e)
            raise StoreError(str(e)) from e

    async def _insert_event(self, event: Event) -> bool:
        async with self._connection() as conn:
            try:
                await conn.execute(
                    f"INSERT INTO ot_events ({_EVENT_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
                    (
                        event.id,
                        event.name,
                        event.timezone,
                        date.fromisoformat(event.start_date),
                        date.fromisoformat(event.end_date),
                        event.day_start_time,
                        event.day_end_time,
                        event.slot_minutes,
                        event.created_at,
                    ),
                )
            except pg_errors.UniqueViolation:
                return False
        return True

    async def get_event(self, event_id: str) -> Event | None:
        async with self._connection() as conn:
            cur = await conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM ot_events WHERE id = %s",
                (event_id,),
            )
            row = await cur.fetchone()
        return _row_to_event(row) if row else None

    async def _insert_participant(self, participant: Participant) -> bool:
        async with self._connection() as conn:
            try:
                await conn.execute(
                    """INSERT INTO ot_participants (id, event_id, display_name, edit_token_hash, created_at)
                       VALUES (%s, %s, %s, %s, %s)""",
                    (
                        participant.id,
                        participant.event_id,
                        participant.display_name,
                        participant.edit_token_hash,
                        participant.created_at,
                    ),
                )
            except pg_errors.UniqueViolation:
                return False
        return True

    async def _get_participant(self, event_id: str, participant_id: str) -> Participant | None:
        async with self._connection() as conn:
            cur = await conn.execute(
                """SELECT id, event_id, display_name, edit_token_hash, created_at
                   FROM ot_participants WHERE event_id = %s AND id = %s""",
                (event_id, participant_id),
            )
            row = await cur.fetchone()
        return _row_to_participant(row) if row else None

    async def get_participants(self, event_id: str) -> list[Participant]:
        async with self._connection() as conn:
            cur = await conn.execute(
                """SELECT id, event_id, display_name, edit_token_hash, created_at
                   FROM ot_participants WHERE event_id = %s ORDER BY created_at, seq""",
                (event_id,),
            )
            return [_row_to_participant(row) async for row in cur]

    async def _upsert_availability(self, record: Availability) -> Availability:
        async with self._connection() as conn:
            await conn.execute(
                """INSERT INTO ot_availabilities (event_id, participant_id, date, bitset, updated_at)
                   VALUES (%s, %s, %s, %s, %s)
                   ON CONFLICT (event_id, participant_id, date)
                   DO UPDATE SET bitset = EXCLUDED.bitset, updated_at = EXCLUDED.updated_at""",
                (
                    record.event_id,
                    record.participant_id,
                    date.fromisoformat(record.date),
                    record.bitset,
                    record.updated_at,
                ),
            )
        return record

    async def get_availabilities(self, event_id: str) -> list[Availability]:
        async with self._connection() as conn:
            cur = await conn.execute(
                """SELECT event_id, participant_id, date, bitset, updated_at
                   FROM ot_availabilities WHERE event_id = %s ORDER BY date""",
                (event_id,),
            )
            return [_row_to_availability(row) async for row in cur]
