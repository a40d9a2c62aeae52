"""Storage interface for events, participants and availability.

Backends implement the small set of abstract primitives below; the shared
operations (id allocation, secret handling, the update checks and change
notification) live on :class:`AvailabilityStore` so both backends behave
identically.
"""

import abc
import hashlib
import hmac
import logging
import secrets
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from overlaptime.models.scheduling import (
    Availability,
    Event,
    EventCreate,
    FailureReason,
    Overlay,
    Participant,
    ParticipantCreated,
    UpdateResult,
)
from overlaptime.overlay import compute_overlay
from overlaptime.timegrid import event_has_date, event_slot_count

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Availability], Awaitable[None]]

EVENT_ID_LENGTH = 12
PARTICIPANT_ID_LENGTH = 10
ID_ATTEMPTS = 10


class StoreError(Exception):
    """Infrastructure failure in a store backend (not a domain outcome)."""


def generate_id(length: int) -> str:
    return secrets.token_urlsafe(16)[:length]


def generate_edit_secret() -> str:
    # 24 random bytes, 192 bits
    return secrets.token_urlsafe(24)


def hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def verify_secret(secret: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_secret(secret), expected_hash)


def normalize_bitset(bitset: str, length: int) -> str:
    """Coerce to ``0``/``1`` and pad or truncate to ``length``."""
    clean = "".join("1" if char == "1" else "0" for char in bitset)
    return clean[:length].ljust(length, "0")


def utcnow() -> datetime:
    return datetime.now(UTC)


class AvailabilityStore(abc.ABC):
    backend: str = "abstract"

    def __init__(self, timezone: str = "Asia/Tokyo") -> None:
        self.timezone = timezone
        self._listeners: list[ChangeListener] = []

    # Backend primitives

    @abc.abstractmethod
    async def _insert_event(self, event: Event) -> bool:
        """Persist ``event``; return False if its id is already taken."""

    @abc.abstractmethod
    async def get_event(self, event_id: str) -> Event | None: ...

    @abc.abstractmethod
    async def _insert_participant(self, participant: Participant) -> bool:
        """Persist ``participant``; return False if its id is already taken."""

    @abc.abstractmethod
    async def _get_participant(self, event_id: str, participant_id: str) -> Participant | None: ...

    @abc.abstractmethod
    async def get_participants(self, event_id: str) -> list[Participant]: ...

    @abc.abstractmethod
    async def _upsert_availability(self, record: Availability) -> Availability: ...

    @abc.abstractmethod
    async def get_availabilities(self, event_id: str) -> list[Availability]: ...

    async def close(self) -> None:
        return

    def stats(self) -> dict[str, object]:
        return {"status": "active"}

    # Shared operations

    async def create_event(self, params: EventCreate) -> Event:
        now = utcnow()
        for _ in range(ID_ATTEMPTS):
            event = Event(
                id=generate_id(EVENT_ID_LENGTH),
                timezone=self.timezone,
                created_at=now,
                **params.model_dump(),
            )
            if await self._insert_event(event):
                logger.info("Created event id=%s slots=%d", event.id, event_slot_count(event))
                return event
        raise RuntimeError("Failed to generate unique event ID")

    async def create_participant(self, event_id: str, display_name: str) -> ParticipantCreated | None:
        event = await self.get_event(event_id)
        if event is None:
            return None
        edit_secret = generate_edit_secret()
        edit_token_hash = hash_secret(edit_secret)
        for _ in range(ID_ATTEMPTS):
            participant = Participant(
                id=generate_id(PARTICIPANT_ID_LENGTH),
                event_id=event_id,
                display_name=display_name,
                edit_token_hash=edit_token_hash,
                created_at=utcnow(),
            )
            if await self._insert_participant(participant):
                logger.info("Participant %s joined event %s", participant.id, event_id)
                return ParticipantCreated(participant=participant, edit_secret=edit_secret)
        raise RuntimeError("Failed to generate unique participant ID")

    async def update_availability(
        self,
        event_id: str,
        participant_id: str,
        date: str,
        bitset: str,
        edit_secret: str,
    ) -> UpdateResult:
        event = await self.get_event(event_id)
        if event is None:
            return UpdateResult.failure(FailureReason.NOT_FOUND)
        participant = await self._get_participant(event_id, participant_id)
        if participant is None:
            return UpdateResult.failure(FailureReason.NOT_FOUND)
        if not verify_secret(edit_secret, participant.edit_token_hash):
            return UpdateResult.failure(FailureReason.FORBIDDEN)
        if not event_has_date(event, date):
            return UpdateResult.failure(FailureReason.INVALID_DATE)

        record = await self._upsert_availability(
            Availability(
                event_id=event_id,
                participant_id=participant_id,
                date=date,
                bitset=normalize_bitset(bitset, event_slot_count(event)),
                updated_at=utcnow(),
            )
        )
        await self._notify(record)
        return UpdateResult.success(record)

    async def get_overlay(self, event_id: str) -> Overlay | None:
        event = await self.get_event(event_id)
        if event is None:
            return None
        return compute_overlay(event, await self.get_availabilities(event_id))

    # Change notification

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    async def _notify(self, record: Availability) -> None:
        for listener in self._listeners:
            try:
                await listener(record)
            except Exception as e:
                logger.warning(
                    "Change listener failed for event=%s participant=%s: %s",
                    record.event_id,
                    record.participant_id,
                    e,
                )
