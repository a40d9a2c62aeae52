"""Domain records shared by the store backends, the overlay and the routes."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

SlotMinutes = Literal[15, 30]
Overlay = dict[str, list[int]]


class EventCreate(BaseModel):
    """Already-validated parameters for a new event."""

    name: str
    start_date: str
    end_date: str
    day_start_time: str
    day_end_time: str
    slot_minutes: SlotMinutes


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    timezone: str
    start_date: str
    end_date: str
    day_start_time: str
    day_end_time: str
    slot_minutes: SlotMinutes
    created_at: datetime


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    event_id: str
    display_name: str
    edit_token_hash: str
    created_at: datetime


class ParticipantCreated(BaseModel):
    """A new participant plus the plaintext edit secret, disclosed once."""

    participant: Participant
    edit_secret: str


class Availability(BaseModel):
    event_id: str
    participant_id: str
    date: str
    bitset: str
    updated_at: datetime


class FailureReason(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_DATE = "invalid_date"


class UpdateResult(BaseModel):
    ok: bool
    reason: FailureReason | None = None
    record: Availability | None = None

    @classmethod
    def success(cls, record: Availability) -> "UpdateResult":
        return cls(ok=True, record=record)

    @classmethod
    def failure(cls, reason: FailureReason) -> "UpdateResult":
        return cls(ok=False, reason=reason)
