"""Pydantic response models for the event endpoints."""

from datetime import datetime

from pydantic import BaseModel

from overlaptime.models.scheduling import Availability, Event, Overlay, Participant, SlotMinutes
from overlaptime.timegrid import event_dates, event_slot_labels


class CreateEventResponse(BaseModel):
    event_id: str
    event_url: str


class EventOut(BaseModel):
    id: str
    name: str
    timezone: str
    start_date: str
    end_date: str
    day_start_time: str
    day_end_time: str
    slot_minutes: SlotMinutes
    created_at: datetime

    @classmethod
    def from_event(cls, event: Event) -> "EventOut":
        return cls(**event.model_dump())


class GridOut(BaseModel):
    """Row and column labels of the availability grid."""

    dates: list[str]
    slot_labels: list[str]

    @classmethod
    def from_event(cls, event: Event) -> "GridOut":
        return cls(dates=event_dates(event), slot_labels=event_slot_labels(event))


class ParticipantOut(BaseModel):
    id: str
    display_name: str
    created_at: datetime

    @classmethod
    def from_participant(cls, participant: Participant) -> "ParticipantOut":
        return cls(
            id=participant.id,
            display_name=participant.display_name,
            created_at=participant.created_at,
        )


class AvailabilityOut(BaseModel):
    participant_id: str
    date: str
    bitset: str
    updated_at: datetime

    @classmethod
    def from_record(cls, record: Availability) -> "AvailabilityOut":
        return cls(
            participant_id=record.participant_id,
            date=record.date,
            bitset=record.bitset,
            updated_at=record.updated_at,
        )


class EventSnapshotResponse(BaseModel):
    event: EventOut
    grid: GridOut
    participants: list[ParticipantOut]
    availabilities: list[AvailabilityOut]


class JoinEventResponse(BaseModel):
    participant_id: str
    edit_token: str


class UpdateAvailabilityResponse(BaseModel):
    ok: bool
    updated_at: datetime


class OverlayResponse(BaseModel):
    overlay: Overlay
    peak: int
