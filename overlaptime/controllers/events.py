import logging

from fastapi import APIRouter
from pydantic import BaseModel, Field, field_validator, model_validator

from overlaptime.config import get_settings
from overlaptime.dependencies import Store
from overlaptime.errors import NotFoundError, error_for_reason
from overlaptime.models.events import (
    AvailabilityOut,
    CreateEventResponse,
    EventOut,
    EventSnapshotResponse,
    GridOut,
    JoinEventResponse,
    OverlayResponse,
    ParticipantOut,
    UpdateAvailabilityResponse,
)
from overlaptime.models.scheduling import EventCreate, SlotMinutes
from overlaptime.overlay import peak_count
from overlaptime.timegrid import date_span, is_valid_date_string, is_valid_time_string, to_minutes

logger = logging.getLogger("overlaptime.events")
router = APIRouter()

MAX_EVENT_DAYS = 366


class CreateEventRequest(BaseModel):
    name: str
    start_date: str
    end_date: str
    day_start_time: str
    day_end_time: str
    slot_minutes: SlotMinutes

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 100:
            raise ValueError("name must be 1-100 characters")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        if not is_valid_date_string(v):
            raise ValueError(f"invalid date format: {v}")
        return v

    @field_validator("day_start_time", "day_end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not is_valid_time_string(v):
            raise ValueError(f"invalid time format: {v}")
        return v

    @model_validator(mode="after")
    def validate_ranges(self) -> "CreateEventRequest":
        days = date_span(self.start_date, self.end_date)
        if days == 0:
            raise ValueError("end_date must be a real date on or after start_date")
        if days > MAX_EVENT_DAYS:
            raise ValueError(f"an event can span at most {MAX_EVENT_DAYS} days")
        if to_minutes(self.day_end_time) <= to_minutes(self.day_start_time):
            raise ValueError("day_end_time must be after day_start_time")
        return self


class JoinEventRequest(BaseModel):
    display_name: str

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 60:
            raise ValueError("display_name must be 1-60 characters")
        return v


class AvailabilityRequest(BaseModel):
    date: str = Field(min_length=1)
    bitset: str = Field(min_length=1, max_length=1000)
    edit_token: str = Field(min_length=1, max_length=200)


@router.post("/events", status_code=201, response_model=CreateEventResponse)
async def create_event(req: CreateEventRequest, store: Store) -> CreateEventResponse:
    logger.info(
        "POST /events name=%s range=%s..%s window=%s-%s slot=%d",
        req.name,
        req.start_date,
        req.end_date,
        req.day_start_time,
        req.day_end_time,
        req.slot_minutes,
    )
    event = await store.create_event(EventCreate(**req.model_dump()))
    prefix = get_settings().events.url_prefix.rstrip("/")
    return CreateEventResponse(event_id=event.id, event_url=f"{prefix}/{event.id}")


@router.get("/events/{event_id}", response_model=EventSnapshotResponse)
async def get_event(event_id: str, store: Store) -> EventSnapshotResponse:
    logger.info("GET /events/%s", event_id)
    event = await store.get_event(event_id)
    if event is None:
        raise NotFoundError(detail="Event not found", event_id=event_id)
    participants = await store.get_participants(event_id)
    availabilities = await store.get_availabilities(event_id)
    logger.info(
        "Returning event %s with %d participants, %d availabilities",
        event_id,
        len(participants),
        len(availabilities),
    )
    return EventSnapshotResponse(
        event=EventOut.from_event(event),
        grid=GridOut.from_event(event),
        participants=[ParticipantOut.from_participant(p) for p in participants],
        availabilities=[AvailabilityOut.from_record(a) for a in availabilities],
    )


@router.post("/events/{event_id}/participants", status_code=201, response_model=JoinEventResponse)
async def join_event(event_id: str, req: JoinEventRequest, store: Store) -> JoinEventResponse:
    logger.info("POST /events/%s/participants display_name=%s", event_id, req.display_name)
    created = await store.create_participant(event_id, req.display_name)
    if created is None:
        raise NotFoundError(detail="Event not found", event_id=event_id)
    return JoinEventResponse(participant_id=created.participant.id, edit_token=created.edit_secret)


@router.put(
    "/events/{event_id}/participants/{participant_id}/availability",
    response_model=UpdateAvailabilityResponse,
)
async def update_availability(
    event_id: str,
    participant_id: str,
    req: AvailabilityRequest,
    store: Store,
) -> UpdateAvailabilityResponse:
    logger.info(
        "PUT /events/%s/participants/%s/availability date=%s slots=%d",
        event_id,
        participant_id,
        req.date,
        len(req.bitset),
    )
    result = await store.update_availability(
        event_id=event_id,
        participant_id=participant_id,
        date=req.date,
        bitset=req.bitset,
        edit_secret=req.edit_token,
    )
    if not result.ok:
        logger.warning(
            "Availability update rejected event=%s participant=%s reason=%s",
            event_id,
            participant_id,
            result.reason.value,
        )
        raise error_for_reason(result.reason, event_id=event_id, participant_id=participant_id)
    return UpdateAvailabilityResponse(ok=True, updated_at=result.record.updated_at)


@router.get("/events/{event_id}/overlay", response_model=OverlayResponse)
async def get_overlay(event_id: str, store: Store) -> OverlayResponse:
    overlay = await store.get_overlay(event_id)
    if overlay is None:
        raise NotFoundError(detail="Event not found", event_id=event_id)
    return OverlayResponse(overlay=overlay, peak=peak_count(overlay))
