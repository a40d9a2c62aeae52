from typing import Literal, TypedDict


class AvailabilityUpdatedEvent(TypedDict):
    type: Literal["availability_updated"]
    event_id: str
    participant_id: str
    date: str
    updated_at: str


class SubscribedEvent(TypedDict):
    type: Literal["subscribed"]
    event_id: str


class PingEvent(TypedDict):
    type: Literal["ping"]
