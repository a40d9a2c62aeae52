"""In-process store backend.

Holds everything in dicts on the instance, so each store (and each test)
is isolated. State is lost on restart.
"""

from overlaptime.models.scheduling import Availability, Event, Participant
from overlaptime.store.base import AvailabilityStore


class MemoryStore(AvailabilityStore):
    backend = "memory"

    def __init__(self, timezone: str = "Asia/Tokyo") -> None:
        super().__init__(timezone)
        self._events: dict[str, Event] = {}
        self._participants: dict[str, dict[str, Participant]] = {}
        # event_id -> (participant_id, date) -> record
        self._availabilities: dict[str, dict[tuple[str, str], Availability]] = {}

    def stats(self) -> dict[str, object]:
        return {"status": "active", "events": len(self._events)}

    async def _insert_event(self, event: Event) -> bool:
        if event.id in self._events:
            return False
        self._events[event.id] = event
        self._participants[event.id] = {}
        self._availabilities[event.id] = {}
        return True

    async def get_event(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    async def _insert_participant(self, participant: Participant) -> bool:
        participants = self._participants[participant.event_id]
        if participant.id in participants:
            return False
        participants[participant.id] = participant
        return True

    async def _get_participant(self, event_id: str, participant_id: str) -> Participant | None:
        return self._participants.get(event_id, {}).get(participant_id)

    async def get_participants(self, event_id: str) -> list[Participant]:
        participants = self._participants.get(event_id, {})
        # sorted() is stable, so equal timestamps keep insertion order
        return sorted(participants.values(), key=lambda p: p.created_at)

    async def _upsert_availability(self, record: Availability) -> Availability:
        self._availabilities[record.event_id][(record.participant_id, record.date)] = record
        return record

    async def get_availabilities(self, event_id: str) -> list[Availability]:
        records = self._availabilities.get(event_id, {})
        return sorted(records.values(), key=lambda r: r.date)
