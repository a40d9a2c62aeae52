"""Fold participants' availability bitsets into per-slot counts."""

from collections.abc import Iterable

from overlaptime.models.scheduling import Availability, Event, Overlay
from overlaptime.timegrid import event_dates, event_slot_count


def empty_overlay(event: Event) -> Overlay:
    count = event_slot_count(event)
    return {day: [0] * count for day in event_dates(event)}


def compute_overlay(event: Event, records: Iterable[Availability]) -> Overlay:
    """Count, for every date and slot, the participants marked available.

    Records dated outside the event range are dropped. Bitset characters
    past the event's slot count are ignored, which tolerates rows written
    under a longer grid. The result does not depend on record order.
    """
    overlay = empty_overlay(event)
    for record in records:
        line = overlay.get(record.date)
        if line is None:
            continue
        for index, flag in enumerate(record.bitset[: len(line)]):
            if flag == "1":
                line[index] += 1
    return overlay


def peak_count(overlay: Overlay) -> int:
    return max((max(line) for line in overlay.values() if line), default=0)
