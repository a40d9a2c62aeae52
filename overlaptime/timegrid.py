"""Time-grid arithmetic for events.

Maps an event's date range, daily window and slot length onto the grid
addressed by availability bitsets: one row per calendar date, one column
per slot. Every function here is total: bad input yields ``0`` or an empty
list instead of raising, so validation and rendering can share it.
"""

import re
from datetime import date, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from overlaptime.models.scheduling import Event

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_RE = re.compile(r"[0-9]{2}:[0-9]{2}")


def is_valid_date_string(value: str) -> bool:
    return isinstance(value, str) and DATE_RE.fullmatch(value) is not None


def is_valid_time_string(value: str) -> bool:
    """Accept ``HH:MM`` with hour 0-24; ``24`` only as ``24:00``."""
    if not isinstance(value, str) or not TIME_RE.fullmatch(value):
        return False
    hour, minute = (int(part) for part in value.split(":"))
    if hour > 24 or minute >= 60:
        return False
    if hour == 24 and minute != 0:
        return False
    return True


def to_minutes(value: str) -> int | None:
    if not is_valid_time_string(value):
        return None
    hour, minute = (int(part) for part in value.split(":"))
    return hour * 60 + minute


def slot_count(day_start: str, day_end: str, slot_minutes: int) -> int:
    start = to_minutes(day_start)
    end = to_minutes(day_end)
    if start is None or end is None or not slot_minutes or slot_minutes <= 0:
        return 0
    return max(0, (end - start) // slot_minutes)


def _parse_date(value: str) -> date | None:
    if not is_valid_date_string(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def date_span(start_date: str, end_date: str) -> int:
    """Number of dates ``date_range`` would return, without building the list."""
    start = _parse_date(start_date)
    end = _parse_date(end_date)
    if start is None or end is None or start > end:
        return 0
    return (end - start).days + 1


def date_in_range(value: str, start_date: str, end_date: str) -> bool:
    day = _parse_date(value)
    start = _parse_date(start_date)
    end = _parse_date(end_date)
    if day is None or start is None or end is None:
        return False
    return start <= day <= end


def date_range(start_date: str, end_date: str) -> list[str]:
    """Inclusive, ascending list of ``YYYY-MM-DD`` dates.

    Returns an empty list when either bound does not parse as a real
    calendar date or when ``start_date`` is after ``end_date``.
    """
    start = _parse_date(start_date)
    end = _parse_date(end_date)
    if start is None or end is None or start > end:
        return []
    days = (end - start).days
    return [(start + timedelta(days=offset)).isoformat() for offset in range(days + 1)]


def slot_labels(day_start: str, day_end: str, slot_minutes: int) -> list[str]:
    """``HH:MM`` start label of each slot in ``[day_start, day_end)``."""
    count = slot_count(day_start, day_end, slot_minutes)
    if count == 0:
        return []
    start = to_minutes(day_start)
    labels = []
    for index in range(count):
        total = start + index * slot_minutes
        labels.append(f"{total // 60:02d}:{total % 60:02d}")
    return labels


def event_slot_count(event: "Event") -> int:
    return slot_count(event.day_start_time, event.day_end_time, event.slot_minutes)


def event_dates(event: "Event") -> list[str]:
    return date_range(event.start_date, event.end_date)


def event_slot_labels(event: "Event") -> list[str]:
    return slot_labels(event.day_start_time, event.day_end_time, event.slot_minutes)


def event_has_date(event: "Event", value: str) -> bool:
    return date_in_range(value, event.start_date, event.end_date)
