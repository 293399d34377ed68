"""Interval overlap checks and 15-minute slot generation."""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, NamedTuple

from stow.models.mixins import coerce_utc

SLOT_MINUTES = 15


class TimeInterval(NamedTuple):
    """Half-open ``[start, end)`` interval on a single resource."""

    start: datetime
    end: datetime


def _bounds(interval: Any) -> tuple[datetime, datetime]:
    # Accept plain intervals as well as booking rows.
    if isinstance(interval, TimeInterval):
        start, end = interval
    elif hasattr(interval, "start_time"):
        start, end = interval.start_time, interval.end_time
    else:
        start, end = interval.start, interval.end
    return coerce_utc(start), coerce_utc(end)


def overlaps(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """Return whether two half-open intervals share any instant."""
    return coerce_utc(start) < coerce_utc(other_end) and coerce_utc(end) > coerce_utc(
        other_start
    )


def has_conflict(
    existing_intervals: Iterable[Any],
    proposed_start: datetime,
    proposed_end: datetime,
) -> bool:
    """Decide whether a proposed booking collides with existing ones.

    ``existing_intervals`` must already be restricted to the same resource and
    to non-terminal bookings. Touching endpoints do not conflict, so
    back-to-back bookings are accepted.
    """
    for interval in existing_intervals:
        start, end = _bounds(interval)
        if overlaps(proposed_start, proposed_end, start, end):
            return True
    return False


def generate_slots(
    start: datetime, end: datetime, minutes: int = SLOT_MINUTES
) -> Iterator[TimeInterval]:
    """Yield consecutive slots covering ``[start, end)``; the last may be short."""
    step = timedelta(minutes=minutes)
    cursor = coerce_utc(start)
    stop = coerce_utc(end)
    while cursor < stop:
        slot_end = min(cursor + step, stop)
        yield TimeInterval(cursor, slot_end)
        cursor += step


def day_window(day: date) -> TimeInterval:
    start = datetime.combine(day, time.min, tzinfo=UTC)
    return TimeInterval(start, start + timedelta(days=1))


def available_slots(
    existing_intervals: Iterable[Any], day: date, minutes: int = SLOT_MINUTES
) -> list[TimeInterval]:
    """Return the slots of a UTC day that no existing booking occupies."""
    window = day_window(day)
    blocking = [
        _bounds(interval)
        for interval in existing_intervals
        if overlaps(window.start, window.end, *_bounds(interval))
    ]
    return [
        slot
        for slot in generate_slots(window.start, window.end, minutes)
        if not has_conflict((TimeInterval(*b) for b in blocking), slot.start, slot.end)
    ]


__all__ = [
    "SLOT_MINUTES",
    "TimeInterval",
    "available_slots",
    "day_window",
    "generate_slots",
    "has_conflict",
    "overlaps",
]
