"""Unit tests for interval overlap checks and slot generation."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace

from stow.services import scheduling_service
from stow.services.scheduling_service import TimeInterval

T0 = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def _at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def test_overlap_is_symmetric() -> None:
    a = (_at(0), _at(60))
    b = (_at(30), _at(90))
    assert scheduling_service.overlaps(*a, *b)
    assert scheduling_service.overlaps(*b, *a)


def test_touching_intervals_do_not_conflict() -> None:
    existing = [TimeInterval(_at(0), _at(60))]
    assert not scheduling_service.has_conflict(existing, _at(60), _at(120))
    assert not scheduling_service.has_conflict(existing, _at(-60), _at(0))


def test_contained_and_enclosing_intervals_conflict() -> None:
    existing = [TimeInterval(_at(0), _at(60))]
    assert scheduling_service.has_conflict(existing, _at(15), _at(30))
    assert scheduling_service.has_conflict(existing, _at(-15), _at(75))


def test_empty_existing_never_conflicts() -> None:
    assert not scheduling_service.has_conflict([], _at(0), _at(15))


def test_booking_like_rows_are_accepted() -> None:
    # Naive timestamps, as SQLite returns them, are read as UTC.
    row = SimpleNamespace(
        start_time=_at(0).replace(tzinfo=None), end_time=_at(60).replace(tzinfo=None)
    )
    assert scheduling_service.has_conflict([row], _at(45), _at(50))


def test_generate_slots_keeps_short_tail() -> None:
    slots = list(scheduling_service.generate_slots(_at(0), _at(40)))
    assert [slot.end for slot in slots] == [_at(15), _at(30), _at(40)]


def test_available_slots_skip_booked_time() -> None:
    existing = [TimeInterval(_at(0), _at(30))]
    slots = scheduling_service.available_slots(existing, date(2026, 3, 1))
    starts = {slot.start for slot in slots}
    assert len(slots) == 96 - 2
    assert _at(0) not in starts
    assert _at(15) not in starts
    assert _at(30) in starts


def test_available_slots_count_bookings_spilling_into_the_day() -> None:
    overnight = TimeInterval(
        datetime(2026, 2, 28, 23, 0, tzinfo=UTC), datetime(2026, 3, 1, 1, 0, tzinfo=UTC)
    )
    slots = scheduling_service.available_slots([overnight], date(2026, 3, 1))
    assert slots[0].start == datetime(2026, 3, 1, 1, 0, tzinfo=UTC)
    assert len(slots) == 96 - 4
