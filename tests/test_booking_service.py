"""Booking service tests that need a controlled clock."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from stow.core.errors import (
    AlreadyCancelled,
    Forbidden,
    InvalidTransition,
    SlotUnavailable,
)
from stow.db.session import get_sessionmaker
from stow.models import BookingStatus, CustodyState
from stow.services import booking_service, custody_service

START = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def test_refund_at_exact_cutoff_is_full() -> None:
    now = START - timedelta(hours=24)
    assert booking_service.refund_percent_for(START, now, cutoff_hours=24) == 100


def test_refund_just_inside_cutoff_is_zero() -> None:
    now = START - timedelta(hours=23, minutes=59, seconds=56)
    assert booking_service.refund_percent_for(START, now, cutoff_hours=24) == 0


def test_refund_after_start_is_zero() -> None:
    assert booking_service.refund_percent_for(START, START + timedelta(hours=1), 24) == 0


def test_refund_cutoff_defaults_from_settings() -> None:
    assert booking_service.refund_percent_for(START, START - timedelta(days=2)) == 100


@pytest.mark.asyncio
async def test_cancel_with_injected_clock(app_context: dict[str, Any], db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = app_context["base_time"]
    async with sessionmaker() as session:
        booking = await booking_service.create_booking(
            session,
            listing_id=app_context["small_listing_id"],
            seeker_id=app_context["seeker_id"],
            start_time=start,
            end_time=start + timedelta(minutes=15),
        )
        with pytest.raises(Forbidden):
            await booking_service.cancel_booking(
                session, booking=booking, requester_id=app_context["other_id"]
            )

        cancelled = await booking_service.cancel_booking(
            session,
            booking=booking,
            requester_id=app_context["seeker_id"],
            now=start - timedelta(hours=2),
        )
        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.refund_percent == 0
        assert cancelled.refund_amount == Decimal("0.00")

        with pytest.raises(AlreadyCancelled):
            await booking_service.cancel_booking(
                session, booking=cancelled, requester_id=app_context["seeker_id"]
            )


@pytest.mark.asyncio
async def test_conflict_check_runs_in_service(app_context: dict[str, Any], db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = app_context["base_time"]
    async with sessionmaker() as session:
        await booking_service.create_booking(
            session,
            listing_id=app_context["parking_listing_id"],
            seeker_id=app_context["seeker_id"],
            start_time=start,
            end_time=start + timedelta(hours=1),
        )
        with pytest.raises(SlotUnavailable):
            await booking_service.create_booking(
                session,
                listing_id=app_context["parking_listing_id"],
                seeker_id=app_context["other_id"],
                start_time=start + timedelta(minutes=59),
                end_time=start + timedelta(hours=2),
            )
        intervals = await booking_service.active_intervals(
            session, listing_id=app_context["parking_listing_id"]
        )
        assert len(intervals) == 1


@pytest.mark.asyncio
async def test_overdue_custody_is_reported(app_context: dict[str, Any], db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = app_context["base_time"]
    async with sessionmaker() as session:
        booking = await booking_service.create_booking(
            session,
            listing_id=app_context["small_listing_id"],
            seeker_id=app_context["seeker_id"],
            start_time=start,
            end_time=start + timedelta(hours=1),
        )
        issued = await custody_service.generate_token(
            session, booking=booking, requester_id=app_context["owner_id"]
        )
        booking = await custody_service.redeem_token(
            session,
            booking=booking,
            requester_id=app_context["seeker_id"],
            presented_token=issued.scan_token,
            now=start,
        )
        assert booking.custody_state == CustodyState.IN_CUSTODY

        status = custody_service.custody_status(
            booking,
            requester_id=app_context["seeker_id"],
            now=start + timedelta(hours=5),
            max_hours=4,
        )
        assert status.overdue is True
        assert status.custody_state == CustodyState.IN_CUSTODY

        within = custody_service.custody_status(
            booking,
            requester_id=app_context["seeker_id"],
            now=start + timedelta(hours=3),
            max_hours=4,
        )
        assert within.overdue is False


def test_transition_table() -> None:
    custody_service.validate_transition(CustodyState.PENDING, CustodyState.IN_CUSTODY)
    custody_service.validate_transition(CustodyState.IN_CUSTODY, CustodyState.COMPLETED)
    for current, target in [
        (CustodyState.PENDING, CustodyState.COMPLETED),
        (CustodyState.IN_CUSTODY, CustodyState.PENDING),
        (CustodyState.COMPLETED, CustodyState.IN_CUSTODY),
    ]:
        with pytest.raises(InvalidTransition):
            custody_service.validate_transition(current, target)
