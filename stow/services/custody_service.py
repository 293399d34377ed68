"""Chain-of-custody state machine driven by one-time QR tokens.

``Pending -> In-Custody -> Completed``. The provider, who grants the space,
mints a token and displays it as a QR code; the seeker scans it to advance the
booking one step. Each token is cleared as soon as it is redeemed, and minting
a new one overwrites any unredeemed token.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from stow.core.config import get_settings
from stow.core.errors import (
    AlreadyCancelled,
    AlreadyCompleted,
    Forbidden,
    InvalidToken,
    InvalidTransition,
)
from stow.core.security import generate_scan_token, scan_token_matches
from stow.models.booking import Booking, BookingStatus, CustodyState
from stow.models.mixins import coerce_utc, utcnow

logger = logging.getLogger(__name__)

_ALLOWED_CUSTODY_TRANSITIONS: dict[CustodyState, set[CustodyState]] = {
    CustodyState.PENDING: {CustodyState.IN_CUSTODY},
    CustodyState.IN_CUSTODY: {CustodyState.COMPLETED},
    CustodyState.COMPLETED: set(),
}

_NEXT_STATE: dict[CustodyState, CustodyState] = {
    CustodyState.PENDING: CustodyState.IN_CUSTODY,
    CustodyState.IN_CUSTODY: CustodyState.COMPLETED,
}

_TOKEN_ACTIONS: dict[CustodyState, str] = {
    CustodyState.PENDING: "handover",
    CustodyState.IN_CUSTODY: "return",
}


@dataclass(slots=True)
class IssuedToken:
    """Token minted for the provider to display."""

    booking_id: uuid.UUID
    scan_token: str
    action: str
    custody_state: CustodyState


@dataclass(slots=True)
class CustodyStatus:
    """Read model of a booking's custody progress."""

    booking_id: uuid.UUID
    status: BookingStatus
    custody_state: CustodyState
    handed_over_at: datetime | None
    completed_at: datetime | None
    scan_token: str | None
    overdue: bool


def validate_transition(current: CustodyState, target: CustodyState) -> None:
    if target not in _ALLOWED_CUSTODY_TRANSITIONS.get(current, set()):
        raise InvalidTransition(
            f"Cannot transition custody from {current.value} to {target.value}"
        )


def pending_action(state: CustodyState) -> str:
    """Label for the physical step the next token authorises."""
    try:
        return _TOKEN_ACTIONS[state]
    except KeyError as exc:
        raise InvalidTransition(
            f"No custody step follows {state.value}"
        ) from exc


def _ensure_open(booking: Booking) -> None:
    if booking.custody_state == CustodyState.COMPLETED:
        raise AlreadyCompleted()
    if booking.status == BookingStatus.CANCELLED:
        raise AlreadyCancelled()


async def generate_token(
    session: AsyncSession, *, booking: Booking, requester_id: uuid.UUID
) -> IssuedToken:
    """Mint a fresh one-time token for the booking's next custody step."""
    if booking.provider_id != requester_id:
        raise Forbidden("Only the space provider can generate QR codes")
    _ensure_open(booking)

    action = pending_action(booking.custody_state)
    booking.scan_token = generate_scan_token()
    session.add(booking)
    await session.commit()
    await session.refresh(booking)
    logger.info("Scan token issued for booking %s (%s)", booking.id, action)
    return IssuedToken(
        booking_id=booking.id,
        scan_token=booking.scan_token or "",
        action=action,
        custody_state=booking.custody_state,
    )


async def redeem_token(
    session: AsyncSession,
    *,
    booking: Booking,
    requester_id: uuid.UUID,
    presented_token: str,
    now: datetime | None = None,
) -> Booking:
    """Advance custody one step when the seeker presents the current token."""
    if booking.seeker_id != requester_id:
        raise Forbidden("Only the seeker can scan QR codes")
    if not scan_token_matches(presented_token, booking.scan_token):
        raise InvalidToken()
    _ensure_open(booking)

    current = booking.custody_state
    target = _NEXT_STATE.get(current)
    if target is None:
        raise InvalidTransition(f"Cannot transition from state {current.value}")
    validate_transition(current, target)

    stamp = now or utcnow()
    if target == CustodyState.IN_CUSTODY:
        booking.handed_over_at = stamp
        booking.status = BookingStatus.IN_CUSTODY
    else:
        booking.completed_at = stamp
        booking.status = BookingStatus.COMPLETED
    booking.custody_state = target
    booking.scan_token = None

    session.add(booking)
    await session.commit()
    await session.refresh(booking)
    logger.info(
        "Booking %s custody moved %s -> %s", booking.id, current.value, target.value
    )
    return booking


def custody_status(
    booking: Booking,
    *,
    requester_id: uuid.UUID,
    now: datetime | None = None,
    max_hours: float | None = None,
) -> CustodyStatus:
    """Describe custody progress; only the provider sees the live token.

    ``overdue`` is reported once an In-Custody booking has been held longer
    than ``CUSTODY_MAX_HOURS``. It never changes state on its own.
    """
    if requester_id not in (booking.seeker_id, booking.provider_id):
        raise Forbidden()
    if max_hours is None:
        max_hours = get_settings().custody_max_hours

    overdue = False
    if (
        max_hours is not None
        and booking.custody_state == CustodyState.IN_CUSTODY
        and booking.handed_over_at is not None
    ):
        held_for = coerce_utc(now or utcnow()) - coerce_utc(booking.handed_over_at)
        overdue = held_for > timedelta(hours=max_hours)

    return CustodyStatus(
        booking_id=booking.id,
        status=booking.status,
        custody_state=booking.custody_state,
        handed_over_at=booking.handed_over_at,
        completed_at=booking.completed_at,
        scan_token=booking.scan_token if requester_id == booking.provider_id else None,
        overdue=overdue,
    )


__all__ = [
    "CustodyStatus",
    "IssuedToken",
    "custody_status",
    "generate_token",
    "pending_action",
    "redeem_token",
    "validate_transition",
]
