"""Booking lifecycle service helpers."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stow.core.config import get_settings
from stow.core.errors import (
    AlreadyCancelled,
    AlreadyCompleted,
    BookingNotFound,
    CustodyInProgress,
    Forbidden,
    InvalidTimeRange,
    ListingNotFound,
    SelfBookingForbidden,
    SlotUnavailable,
    SubSlotNotFound,
)
from stow.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    CustodyState,
)
from stow.models.listing import Listing, SubSlot
from stow.models.mixins import coerce_utc, utcnow
from stow.services import pricing_service, scheduling_service
from stow.services.pricing_service import PricingConfig
from stow.services.scheduling_service import TimeInterval

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE raised by the bookings exclusion constraint.
_EXCLUSION_VIOLATION = "23P01"

MONEY_PLACES = Decimal("0.01")


def _validate_times(start_time: datetime, end_time: datetime) -> None:
    if coerce_utc(end_time) <= coerce_utc(start_time):
        raise InvalidTimeRange()


def _is_exclusion_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == _EXCLUSION_VIOLATION


def _base_booking_query():
    return select(Booking).options(
        selectinload(Booking.listing), selectinload(Booking.sub_slot)
    )


async def get_booking(session: AsyncSession, booking_id: uuid.UUID) -> Booking:
    result = await session.execute(
        _base_booking_query().where(Booking.id == booking_id)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound()
    return booking


async def get_booking_for_party(
    session: AsyncSession, *, booking_id: uuid.UUID, requester_id: uuid.UUID
) -> Booking:
    """Return a booking visible only to its seeker or provider."""
    booking = await get_booking(session, booking_id)
    if requester_id not in (booking.seeker_id, booking.provider_id):
        raise Forbidden()
    return booking


async def list_seeker_bookings(
    session: AsyncSession,
    *,
    seeker_id: uuid.UUID,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Booking]:
    stmt = (
        _base_booking_query()
        .where(Booking.seeker_id == seeker_id)
        .order_by(Booking.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().all()


async def list_provider_bookings(
    session: AsyncSession,
    *,
    provider_id: uuid.UUID,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Booking]:
    stmt = (
        _base_booking_query()
        .where(Booking.provider_id == provider_id)
        .order_by(Booking.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().all()


async def _load_bookable_listing(
    session: AsyncSession, listing_id: uuid.UUID, *, lock: bool = False
) -> Listing:
    stmt = select(Listing).where(Listing.id == listing_id)
    if lock:
        stmt = stmt.with_for_update()
    listing = (await session.execute(stmt)).scalar_one_or_none()
    if listing is None or not listing.is_active:
        raise ListingNotFound()
    return listing


async def _lock_sub_slot(
    session: AsyncSession, *, listing_id: uuid.UUID, sub_slot_id: uuid.UUID
) -> SubSlot:
    stmt = (
        select(SubSlot)
        .where(SubSlot.id == sub_slot_id, SubSlot.listing_id == listing_id)
        .with_for_update()
    )
    sub_slot = (await session.execute(stmt)).scalar_one_or_none()
    if sub_slot is None or not sub_slot.is_active:
        raise SubSlotNotFound()
    return sub_slot


async def active_intervals(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    sub_slot_id: uuid.UUID | None = None,
) -> list[TimeInterval]:
    """Return the live booking intervals of one conflict domain.

    A sub-slot and its parent listing are separate domains: listing-level
    bookings are those with no sub-slot.
    """
    stmt = select(Booking.start_time, Booking.end_time).where(
        Booking.status.in_(ACTIVE_BOOKING_STATUSES)
    )
    if sub_slot_id is not None:
        stmt = stmt.where(Booking.sub_slot_id == sub_slot_id)
    else:
        stmt = stmt.where(
            Booking.listing_id == listing_id, Booking.sub_slot_id.is_(None)
        )
    rows = (await session.execute(stmt)).all()
    return [TimeInterval(start, end) for start, end in rows]


async def preview_price(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    config: PricingConfig | None = None,
) -> pricing_service.PriceBreakdown:
    """Quote a time range without creating a booking."""
    _validate_times(start_time, end_time)
    listing = await _load_bookable_listing(session, listing_id)
    return pricing_service.quote_listing(listing, start_time, end_time, config)


async def list_available_slots(
    session: AsyncSession, *, listing_id: uuid.UUID, day: date
) -> list[TimeInterval]:
    listing = await session.get(Listing, listing_id)
    if listing is None:
        raise ListingNotFound()
    existing = await active_intervals(session, listing_id=listing_id)
    return scheduling_service.available_slots(existing, day)


async def create_booking(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    seeker_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    sub_slot_id: uuid.UUID | None = None,
    item_photos: list[str] | None = None,
    item_description: str | None = None,
    config: PricingConfig | None = None,
) -> Booking:
    """Check availability, price and persist a confirmed booking.

    The target row (sub-slot or listing) is locked before the existing
    bookings are read so concurrent requests for one resource serialise; the
    PostgreSQL exclusion constraint on bookings backs this up at commit time.
    """
    _validate_times(start_time, end_time)
    try:
        listing = await _load_bookable_listing(session, listing_id, lock=True)
        if listing.owner_id == seeker_id:
            raise SelfBookingForbidden()
        if sub_slot_id is not None:
            await _lock_sub_slot(
                session, listing_id=listing.id, sub_slot_id=sub_slot_id
            )

        existing = await active_intervals(
            session, listing_id=listing.id, sub_slot_id=sub_slot_id
        )
        if scheduling_service.has_conflict(existing, start_time, end_time):
            logger.info(
                "Booking on listing %s rejected: %s-%s overlaps a live booking",
                listing.id,
                start_time,
                end_time,
            )
            raise SlotUnavailable()
    except Exception:
        await session.rollback()
        raise

    quote = pricing_service.quote_listing(listing, start_time, end_time, config)
    booking = Booking(
        listing_id=listing.id,
        sub_slot_id=sub_slot_id,
        seeker_id=seeker_id,
        provider_id=listing.owner_id,
        start_time=coerce_utc(start_time),
        end_time=coerce_utc(end_time),
        duration_minutes=pricing_service.count_minutes(start_time, end_time),
        total_price=Decimal(quote.total),
        status=BookingStatus.CONFIRMED,
        custody_state=CustodyState.PENDING,
        item_photos=list(item_photos or []),
        item_description=item_description or "",
    )
    session.add(booking)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if _is_exclusion_violation(exc):
            raise SlotUnavailable() from exc
        raise
    logger.info(
        "Booking %s created on listing %s for %s minutes (total %s)",
        booking.id,
        booking.listing_id,
        booking.duration_minutes,
        booking.total_price,
    )
    return await get_booking(session, booking.id)


def refund_percent_for(
    start_time: datetime, now: datetime, cutoff_hours: float | None = None
) -> int:
    """Full refund when cancelled at least ``cutoff_hours`` before start."""
    if cutoff_hours is None:
        cutoff_hours = get_settings().refund_cutoff_hours
    hours_until_start = (coerce_utc(start_time) - coerce_utc(now)).total_seconds() / 3600
    return 100 if hours_until_start >= cutoff_hours else 0


async def cancel_booking(
    session: AsyncSession,
    *,
    booking: Booking,
    requester_id: uuid.UUID,
    now: datetime | None = None,
) -> Booking:
    """Cancel a booking on behalf of its seeker and record the refund."""
    if booking.seeker_id != requester_id:
        raise Forbidden()
    if booking.status == BookingStatus.CANCELLED:
        raise AlreadyCancelled()
    if booking.custody_state == CustodyState.IN_CUSTODY:
        raise CustodyInProgress()
    if (
        booking.custody_state == CustodyState.COMPLETED
        or booking.status == BookingStatus.COMPLETED
    ):
        raise AlreadyCompleted()

    percent = refund_percent_for(booking.start_time, now or utcnow())
    amount = (Decimal(booking.total_price) * percent / 100).quantize(
        MONEY_PLACES, rounding=ROUND_HALF_UP
    )
    booking.status = BookingStatus.CANCELLED
    booking.refund_percent = percent
    booking.refund_amount = amount
    session.add(booking)
    await session.commit()
    await session.refresh(booking)
    logger.info(
        "Booking %s cancelled with %s%% refund (%s)", booking.id, percent, amount
    )
    return booking


__all__ = [
    "active_intervals",
    "cancel_booking",
    "create_booking",
    "get_booking",
    "get_booking_for_party",
    "list_available_slots",
    "list_provider_bookings",
    "list_seeker_bookings",
    "preview_price",
    "refund_percent_for",
]
