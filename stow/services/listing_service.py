"""Listing management service helpers, including the split operation."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stow.core.errors import (
    Forbidden,
    InvalidDimensions,
    ListingHasActiveBookings,
    ListingNotFound,
    NoSpaceRemaining,
)
from stow.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from stow.models.listing import Listing, ListingKind, SubSlot
from stow.schemas.listing import ListingCreate, ListingPatch, SubSlotCreate
from stow.services import pricing_service
from stow.services.pricing_service import PricingConfig

logger = logging.getLogger(__name__)

SPLIT_TITLE_SUFFIX = " (Split)"


def _round_dimension(value: float) -> float:
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _assert_owner(listing: Listing, requester_id: uuid.UUID) -> None:
    if listing.owner_id != requester_id:
        raise Forbidden()


def _normalize_geometry(values: dict[str, Any], kind: ListingKind) -> dict[str, Any]:
    # Parking spots carry no geometry; storage spaces carry no vehicle class.
    if kind == ListingKind.PARKING:
        values["length_ft"] = 0
        values["width_ft"] = 0
        values["height_ft"] = None
    else:
        values["vehicle_class"] = None
        for key in ("length_ft", "width_ft"):
            if values.get(key) is None:
                values[key] = 0
    return values


async def get_listing(session: AsyncSession, listing_id: uuid.UUID) -> Listing:
    stmt = (
        select(Listing)
        .options(selectinload(Listing.sub_slots))
        .where(Listing.id == listing_id)
    )
    listing = (await session.execute(stmt)).scalar_one_or_none()
    if listing is None:
        raise ListingNotFound()
    return listing


async def list_owner_listings(
    session: AsyncSession, *, owner_id: uuid.UUID, skip: int = 0, limit: int = 50
) -> Sequence[Listing]:
    stmt = (
        select(Listing)
        .options(selectinload(Listing.sub_slots))
        .where(Listing.owner_id == owner_id)
        .order_by(Listing.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().all()


async def count_active_bookings(session: AsyncSession, listing_id: uuid.UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Booking)
        .where(
            Booking.listing_id == listing_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
    )
    return (await session.execute(stmt)).scalar_one()


async def create_listing(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    payload: ListingCreate,
    config: PricingConfig | None = None,
) -> Listing:
    values = _normalize_geometry(payload.model_dump(), payload.kind)
    listing = Listing(owner_id=owner_id, **values)
    listing.price_per_block = pricing_service.listing_block_rate(listing, config)
    session.add(listing)
    await session.commit()
    logger.info("Listing %s created by %s", listing.id, owner_id)
    return await get_listing(session, listing.id)


async def update_listing(
    session: AsyncSession,
    *,
    listing: Listing,
    requester_id: uuid.UUID,
    patch: ListingPatch,
    config: PricingConfig | None = None,
) -> Listing:
    """Apply only the non-null fields of ``patch``; the rest stay unchanged."""
    _assert_owner(listing, requester_id)
    changes = {
        key: value
        for key, value in patch.model_dump(exclude_unset=True).items()
        if value is not None
    }
    for key, value in changes.items():
        setattr(listing, key, value)

    current = {
        "length_ft": listing.length_ft,
        "width_ft": listing.width_ft,
        "height_ft": listing.height_ft,
        "vehicle_class": listing.vehicle_class,
    }
    for key, value in _normalize_geometry(current, listing.kind).items():
        setattr(listing, key, value)
    listing.price_per_block = pricing_service.listing_block_rate(listing, config)

    session.add(listing)
    await session.commit()
    return await get_listing(session, listing.id)


async def delete_listing(
    session: AsyncSession, *, listing: Listing, requester_id: uuid.UUID
) -> None:
    """Delete a listing unless a booking on it is still live."""
    _assert_owner(listing, requester_id)
    if await count_active_bookings(session, listing.id) > 0:
        raise ListingHasActiveBookings()
    await session.delete(listing)
    await session.commit()
    logger.info("Listing %s deleted", listing.id)


async def add_sub_slot(
    session: AsyncSession,
    *,
    listing: Listing,
    requester_id: uuid.UUID,
    payload: SubSlotCreate,
) -> SubSlot:
    _assert_owner(listing, requester_id)
    sub_slot = SubSlot(listing_id=listing.id, **payload.model_dump())
    session.add(sub_slot)
    await session.commit()
    await session.refresh(sub_slot)
    return sub_slot


def remainder_dimensions(
    orig_length: float, orig_width: float, new_length: float, new_width: float
) -> tuple[float, float]:
    """Validate a split and return the remainder's ``(length, width)``.

    When both axes shrink the remainder keeps the original length and takes
    whatever width matches the freed area; the two pieces are independent
    listings, not a drawn floor plan.
    """
    if new_length is None or new_width is None or new_length <= 0 or new_width <= 0:
        raise InvalidDimensions()
    if new_length > orig_length or new_width > orig_width:
        raise InvalidDimensions(
            "New dimensions cannot exceed original dimensions on any axis"
        )
    if new_length >= orig_length and new_width >= orig_width:
        raise InvalidDimensions(
            "New dimensions must be smaller than current dimensions in at least one axis"
        )

    remainder_area = orig_length * orig_width - new_length * new_width
    if remainder_area <= 0:
        raise NoSpaceRemaining()

    if new_length < orig_length and new_width == orig_width:
        return _round_dimension(orig_length - new_length), orig_width
    if new_width < orig_width and new_length == orig_length:
        return orig_length, _round_dimension(orig_width - new_width)
    return orig_length, _round_dimension(remainder_area / orig_length)


async def split_listing(
    session: AsyncSession,
    *,
    listing: Listing,
    requester_id: uuid.UUID,
    new_length: float,
    new_width: float,
    config: PricingConfig | None = None,
) -> tuple[Listing, Listing]:
    """Shrink ``listing`` and create a sibling listing for the freed area.

    The shrink and the insert are committed together; on any failure both are
    rolled back.
    """
    _assert_owner(listing, requester_id)
    rem_length, rem_width = remainder_dimensions(
        listing.length_ft, listing.width_ft, new_length, new_width
    )

    try:
        listing.length_ft = new_length
        listing.width_ft = new_width
        listing.price_per_block = pricing_service.listing_block_rate(listing, config)

        remainder = Listing(
            **listing.copy_attributes(),
            title=f"{listing.title}{SPLIT_TITLE_SUFFIX}",
            length_ft=rem_length,
            width_ft=rem_width,
            parent_listing_id=listing.id,
        )
        remainder.price_per_block = pricing_service.listing_block_rate(
            remainder, config
        )
        session.add_all([listing, remainder])
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Listing %s split to %sx%s; remainder %s is %sx%s",
        listing.id,
        new_length,
        new_width,
        remainder.id,
        rem_length,
        rem_width,
    )
    return await get_listing(session, listing.id), await get_listing(
        session, remainder.id
    )


__all__ = [
    "add_sub_slot",
    "count_active_bookings",
    "create_listing",
    "delete_listing",
    "get_listing",
    "list_owner_listings",
    "remainder_dimensions",
    "split_listing",
    "update_listing",
]
