"""Booking API: price preview, creation, cancellation and listings."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from stow.api.deps import CurrentUser, SessionDep
from stow.schemas.booking import (
    BookingCreate,
    BookingRead,
    PriceBreakdownRead,
    PricePreviewRequest,
    TimeSlotRead,
)
from stow.services import booking_service

router = APIRouter()


@router.post(
    "/preview-price",
    response_model=PriceBreakdownRead,
    summary="Preview booking price",
)
async def preview_price(
    payload: PricePreviewRequest, session: SessionDep
) -> PriceBreakdownRead:
    breakdown = await booking_service.preview_price(
        session,
        listing_id=payload.listing_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    return PriceBreakdownRead.model_validate(breakdown)


@router.get(
    "/slots/{listing_id}",
    response_model=list[TimeSlotRead],
    summary="Free 15-minute slots for a day",
)
async def available_slots(
    listing_id: uuid.UUID,
    session: SessionDep,
    day: date = Query(..., alias="date"),
) -> list[TimeSlotRead]:
    slots = await booking_service.list_available_slots(
        session, listing_id=listing_id, day=day
    )
    return [TimeSlotRead(start=slot.start, end=slot.end) for slot in slots]


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
async def create_booking(
    payload: BookingCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> BookingRead:
    booking = await booking_service.create_booking(
        session,
        seeker_id=current_user.id,
        **payload.model_dump(),
    )
    return BookingRead.model_validate(booking)


@router.get("/mine", response_model=list[BookingRead], summary="My bookings")
async def list_my_bookings(
    session: SessionDep,
    current_user: CurrentUser,
    skip: int = 0,
    limit: int = 50,
) -> list[BookingRead]:
    bookings = await booking_service.list_seeker_bookings(
        session, seeker_id=current_user.id, skip=skip, limit=min(limit, 100)
    )
    return [BookingRead.model_validate(obj) for obj in bookings]


@router.get(
    "/provider", response_model=list[BookingRead], summary="Bookings on my listings"
)
async def list_provider_bookings(
    session: SessionDep,
    current_user: CurrentUser,
    skip: int = 0,
    limit: int = 50,
) -> list[BookingRead]:
    bookings = await booking_service.list_provider_bookings(
        session, provider_id=current_user.id, skip=skip, limit=min(limit, 100)
    )
    return [BookingRead.model_validate(obj) for obj in bookings]


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking")
async def get_booking(
    booking_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
) -> BookingRead:
    booking = await booking_service.get_booking_for_party(
        session, booking_id=booking_id, requester_id=current_user.id
    )
    return BookingRead.model_validate(booking)


@router.patch(
    "/{booking_id}/cancel", response_model=BookingRead, summary="Cancel booking"
)
async def cancel_booking(
    booking_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
) -> BookingRead:
    booking = await booking_service.get_booking(session, booking_id)
    updated = await booking_service.cancel_booking(
        session, booking=booking, requester_id=current_user.id
    )
    return BookingRead.model_validate(updated)
