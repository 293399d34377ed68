"""Chain-of-custody QR handshake API."""

from __future__ import annotations

import uuid

from fastapi import APIRouter

from stow.api.deps import CurrentUser, SessionDep
from stow.schemas.booking import BookingRead
from stow.schemas.custody import CustodyStatusRead, ScanRequest, ScanTokenRead
from stow.services import booking_service, custody_service

router = APIRouter()


@router.post(
    "/{booking_id}/generate-qr",
    response_model=ScanTokenRead,
    summary="Mint a one-time custody token (provider)",
)
async def generate_qr(
    booking_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
) -> ScanTokenRead:
    booking = await booking_service.get_booking(session, booking_id)
    issued = await custody_service.generate_token(
        session, booking=booking, requester_id=current_user.id
    )
    return ScanTokenRead.model_validate(issued)


@router.post(
    "/{booking_id}/scan",
    response_model=BookingRead,
    summary="Redeem a custody token (seeker)",
)
async def scan_qr(
    booking_id: uuid.UUID,
    payload: ScanRequest,
    session: SessionDep,
    current_user: CurrentUser,
) -> BookingRead:
    booking = await booking_service.get_booking(session, booking_id)
    updated = await custody_service.redeem_token(
        session,
        booking=booking,
        requester_id=current_user.id,
        presented_token=payload.scan_token,
    )
    return BookingRead.model_validate(updated)


@router.get(
    "/{booking_id}", response_model=CustodyStatusRead, summary="Custody status"
)
async def get_custody_status(
    booking_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
) -> CustodyStatusRead:
    booking = await booking_service.get_booking(session, booking_id)
    return CustodyStatusRead.model_validate(
        custody_service.custody_status(booking, requester_id=current_user.id)
    )
