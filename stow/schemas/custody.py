"""Custody handshake schemas."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from stow.models.booking import BookingStatus, CustodyState


class ScanTokenRead(BaseModel):
    """Token the provider displays as a QR code."""

    booking_id: uuid.UUID
    scan_token: str
    action: str
    custody_state: CustodyState

    model_config = ConfigDict(from_attributes=True)


class ScanRequest(BaseModel):
    """Token scanned by the seeker."""

    scan_token: str = Field(min_length=1)


class CustodyStatusRead(BaseModel):
    """Custody progress of a booking."""

    booking_id: uuid.UUID
    status: BookingStatus
    custody_state: CustodyState
    handed_over_at: datetime | None = None
    completed_at: datetime | None = None
    scan_token: str | None = None
    overdue: bool = False

    model_config = ConfigDict(from_attributes=True)
