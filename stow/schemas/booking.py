"""Pydantic schemas for bookings and price previews."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stow.models.booking import BookingStatus, CustodyState
from stow.schemas.common import to_utc


class TimeRange(BaseModel):
    """ISO-8601 time range; naive timestamps are read as UTC."""

    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


class BookingCreate(TimeRange):
    """Payload for creating bookings."""

    listing_id: uuid.UUID
    sub_slot_id: uuid.UUID | None = None
    item_photos: list[str] = Field(default_factory=list)
    item_description: str | None = None


class PricePreviewRequest(TimeRange):
    """Quote request for a listing; no booking is created."""

    listing_id: uuid.UUID


class PriceBreakdownRead(BaseModel):
    """Pricing breakdown returned by the preview endpoint."""

    total: int
    blocks: int
    minutes: int
    per_block: float
    effective_rate: float
    savings_percent: int
    area: float | None = None
    decay: float | None = None
    base_rate: int | None = None
    parking_type: str | None = None
    vehicle_class: str | None = None
    is_parking: bool = False

    model_config = ConfigDict(from_attributes=True)


class TimeSlotRead(BaseModel):
    """Free 15-minute slot."""

    start: datetime
    end: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingRead(BaseModel):
    """Serialized booking representation."""

    id: uuid.UUID
    listing_id: uuid.UUID
    sub_slot_id: uuid.UUID | None = None
    seeker_id: uuid.UUID
    provider_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    total_price: Decimal
    status: BookingStatus
    custody_state: CustodyState
    item_photos: list[str] = Field(default_factory=list)
    item_description: str | None = None
    refund_amount: Decimal | None = None
    refund_percent: int | None = None
    handed_over_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
