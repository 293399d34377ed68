"""Pydantic schemas for listings and sub-slots."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from stow.models.listing import ListingKind, VehicleClass


class ListingBase(BaseModel):
    """Shared listing fields."""

    kind: ListingKind
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    address: str | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    length_ft: float | None = Field(default=None, ge=0)
    width_ft: float | None = Field(default=None, ge=0)
    height_ft: float | None = Field(default=None, ge=0)
    vehicle_class: VehicleClass | None = None
    subtypes: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    image_url: str | None = None
    has_locker: bool = False
    has_cctv: bool = False
    has_ev_charge: bool = False
    is_waterproof: bool = False
    has_security_guard: bool = False


class ListingCreate(ListingBase):
    """Payload for creating listings."""


class ListingPatch(BaseModel):
    """Partial listing update; omitted or null fields are left unchanged."""

    kind: ListingKind | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    length_ft: float | None = Field(default=None, ge=0)
    width_ft: float | None = Field(default=None, ge=0)
    height_ft: float | None = Field(default=None, ge=0)
    vehicle_class: VehicleClass | None = None
    subtypes: list[str] | None = None
    photos: list[str] | None = None
    image_url: str | None = None
    has_locker: bool | None = None
    has_cctv: bool | None = None
    has_ev_charge: bool | None = None
    is_waterproof: bool | None = None
    has_security_guard: bool | None = None
    is_active: bool | None = None


class SubSlotCreate(BaseModel):
    """Payload for adding a sub-slot to a listing."""

    label: str = Field(min_length=1, max_length=120)
    length_ft: float | None = Field(default=None, ge=0)
    width_ft: float | None = Field(default=None, ge=0)
    height_ft: float | None = Field(default=None, ge=0)


class SubSlotRead(SubSlotCreate):
    """Serialized sub-slot."""

    id: uuid.UUID
    listing_id: uuid.UUID
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ListingRead(ListingBase):
    """Serialized listing representation."""

    id: uuid.UUID
    owner_id: uuid.UUID
    length_ft: float
    width_ft: float
    price_per_block: Decimal
    is_active: bool
    parent_listing_id: uuid.UUID | None = None
    sub_slots: list[SubSlotRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ListingSplitRequest(BaseModel):
    """New footprint to keep on the original listing."""

    new_length_ft: float
    new_width_ft: float


class ListingSplitResponse(BaseModel):
    """Both listings produced by a split."""

    original: ListingRead
    remainder: ListingRead
