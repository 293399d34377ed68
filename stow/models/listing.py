"""Listing and sub-slot models for bookable space."""
from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, Enum, Float, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from stow.db.base import Base
from stow.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from stow.models.user import User

JSONB_TYPE = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")

COVERED_SUBTYPE = "Covered"


class ListingKind(str, enum.Enum):
    """Kinds of space a provider can list."""

    STORAGE = "storage"
    PARKING = "parking"


class VehicleClass(str, enum.Enum):
    """Vehicle classes accepted by parking listings."""

    TWO_WHEELER = "2-wheeler"
    FOUR_WHEELER = "4-wheeler"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Listing(TimestampMixin, Base):
    """A bookable storage space or parking spot."""

    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[ListingKind] = mapped_column(
        Enum(ListingKind, values_callable=_enum_values), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    address: Mapped[str | None] = mapped_column(String(512))
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    length_ft: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    width_ft: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    height_ft: Mapped[float | None] = mapped_column(Float)
    vehicle_class: Mapped[VehicleClass | None] = mapped_column(
        Enum(VehicleClass, values_callable=_enum_values)
    )
    subtypes: Mapped[list[str]] = mapped_column(JSONB_TYPE, default=list, nullable=False)
    photos: Mapped[list[str]] = mapped_column(JSONB_TYPE, default=list, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(1024))
    has_locker: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_cctv: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_ev_charge: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_waterproof: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_security_guard: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    price_per_block: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    parent_listing_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("listings.id", ondelete="SET NULL")
    )

    owner: Mapped["User"] = relationship("User", back_populates="listings")
    sub_slots: Mapped[list["SubSlot"]] = relationship(
        "SubSlot", back_populates="listing", cascade="all, delete-orphan"
    )

    @property
    def area_sqft(self) -> float:
        return (self.length_ft or 0) * (self.width_ft or 0)

    @property
    def is_covered(self) -> bool:
        return COVERED_SUBTYPE in (self.subtypes or [])

    def copy_attributes(self) -> dict[str, Any]:
        """Return the metadata a split remainder inherits from this listing."""
        return {
            "owner_id": self.owner_id,
            "kind": self.kind,
            "description": self.description,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "height_ft": self.height_ft,
            "vehicle_class": self.vehicle_class,
            "subtypes": list(self.subtypes or []),
            "photos": list(self.photos or []),
            "image_url": self.image_url,
            "has_locker": self.has_locker,
            "has_cctv": self.has_cctv,
            "has_ev_charge": self.has_ev_charge,
            "is_waterproof": self.is_waterproof,
            "has_security_guard": self.has_security_guard,
            "is_active": self.is_active,
        }


class SubSlot(TimestampMixin, Base):
    """Independently bookable subdivision of a listing."""

    __tablename__ = "sub_slots"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label: Mapped[str] = mapped_column(String(120), nullable=False)
    length_ft: Mapped[float | None] = mapped_column(Float)
    width_ft: Mapped[float | None] = mapped_column(Float)
    height_ft: Mapped[float | None] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    listing: Mapped[Listing] = relationship("Listing", back_populates="sub_slots")
