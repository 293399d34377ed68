"""Booking model with embedded custody tracking."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stow.db.base import Base
from stow.models.listing import JSONB_TYPE, _enum_values
from stow.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from stow.models.listing import Listing, SubSlot
    from stow.models.user import User


class BookingStatus(str, enum.Enum):
    """Lifecycle states for bookings."""

    CONFIRMED = "confirmed"
    IN_CUSTODY = "in_custody"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CustodyState(str, enum.Enum):
    """Physical possession states of the booked item or vehicle."""

    PENDING = "Pending"
    IN_CUSTODY = "In-Custody"
    COMPLETED = "Completed"


ACTIVE_BOOKING_STATUSES = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.IN_CUSTODY}
)
TERMINAL_BOOKING_STATUSES = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED}
)


class Booking(TimestampMixin, Base):
    """Reservation of a listing, or of one of its sub-slots, for a time range."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_listing_status", "listing_id", "status"),
        Index("ix_bookings_sub_slot_status", "sub_slot_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    sub_slot_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("sub_slots.id", ondelete="CASCADE")
    )
    seeker_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, values_callable=_enum_values),
        default=BookingStatus.CONFIRMED,
        nullable=False,
    )
    custody_state: Mapped[CustodyState] = mapped_column(
        Enum(CustodyState, values_callable=_enum_values),
        default=CustodyState.PENDING,
        nullable=False,
    )
    scan_token: Mapped[str | None] = mapped_column(String(64))
    item_photos: Mapped[list[str]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    item_description: Mapped[str | None] = mapped_column(Text())
    refund_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    refund_percent: Mapped[int | None] = mapped_column(Integer)
    handed_over_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    listing: Mapped["Listing"] = relationship("Listing")
    sub_slot: Mapped["SubSlot | None"] = relationship("SubSlot")
    seeker: Mapped["User"] = relationship("User", foreign_keys=[seeker_id])
    provider: Mapped["User"] = relationship("User", foreign_keys=[provider_id])

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES
