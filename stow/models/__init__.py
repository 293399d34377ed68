"""ORM models package export."""

from stow.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    CustodyState,
)
from stow.models.listing import Listing, ListingKind, SubSlot, VehicleClass
from stow.models.user import User

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "CustodyState",
    "Listing",
    "ListingKind",
    "SubSlot",
    "User",
    "VehicleClass",
]
