"""Service layer exports."""
from stow.services import (
    auth_service,
    booking_service,
    custody_service,
    listing_service,
    pricing_service,
    scheduling_service,
    user_service,
)

__all__ = [
    "auth_service",
    "booking_service",
    "custody_service",
    "listing_service",
    "pricing_service",
    "scheduling_service",
    "user_service",
]
