"""Schema exports."""

from stow.schemas.auth import RegistrationRequest, RegistrationResponse, Token
from stow.schemas.booking import (
    BookingCreate,
    BookingRead,
    PriceBreakdownRead,
    PricePreviewRequest,
    TimeSlotRead,
)
from stow.schemas.custody import CustodyStatusRead, ScanRequest, ScanTokenRead
from stow.schemas.listing import (
    ListingCreate,
    ListingPatch,
    ListingRead,
    ListingSplitRequest,
    ListingSplitResponse,
    SubSlotCreate,
    SubSlotRead,
)
from stow.schemas.user import UserCreate, UserRead

__all__ = [
    "BookingCreate",
    "BookingRead",
    "CustodyStatusRead",
    "ListingCreate",
    "ListingPatch",
    "ListingRead",
    "ListingSplitRequest",
    "ListingSplitResponse",
    "PriceBreakdownRead",
    "PricePreviewRequest",
    "RegistrationRequest",
    "RegistrationResponse",
    "ScanRequest",
    "ScanTokenRead",
    "SubSlotCreate",
    "SubSlotRead",
    "Token",
    "TimeSlotRead",
    "UserCreate",
    "UserRead",
]
