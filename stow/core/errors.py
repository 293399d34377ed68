"""
Domain error taxonomy for the booking core.

Services raise these before any write; the application handler renders
them so each failure reaches the caller with a stable ``code``.
"""
from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse


class StowError(Exception):
    """Base class for business-rule failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def code(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class NotFoundError(StowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ListingNotFound(NotFoundError):
    default_message = "Listing not found"


class SubSlotNotFound(NotFoundError):
    default_message = "Sub-slot not found"


class BookingNotFound(NotFoundError):
    default_message = "Booking not found"


# ---------------------------------------------------------------------------
# Forbidden
# ---------------------------------------------------------------------------


class ForbiddenError(StowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class Forbidden(ForbiddenError):
    pass


class SelfBookingForbidden(ForbiddenError):
    default_message = "Cannot book your own listing"


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------


class ConflictError(StowError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class SlotUnavailable(ConflictError):
    default_message = "Time slot already booked"


class AlreadyCancelled(ConflictError):
    default_message = "Booking is already cancelled"


class AlreadyCompleted(ConflictError):
    default_message = "This booking is already completed"


class CustodyInProgress(ConflictError):
    default_message = "Cannot cancel while items are in custody"


class ListingHasActiveBookings(ConflictError):
    default_message = "Cannot delete a listing with active bookings"


class InvalidTransition(ConflictError):
    default_message = "Invalid custody transition"


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------


class InvalidInputError(StowError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidDimensions(InvalidInputError):
    default_message = (
        "New dimensions must be positive, must not exceed the current dimensions "
        "and must be smaller on at least one axis"
    )


class NoSpaceRemaining(InvalidInputError):
    default_message = "No space left to split"


class InvalidTimeRange(InvalidInputError):
    default_message = "End time must be after start time"


class InvalidToken(StowError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired QR code"


async def stow_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Render a domain error as ``{"detail": ..., "code": ...}``."""
    assert isinstance(exc, StowError)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


__all__ = [
    "AlreadyCancelled",
    "AlreadyCompleted",
    "BookingNotFound",
    "ConflictError",
    "CustodyInProgress",
    "Forbidden",
    "ForbiddenError",
    "InvalidDimensions",
    "InvalidInputError",
    "InvalidTimeRange",
    "InvalidToken",
    "InvalidTransition",
    "ListingHasActiveBookings",
    "ListingNotFound",
    "NoSpaceRemaining",
    "NotFoundError",
    "SelfBookingForbidden",
    "SlotUnavailable",
    "StowError",
    "SubSlotNotFound",
    "stow_error_handler",
]
