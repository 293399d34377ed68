"""Versioned API router."""

from fastapi import APIRouter

from . import auth, bookings, custody, health, listings

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(listings.router, prefix="/listings", tags=["listings"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(custody.router, prefix="/custody", tags=["custody"])
