"""Seed a provider account with a few listings for local development."""
from __future__ import annotations

import asyncio

from sqlalchemy import select

from stow.core.config import get_settings
from stow.core.security import get_password_hash
from stow.db.session import get_sessionmaker
from stow.models import Listing, ListingKind, User, VehicleClass
from stow.services import pricing_service

EMAIL = "provider@stow.local"
PASSWORD = "provider123"

LISTINGS = [
    {
        "kind": ListingKind.STORAGE,
        "title": "Garage corner",
        "length_ft": 10,
        "width_ft": 10,
        "has_cctv": True,
    },
    {
        "kind": ListingKind.STORAGE,
        "title": "Basement room",
        "length_ft": 20,
        "width_ft": 12,
        "is_waterproof": True,
    },
    {
        "kind": ListingKind.PARKING,
        "title": "Covered driveway",
        "vehicle_class": VehicleClass.FOUR_WHEELER,
        "subtypes": ["Covered"],
    },
]


async def main() -> None:
    settings = get_settings()
    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        existing = await session.execute(select(User).where(User.email == EMAIL))
        if existing.scalar_one_or_none() is not None:
            print(f"User {EMAIL} already exists")
            return

        provider = User(
            email=EMAIL,
            hashed_password=get_password_hash(PASSWORD),
            full_name="Dev Provider",
        )
        session.add(provider)
        for values in LISTINGS:
            listing = Listing(
                owner=provider,
                latitude=41.9779,
                longitude=-91.6656,
                **{"subtypes": [], "photos": [], **values},
            )
            listing.price_per_block = pricing_service.listing_block_rate(listing)
            session.add(listing)

        await session.commit()
        print(f"Created provider {EMAIL} / {PASSWORD} with {len(LISTINGS)} listings")


if __name__ == "__main__":
    asyncio.run(main())
