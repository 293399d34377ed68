"""Test fixtures for the booking API."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from stow.core.config import get_settings
from stow.core.security import get_password_hash
from stow.db.base import Base
from stow.db.session import dispose_engine, get_sessionmaker
from stow.main import app
from stow.models import Listing, ListingKind, User, VehicleClass
from stow.models.mixins import utcnow
from stow.services import pricing_service

PASSWORD = "Passw0rd!"


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


def _user(email: str, full_name: str) -> User:
    return User(
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        full_name=full_name,
    )


def _storage(owner: User, title: str, length: float, width: float) -> Listing:
    listing = Listing(
        owner=owner,
        kind=ListingKind.STORAGE,
        title=title,
        latitude=41.97,
        longitude=-91.66,
        length_ft=length,
        width_ft=width,
        subtypes=[],
        photos=[],
    )
    listing.price_per_block = pricing_service.listing_block_rate(listing)
    return listing


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client plus seeded users and listings.

    ``owner`` lists a 10x10 and a 20x10 storage space and a covered
    4-wheeler parking spot; ``seeker`` and ``other`` have no listings.
    """
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        owner = _user("owner@example.com", "Olive Owner")
        seeker = _user("seeker@example.com", "Sam Seeker")
        other = _user("other@example.com", "Oscar Other")
        small = _storage(owner, "Garage corner", 10, 10)
        large = _storage(owner, "Basement", 20, 10)
        parking = Listing(
            owner=owner,
            kind=ListingKind.PARKING,
            title="Driveway spot",
            latitude=41.98,
            longitude=-91.67,
            length_ft=0,
            width_ft=0,
            vehicle_class=VehicleClass.FOUR_WHEELER,
            subtypes=["Covered"],
            photos=[],
        )
        parking.price_per_block = pricing_service.listing_block_rate(parking)
        session.add_all([owner, seeker, other, small, large, parking])
        await session.commit()

        # Whole hour a few days out, so refunds default to 100%.
        base_time = (utcnow() + timedelta(days=3)).replace(
            minute=0, second=0, microsecond=0
        )
        context: dict[str, object] = {
            "password": PASSWORD,
            "owner_id": owner.id,
            "owner_email": owner.email,
            "seeker_id": seeker.id,
            "seeker_email": seeker.email,
            "other_id": other.id,
            "other_email": other.email,
            "small_listing_id": small.id,
            "large_listing_id": large.id,
            "parking_listing_id": parking.id,
            "base_time": base_time,
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context

