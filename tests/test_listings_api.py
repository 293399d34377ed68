"""Listing management and split integration tests."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from stow.db.session import get_sessionmaker
from stow.models import Listing
from stow.services import listing_service

pytestmark = pytest.mark.asyncio


async def _authenticate(client: AsyncClient, email: str, password: str) -> dict[str, str]:
    response = await client.post(
        "/api/v1/auth/token",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def test_create_storage_and_parking_listings(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    seeker = await _authenticate(
        client, app_context["seeker_email"], app_context["password"]
    )

    storage = await client.post(
        "/api/v1/listings",
        json={
            "kind": "storage",
            "title": "Spare room",
            "latitude": 41.9,
            "longitude": -91.6,
            "length_ft": 10,
            "width_ft": 10,
            "vehicle_class": "4-wheeler",
            "has_cctv": True,
        },
        headers=seeker,
    )
    assert storage.status_code == 201, storage.text
    body = storage.json()
    assert body["owner_id"] == str(app_context["seeker_id"])
    assert body["vehicle_class"] is None
    assert Decimal(body["price_per_block"]) == Decimal("240")
    assert body["has_cctv"] is True

    parking = await client.post(
        "/api/v1/listings",
        json={
            "kind": "parking",
            "title": "Open lot",
            "latitude": 41.9,
            "longitude": -91.6,
            "length_ft": 15,
            "width_ft": 8,
            "vehicle_class": "2-wheeler",
        },
        headers=seeker,
    )
    assert parking.status_code == 201
    assert parking.json()["length_ft"] == 0
    assert Decimal(parking.json()["price_per_block"]) == Decimal("4")

    mine = await client.get("/api/v1/listings/mine", headers=seeker)
    assert {item["title"] for item in mine.json()} == {"Spare room", "Open lot"}


async def test_patch_updates_only_given_fields(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    listing_id = app_context["large_listing_id"]

    response = await client.patch(
        f"/api/v1/listings/{listing_id}",
        json={"title": "Dry basement"},
        headers=owner,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Dry basement"
    assert body["length_ft"] == 20
    assert body["width_ft"] == 10

    resized = await client.patch(
        f"/api/v1/listings/{listing_id}", json={"width_ft": 5}, headers=owner
    )
    assert Decimal(resized.json()["price_per_block"]) == Decimal("240")


@pytest.mark.parametrize("field", ["title", "latitude", "kind", "has_cctv", "length_ft"])
async def test_patch_null_fields_are_left_unchanged(
    app_context: dict[str, Any], field: str
) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    listing_id = app_context["large_listing_id"]
    before = (await client.get(f"/api/v1/listings/{listing_id}")).json()

    response = await client.patch(
        f"/api/v1/listings/{listing_id}",
        json={field: None, "description": "Dry and lit"},
        headers=owner,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body[field] == before[field]
    assert body["description"] == "Dry and lit"
    assert body["price_per_block"] == before["price_per_block"]


async def test_patch_requires_owner(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    seeker = await _authenticate(
        client, app_context["seeker_email"], app_context["password"]
    )
    response = await client.patch(
        f"/api/v1/listings/{app_context['large_listing_id']}",
        json={"title": "Mine now"},
        headers=seeker,
    )
    assert response.status_code == 403


async def test_split_along_one_axis(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    listing_id = app_context["large_listing_id"]

    response = await client.post(
        f"/api/v1/listings/{listing_id}/split",
        json={"new_length_ft": 12, "new_width_ft": 10},
        headers=owner,
    )
    assert response.status_code == 200, response.text
    original = response.json()["original"]
    remainder = response.json()["remainder"]

    assert original["id"] == str(listing_id)
    assert (original["length_ft"], original["width_ft"]) == (12, 10)
    assert (remainder["length_ft"], remainder["width_ft"]) == (8, 10)
    assert remainder["parent_listing_id"] == str(listing_id)
    assert remainder["title"] == "Basement (Split)"
    assert remainder["owner_id"] == str(app_context["owner_id"])
    assert Decimal(original["price_per_block"]) == Decimal("288")
    assert Decimal(remainder["price_per_block"]) == Decimal("192")

    mine = await client.get("/api/v1/listings/mine", headers=owner)
    assert len(mine.json()) == 4


async def test_split_both_axes_keeps_total_area(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    response = await client.post(
        f"/api/v1/listings/{app_context['large_listing_id']}/split",
        json={"new_length_ft": 10, "new_width_ft": 5},
        headers=owner,
    )
    assert response.status_code == 200
    remainder = response.json()["remainder"]
    assert remainder["length_ft"] == 20
    assert remainder["width_ft"] == 7.5


@pytest.mark.parametrize(
    ("length", "width"),
    [(25, 10), (20, 10), (0, 10), (-1, 5)],
)
async def test_split_rejects_bad_dimensions(
    app_context: dict[str, Any], length: float, width: float
) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    response = await client.post(
        f"/api/v1/listings/{app_context['large_listing_id']}/split",
        json={"new_length_ft": length, "new_width_ft": width},
        headers=owner,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "InvalidDimensions"

    listing = await client.get(f"/api/v1/listings/{app_context['large_listing_id']}")
    assert listing.json()["length_ft"] == 20


async def test_split_requires_owner(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    seeker = await _authenticate(
        client, app_context["seeker_email"], app_context["password"]
    )
    response = await client.post(
        f"/api/v1/listings/{app_context['large_listing_id']}/split",
        json={"new_length_ft": 10, "new_width_ft": 10},
        headers=seeker,
    )
    assert response.status_code == 403


async def test_delete_blocked_by_live_bookings(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    seeker = await _authenticate(
        client, app_context["seeker_email"], app_context["password"]
    )
    listing_id = app_context["small_listing_id"]
    start = app_context["base_time"]
    booking = await client.post(
        "/api/v1/bookings",
        json={
            "listing_id": str(listing_id),
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
        },
        headers=seeker,
    )
    assert booking.status_code == 201

    blocked = await client.delete(f"/api/v1/listings/{listing_id}", headers=owner)
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "ListingHasActiveBookings"

    await client.patch(f"/api/v1/bookings/{booking.json()['id']}/cancel", headers=seeker)
    deleted = await client.delete(f"/api/v1/listings/{listing_id}", headers=owner)
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/listings/{listing_id}")
    assert missing.status_code == 404


async def test_inactive_listing_cannot_be_booked_or_quoted(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(
        client, app_context["owner_email"], app_context["password"]
    )
    seeker = await _authenticate(
        client, app_context["seeker_email"], app_context["password"]
    )
    listing_id = app_context["small_listing_id"]
    await client.patch(
        f"/api/v1/listings/{listing_id}", json={"is_active": False}, headers=owner
    )
    start = app_context["base_time"]
    response = await client.post(
        "/api/v1/bookings",
        json={
            "listing_id": str(listing_id),
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
        },
        headers=seeker,
    )
    assert response.status_code == 404

    preview = await client.post(
        "/api/v1/bookings/preview-price",
        json={
            "listing_id": str(listing_id),
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
        },
    )
    assert preview.status_code == 404
    assert preview.json()["code"] == "ListingNotFound"


async def test_failed_split_leaves_listing_untouched(
    app_context: dict[str, Any], db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    listing_id = app_context["large_listing_id"]
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        listing = await listing_service.get_listing(session, listing_id)

        async def _failing_commit() -> None:
            # Both rows reach the database before the commit fails.
            await session.flush()
            raise RuntimeError("commit failed")

        monkeypatch.setattr(session, "commit", _failing_commit)
        with pytest.raises(RuntimeError):
            await listing_service.split_listing(
                session,
                listing=listing,
                requester_id=app_context["owner_id"],
                new_length=12,
                new_width=10,
            )

    async with sessionmaker() as session:
        original = await session.get(Listing, listing_id)
        assert (original.length_ft, original.width_ft) == (20, 10)
        remainders = await session.execute(
            select(Listing).where(Listing.parent_listing_id == listing_id)
        )
        assert remainders.scalars().all() == []
