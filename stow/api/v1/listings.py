"""Listing management API."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from stow.api.deps import CurrentUser, SessionDep
from stow.schemas.listing import (
    ListingCreate,
    ListingPatch,
    ListingRead,
    ListingSplitRequest,
    ListingSplitResponse,
    SubSlotCreate,
    SubSlotRead,
)
from stow.services import listing_service

router = APIRouter()


@router.post(
    "",
    response_model=ListingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
)
async def create_listing(
    payload: ListingCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> ListingRead:
    listing = await listing_service.create_listing(
        session, owner_id=current_user.id, payload=payload
    )
    return ListingRead.model_validate(listing)


@router.get("/mine", response_model=list[ListingRead], summary="List my listings")
async def list_my_listings(
    session: SessionDep,
    current_user: CurrentUser,
    skip: int = 0,
    limit: int = 50,
) -> list[ListingRead]:
    listings = await listing_service.list_owner_listings(
        session, owner_id=current_user.id, skip=skip, limit=min(limit, 100)
    )
    return [ListingRead.model_validate(obj) for obj in listings]


@router.get("/{listing_id}", response_model=ListingRead, summary="Get listing")
async def get_listing(listing_id: uuid.UUID, session: SessionDep) -> ListingRead:
    listing = await listing_service.get_listing(session, listing_id)
    return ListingRead.model_validate(listing)


@router.patch("/{listing_id}", response_model=ListingRead, summary="Update listing")
async def update_listing(
    listing_id: uuid.UUID,
    payload: ListingPatch,
    session: SessionDep,
    current_user: CurrentUser,
) -> ListingRead:
    listing = await listing_service.get_listing(session, listing_id)
    updated = await listing_service.update_listing(
        session, listing=listing, requester_id=current_user.id, patch=payload
    )
    return ListingRead.model_validate(updated)


@router.delete(
    "/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete listing",
)
async def delete_listing(
    listing_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
) -> None:
    listing = await listing_service.get_listing(session, listing_id)
    await listing_service.delete_listing(
        session, listing=listing, requester_id=current_user.id
    )
    return None


@router.post(
    "/{listing_id}/subslots",
    response_model=SubSlotRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add sub-slot",
)
async def add_sub_slot(
    listing_id: uuid.UUID,
    payload: SubSlotCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> SubSlotRead:
    listing = await listing_service.get_listing(session, listing_id)
    sub_slot = await listing_service.add_sub_slot(
        session, listing=listing, requester_id=current_user.id, payload=payload
    )
    return SubSlotRead.model_validate(sub_slot)


@router.post(
    "/{listing_id}/split",
    response_model=ListingSplitResponse,
    summary="Split listing",
)
async def split_listing(
    listing_id: uuid.UUID,
    payload: ListingSplitRequest,
    session: SessionDep,
    current_user: CurrentUser,
) -> ListingSplitResponse:
    listing = await listing_service.get_listing(session, listing_id)
    original, remainder = await listing_service.split_listing(
        session,
        listing=listing,
        requester_id=current_user.id,
        new_length=payload.new_length_ft,
        new_width=payload.new_width_ft,
    )
    return ListingSplitResponse(
        original=ListingRead.model_validate(original),
        remainder=ListingRead.model_validate(remainder),
    )
