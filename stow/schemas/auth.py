"""Authentication schemas."""
from __future__ import annotations

from pydantic import BaseModel

from stow.schemas.user import UserCreate, UserRead


class Token(BaseModel):
    """Response body for access tokens."""

    access_token: str
    token_type: str = "bearer"


class RegistrationRequest(UserCreate):
    """Self-service registration payload."""


class RegistrationResponse(BaseModel):
    """Response after successful self-service registration."""

    token: Token
    user: UserRead
