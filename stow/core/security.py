"""Security utilities for hashing, JWT handling and custody scan tokens."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import jwt

from stow.core.config import get_settings

settings = get_settings()

SCAN_TOKEN_BYTES = 24


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its hash using bcrypt."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except (ValueError, TypeError):  # guard against malformed hashes
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage using bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(
    subject: str, expires_delta: timedelta | None = None, **extra: Any
) -> str:
    """Create a JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(UTC) + expires_delta
    claims: dict[str, Any] = {"sub": subject, "exp": expire}
    claims.update(extra)
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a JWT token, raising JWTError on failure."""
    return jwt.decode(
        token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
    )


def generate_scan_token() -> str:
    """Return a fresh unguessable one-time token for a custody QR code."""
    return secrets.token_urlsafe(SCAN_TOKEN_BYTES)


def scan_token_matches(presented: str | None, stored: str | None) -> bool:
    """Compare a presented scan token with the stored one in constant time.

    An empty stored token never matches, so a booking without a minted code
    cannot be advanced.
    """
    if not presented or not stored:
        return False
    return secrets.compare_digest(presented.encode(), stored.encode())
