"""Authentication endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from stow.api.deps import CurrentUser, SessionDep
from stow.core.config import get_settings
from stow.schemas.auth import RegistrationRequest, RegistrationResponse, Token
from stow.schemas.user import UserRead
from stow.services import user_service
from stow.services.auth_service import authenticate_user, create_access_token_for_user

router = APIRouter()

_settings = get_settings()


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    window = window_str.strip().lower().rstrip("s")
    seconds_map = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
    return count, seconds_map.get(window, fallback[1])


_LOGIN_LIMIT = _parse_rate(_settings.rate_limit_login, fallback=(10, 60))
_DEFAULT_LIMIT = _parse_rate(_settings.rate_limit_default, fallback=(100, 60))


def _rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        # Limiter is only active once redis was reachable at startup.
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


_LOGIN_RATE_DEP = _rate_dependency(_LOGIN_LIMIT)
_DEFAULT_RATE_DEP = _rate_dependency(_DEFAULT_LIMIT)


@router.post(
    "/token",
    response_model=Token,
    summary="Obtain access token",
    dependencies=[_LOGIN_RATE_DEP],
)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: SessionDep,
) -> Token:
    """Validate credentials and issue a bearer token."""
    user = await authenticate_user(
        session, email=form_data.username, password=form_data.password
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=create_access_token_for_user(user))


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def register_user(
    payload: RegistrationRequest,
    session: SessionDep,
) -> RegistrationResponse:
    existing = await user_service.get_user_by_email(
        session, email=payload.email.lower()
    )
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
        )
    user = await user_service.create_user(session, payload)
    return RegistrationResponse(
        token=Token(access_token=create_access_token_for_user(user)),
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=UserRead, summary="Current user")
async def read_current_user(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)
