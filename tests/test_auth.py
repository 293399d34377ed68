"""Registration and login tests."""

from __future__ import annotations

import logging
from typing import Any

import pytest
from httpx import AsyncClient

from stow.security.logging_filters import SensitiveFilter

pytestmark = pytest.mark.asyncio


async def test_registration_and_login(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    payload = {
        "email": "New.User@example.com",
        "password": "RegisterMe1!",
        "full_name": "Nia New",
    }
    register_resp = await client.post("/api/v1/auth/register", json=payload)
    assert register_resp.status_code == 201
    body = register_resp.json()
    assert body["user"]["email"] == "new.user@example.com"
    assert "access_token" in body["token"]

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {body['token']['access_token']}"},
    )
    assert me.status_code == 200
    assert me.json()["full_name"] == "Nia New"

    login_resp = await client.post(
        "/api/v1/auth/token",
        data={"username": "new.user@example.com", "password": payload["password"]},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert login_resp.status_code == 200
    assert login_resp.json()["token_type"] == "bearer"


async def test_duplicate_registration_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": app_context["seeker_email"],
            "password": "Whatever123",
            "full_name": "Copy Cat",
        },
    )
    assert response.status_code == 400


async def test_bad_password_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/auth/token",
        data={"username": app_context["seeker_email"], "password": "wrong-password"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 401


async def test_invalid_bearer_token(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


async def test_log_filter_redacts_scan_tokens() -> None:
    record = logging.LogRecord(
        "stow", logging.INFO, __file__, 1, '{"scan_token": "abc123", "ok": 1}', None, None
    )
    SensitiveFilter().filter(record)
    assert "abc123" not in record.msg
    assert "**REDACTED**" in record.msg
