from __future__ import annotations

import logging

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from roundbook.core.auth import RequestUserContext, ensure_owner, is_owner
from roundbook.core.config import get_settings


def _context(user_id: int) -> RequestUserContext:
    return RequestUserContext(
        user_id=user_id,
        subject=f"subject-{user_id}",
        email=f"user{user_id}@test.local",
        display_name=f"User {user_id}",
    )


def test_is_owner_matches_recorded_owner() -> None:
    context = _context(7)

    assert is_owner(context, 7) is True
    assert is_owner(context, 8) is False


def test_ensure_owner_raises_forbidden_for_other_owner() -> None:
    with pytest.raises(HTTPException) as excinfo:
        ensure_owner(_context(1), 2)

    assert excinfo.value.status_code == 403


def test_ensure_owner_logs_acting_user_and_owner(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="roundbook.core.auth")

    with pytest.raises(HTTPException):
        ensure_owner(_context(3), 4)

    record = caplog.records[-1]
    assert record.user_id == 3
    assert record.owner_id == 4


def test_me_upserts_user_from_headers(client: TestClient) -> None:
    headers = {
        "X-AUTH-SUBJECT": "courier-me",
        "X-AUTH-EMAIL": "Courier.Me@Test.Local",
        "X-AUTH-NAME": "Courier Me",
    }

    first = client.get("/api/v1/me", headers=headers)
    second = client.get("/api/v1/me", headers={**headers, "X-AUTH-NAME": "Renamed"})

    assert first.status_code == 200
    assert first.json()["email"] == "courier.me@test.local"
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["display_name"] == "Renamed"


def test_dev_principal_fallback(client: TestClient) -> None:
    response = client.get("/api/v1/me")

    assert response.status_code == 200
    assert response.json()["subject"] == get_settings().auth_dev_subject


def test_missing_identity_without_fallback_is_unauthorized(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(get_settings(), "auth_allow_dev_principal", False)

    response = client.get("/api/v1/rounds")

    assert response.status_code == 401
