from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roundbook.core.auth import ensure_user_principal
from roundbook.core.config import get_settings
from roundbook.models.entities import Activity, ParcelType, Round


def _headers(subject: str, email: str, name: str) -> dict[str, str]:
    return {
        "X-AUTH-SUBJECT": subject,
        "X-AUTH-EMAIL": email,
        "X-AUTH-NAME": name,
    }


OWNER = _headers("courier-a", "courier.a@test.local", "Courier A")
OTHER = _headers("courier-b", "courier.b@test.local", "Courier B")


def _round_with_parcel_types(client: TestClient, headers: dict[str, str], name: str = "Round 4") -> tuple[int, list[int]]:
    created = client.post("/api/v1/rounds", headers=headers, json={"name": name, "active": True})
    assert created.status_code == 201
    round_id = created.json()["id"]

    bulk = client.post(
        "/api/v1/parcel-types/bulk",
        headers=headers,
        json={
            "round_id": round_id,
            "parcel_types": [
                {"name": "Postable", "max_weight": 0.1, "max_length": 35.3, "rate": 0.56},
                {"name": "Parcel", "max_weight": 2.0, "max_length": 100.0, "rate": 0.94},
            ],
        },
    )
    assert bulk.status_code == 201
    return round_id, [item["id"] for item in bulk.json()["items"]]


def _seed_activities(db: Session, *, count: int) -> None:
    user = ensure_user_principal(db, subject="courier-a", email="courier.a@test.local", display_name="Courier A")
    now = datetime.utcnow()
    round_ = Round(user_id=user.id, name="Round 4", active=True, created_at=now, updated_at=now)
    parcel_type = ParcelType(
        name="Parcel",
        max_weight=Decimal("2.00"),
        max_length=Decimal("100.00"),
        rate=Decimal("0.94"),
        created_at=now,
        updated_at=now,
    )
    round_.parcel_types = [parcel_type]
    db.add(round_)
    db.flush()
    for index in range(count):
        db.add(
            Activity(
                user_id=user.id,
                parcel_type_id=parcel_type.id,
                activity_date=date(2025, 3, 1) + timedelta(days=index % 28),
                quantity=index + 1,
                created_at=now,
                updated_at=now,
            )
        )
    db.commit()


def test_create_update_delete_activity(client: TestClient) -> None:
    _, (postable, parcel) = _round_with_parcel_types(client, OWNER)

    created = client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": 12},
    )
    assert created.status_code == 201
    activity_id = created.json()["id"]

    updated = client.put(
        f"/api/v1/activities/{activity_id}",
        headers=OWNER,
        json={"parcel_type_id": parcel, "activity_date": "2025-03-04", "quantity": 0},
    )
    assert updated.status_code == 200
    assert updated.json()["parcel_type_id"] == parcel
    assert updated.json()["quantity"] == 0
    assert updated.json()["activity_date"] == "2025-03-04"

    deleted = client.delete(f"/api/v1/activities/{activity_id}", headers=OWNER)
    assert deleted.status_code == 204
    assert client.delete(f"/api/v1/activities/{activity_id}", headers=OWNER).status_code == 404


def test_activity_validation(client: TestClient) -> None:
    _, (postable, _) = _round_with_parcel_types(client, OWNER)

    negative = client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": -1},
    )
    fractional = client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": 1.5},
    )
    unknown_type = client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": 9999, "activity_date": "2025-03-03", "quantity": 1},
    )
    bad_date = client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": postable, "activity_date": "not-a-date", "quantity": 1},
    )

    assert negative.status_code == 422
    assert fractional.status_code == 422
    assert unknown_type.status_code == 422
    assert unknown_type.json()["detail"][0]["loc"] == ["body", "parcel_type_id"]
    assert bad_date.status_code == 422


def test_activity_mutations_require_owner(client: TestClient, db_session: Session) -> None:
    _, (postable, _) = _round_with_parcel_types(client, OWNER)
    activity_id = client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": 12},
    ).json()["id"]

    denied_update = client.put(
        f"/api/v1/activities/{activity_id}",
        headers=OTHER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": 99},
    )
    denied_delete = client.delete(f"/api/v1/activities/{activity_id}", headers=OTHER)
    denied_record = client.post(
        "/api/v1/activities",
        headers=OTHER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": 1},
    )

    assert denied_update.status_code == 403
    assert denied_delete.status_code == 403
    assert denied_record.status_code == 403
    db_session.expire_all()
    assert db_session.get(Activity, activity_id).quantity == 12
    assert db_session.scalar(select(func.count(Activity.id))) == 1


def test_bulk_create_skips_zero_quantities(client: TestClient, db_session: Session) -> None:
    round_id, (postable, parcel) = _round_with_parcel_types(client, OWNER)

    response = client.post(
        "/api/v1/activities/bulk",
        headers=OWNER,
        json={
            "activity_date": "2025-03-05",
            "round_id": round_id,
            "quantities": [
                {"parcel_type_id": postable, "quantity": 0},
                {"parcel_type_id": parcel, "quantity": 3},
            ],
        },
    )

    assert response.status_code == 201
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["parcel_type_id"] == parcel
    assert items[0]["quantity"] == 3
    assert items[0]["activity_date"] == "2025-03-05"
    assert db_session.scalar(select(func.count(Activity.id))) == 1


def test_bulk_create_logs_structured_fields(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    round_id, (postable, parcel) = _round_with_parcel_types(client, OWNER)
    caplog.set_level(logging.INFO, logger="roundbook.services.activity_service")

    response = client.post(
        "/api/v1/activities/bulk",
        headers=OWNER,
        json={
            "activity_date": "2025-03-05",
            "round_id": round_id,
            "quantities": [
                {"parcel_type_id": postable, "quantity": 2},
                {"parcel_type_id": parcel, "quantity": 3},
            ],
        },
    )

    assert response.status_code == 201
    record = next(r for r in caplog.records if r.getMessage().startswith("Recorded 2 activities"))
    assert record.entity == "round"
    assert record.entity_id == round_id
    assert record.count == 2


def test_bulk_create_is_all_or_nothing(client: TestClient, db_session: Session) -> None:
    round_id, (postable, _) = _round_with_parcel_types(client, OWNER)
    _, (foreign_type, _) = _round_with_parcel_types(client, OWNER, "Round 14")

    wrong_round = client.post(
        "/api/v1/activities/bulk",
        headers=OWNER,
        json={
            "activity_date": "2025-03-05",
            "round_id": round_id,
            "quantities": [
                {"parcel_type_id": postable, "quantity": 5},
                {"parcel_type_id": foreign_type, "quantity": 2},
            ],
        },
    )
    unknown_type = client.post(
        "/api/v1/activities/bulk",
        headers=OWNER,
        json={
            "activity_date": "2025-03-05",
            "round_id": round_id,
            "quantities": [
                {"parcel_type_id": postable, "quantity": 5},
                {"parcel_type_id": 9999, "quantity": 0},
            ],
        },
    )

    assert wrong_round.status_code == 422
    assert wrong_round.json()["detail"][0]["loc"] == ["body", "quantities", 1, "parcel_type_id"]
    assert unknown_type.status_code == 422
    assert unknown_type.json()["detail"][0]["loc"] == ["body", "quantities", 1, "parcel_type_id"]
    assert db_session.scalar(select(func.count(Activity.id))) == 0


def test_bulk_create_on_foreign_round_is_forbidden(client: TestClient) -> None:
    round_id, (postable, _) = _round_with_parcel_types(client, OWNER)

    response = client.post(
        "/api/v1/activities/bulk",
        headers=OTHER,
        json={
            "activity_date": "2025-03-05",
            "round_id": round_id,
            "quantities": [{"parcel_type_id": postable, "quantity": 5}],
        },
    )
    unknown_round = client.post(
        "/api/v1/activities/bulk",
        headers=OTHER,
        json={
            "activity_date": "2025-03-05",
            "round_id": 9999,
            "quantities": [{"parcel_type_id": postable, "quantity": 5}],
        },
    )

    assert response.status_code == 403
    assert unknown_round.status_code == 422


def test_activity_listing_pages_fifty_rows(client: TestClient, db_session: Session) -> None:
    _seed_activities(db_session, count=120)

    page_two = client.get("/api/v1/activities", headers=OWNER, params={"page": 2}).json()["activities"]
    page_three = client.get("/api/v1/activities", headers=OWNER, params={"page": 3}).json()["activities"]
    page_four = client.get("/api/v1/activities", headers=OWNER, params={"page": 4}).json()["activities"]

    assert page_two["per_page"] == 50
    assert page_two["total"] == 120
    assert page_two["last_page"] == 3
    assert len(page_two["items"]) == 50
    assert [row["quantity"] for row in page_two["items"]] == list(range(51, 101))
    assert len(page_three["items"]) == 20
    assert page_four["items"] == []


def test_activity_listing_projects_parcel_type_and_round(client: TestClient) -> None:
    round_id, (postable, parcel) = _round_with_parcel_types(client, OWNER)
    client.post(
        "/api/v1/activities",
        headers=OWNER,
        json={"parcel_type_id": postable, "activity_date": "2025-03-03", "quantity": 12},
    )

    payload = client.get("/api/v1/activities", headers=OWNER).json()
    row = payload["activities"]["items"][0]

    assert row["parcel_type"] == {"id": postable, "name": "Postable", "round_id": round_id, "rate": "0.56"}
    assert row["round"] == {"id": round_id, "name": "Round 4"}
    assert set(row) == {"id", "activity_date", "parcel_type_id", "quantity", "parcel_type", "round"}
    assert [item["id"] for item in payload["parcel_types"]] == [postable, parcel]
    assert payload["rounds"][0]["parcel_types"][0] == {"id": postable, "name": "Postable", "round_id": round_id}
    assert payload["date_periods"] == []

    assert client.get("/api/v1/activities", headers=OTHER).json()["activities"]["total"] == 0


def test_activity_listing_rejects_page_zero(client: TestClient) -> None:
    assert client.get("/api/v1/activities", headers=OWNER, params={"page": 0}).status_code == 422


def test_cached_rounds_stay_stale_without_invalidation(
    client: TestClient, clock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(get_settings(), "reference_cache_invalidate_on_write", False)
    client.post("/api/v1/rounds", headers=OWNER, json={"name": "Round 4", "active": True})
    client.post(
        "/api/v1/date-periods",
        headers=OWNER,
        json={"name": "Period 1", "start_date": "2025-03-01", "end_date": "2025-03-28"},
    )

    first = client.get("/api/v1/activities", headers=OWNER).json()
    assert [row["name"] for row in first["rounds"]] == ["Round 4"]

    client.post("/api/v1/rounds", headers=OWNER, json={"name": "Round 14", "active": True})
    client.post(
        "/api/v1/date-periods",
        headers=OWNER,
        json={"name": "Period 2", "start_date": "2025-03-29", "end_date": "2025-05-02"},
    )
    clock.advance(60 * 60 * 23)
    stale = client.get("/api/v1/activities", headers=OWNER).json()
    assert [row["name"] for row in stale["rounds"]] == ["Round 4"]
    assert [row["name"] for row in stale["date_periods"]] == ["Period 1"]
    # The dedicated listing is never cached.
    assert len(client.get("/api/v1/rounds", headers=OWNER).json()["items"]) == 2

    clock.advance(60 * 60 + 1)
    fresh = client.get("/api/v1/activities", headers=OWNER).json()
    assert [row["name"] for row in fresh["rounds"]] == ["Round 14", "Round 4"]
    assert [row["name"] for row in fresh["date_periods"]] == ["Period 1", "Period 2"]


def test_cached_rounds_refresh_on_write_when_invalidation_enabled(client: TestClient) -> None:
    client.post("/api/v1/rounds", headers=OWNER, json={"name": "Round 4", "active": True})
    assert len(client.get("/api/v1/activities", headers=OWNER).json()["rounds"]) == 1

    client.post("/api/v1/rounds", headers=OWNER, json={"name": "Round 14", "active": True})

    assert len(client.get("/api/v1/activities", headers=OWNER).json()["rounds"]) == 2
    assert client.get("/api/v1/activities", headers=OTHER).json()["rounds"] == []
