"""Tests for the HTTP surface: status codes, roles and error bodies."""
import logging
import warnings
from datetime import datetime, timedelta, timezone

import httpx
import jwt

from app import config, notifications, parking
from app.main import app


class TestParkingSessionsAPI:
    """Entry/exit walkthrough over /parking-sessions."""

    async def test_entry_exit_walkthrough(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        vehicle_1, vehicle_2 = vehicle_ids
        spot_5, spot_6 = spot_ids[4], spot_ids[5]

        response = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_1, "spot_id": spot_5}, headers=gatekeeper_headers
        )
        assert response.status_code == 201
        entry = response.json()
        assert entry["entry_timestamp"] is not None
        assert entry["exit_timestamp"] is None
        assert entry["vehicle"]["plate"] == "ABC1D23"
        assert entry["vehicle"]["owner_name"] == "Ana Souza"
        assert entry["spot"]["number"] == "A05"

        spot = await client.get(f"/spots/{spot_5}", headers=gatekeeper_headers)
        assert spot.json()["occupied"] is True

        response = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_2, "spot_id": spot_5}, headers=gatekeeper_headers
        )
        assert response.status_code == 409
        assert "already occupied" in response.json()["detail"]

        response = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_1, "spot_id": spot_6}, headers=gatekeeper_headers
        )
        assert response.status_code == 409
        assert "active session" in response.json()["detail"]

        response = await client.patch(
            f"/parking-sessions/{entry['id']}/exit", json={"amount_paid": 15.50}, headers=gatekeeper_headers
        )
        assert response.status_code == 200
        closed = response.json()
        assert closed["exit_timestamp"] is not None
        assert closed["amount_paid"] == 15.50

        spot = await client.get(f"/spots/{spot_5}", headers=gatekeeper_headers)
        assert spot.json()["occupied"] is False

        response = await client.patch(f"/parking-sessions/{entry['id']}/exit", json={}, headers=gatekeeper_headers)
        assert response.status_code == 409
        assert "already registered" in response.json()["detail"]

    async def test_entry_with_unknown_vehicle(self, client, gatekeeper_headers, spot_ids):
        response = await client.post(
            "/parking-sessions", json={"vehicle_id": 77, "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        assert response.status_code == 404
        assert "Vehicle 77" in response.json()["detail"]

    async def test_entry_requires_positive_integers(self, client, gatekeeper_headers):
        response = await client.post(
            "/parking-sessions", json={"vehicle_id": "abc", "spot_id": 0}, headers=gatekeeper_headers
        )
        assert response.status_code == 400
        assert "vehicle_id" in response.json()["detail"]

    async def test_exit_amount_must_be_numeric(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        entry = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        response = await client.patch(
            f"/parking-sessions/{entry.json()['id']}/exit", json={"amount_paid": "lots"}, headers=gatekeeper_headers
        )
        assert response.status_code == 400

    async def test_exit_amount_rejects_nan(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        entry = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        headers = {**gatekeeper_headers, "Content-Type": "application/json"}

        response = await client.patch(
            f"/parking-sessions/{entry.json()['id']}/exit", content=b'{"amount_paid": NaN}', headers=headers
        )

        assert response.status_code == 400
        assert "amount_paid" in response.json()["detail"]
        active = await client.get("/parking-sessions/active", headers=gatekeeper_headers)
        assert len(active.json()) == 1

    async def test_exit_without_body(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        entry = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        response = await client.patch(f"/parking-sessions/{entry.json()['id']}/exit", headers=gatekeeper_headers)
        assert response.status_code == 200
        assert response.json()["amount_paid"] is None

    async def test_exit_unknown_session(self, client, gatekeeper_headers):
        response = await client.patch("/parking-sessions/999/exit", json={}, headers=gatekeeper_headers)
        assert response.status_code == 404

    async def test_listings(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        first = (await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )).json()
        second = (await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[1], "spot_id": spot_ids[1]}, headers=gatekeeper_headers
        )).json()
        await client.patch(f"/parking-sessions/{first['id']}/exit", json={}, headers=gatekeeper_headers)

        active = (await client.get("/parking-sessions/active", headers=gatekeeper_headers)).json()
        everything = (await client.get("/parking-sessions", headers=gatekeeper_headers)).json()
        by_spot = (await client.get(
            "/parking-sessions", params={"spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )).json()
        detail = (await client.get(f"/parking-sessions/{second['id']}", headers=gatekeeper_headers)).json()

        assert [s["id"] for s in active] == [second["id"]]
        assert [s["id"] for s in everything] == [second["id"], first["id"]]
        assert [s["id"] for s in by_spot] == [first["id"]]
        assert detail["vehicle"]["owner"]["name"] == "Carlos Lima"
        assert detail["spot"]["type"] == "Common"

    async def test_entry_date_filter(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).replace(tzinfo=None).isoformat()

        response = await client.get(
            "/parking-sessions", params={"entry_from": tomorrow}, headers=gatekeeper_headers
        )

        assert response.status_code == 200
        assert response.json() == []

    async def test_entry_from_with_utc_offset(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        plus_two = timezone(timedelta(hours=2))
        an_hour_ago = (datetime.now(timezone.utc) - timedelta(hours=1)).astimezone(plus_two).isoformat()
        in_an_hour = (datetime.now(timezone.utc) + timedelta(hours=1)).astimezone(plus_two).isoformat()

        since = await client.get("/parking-sessions", params={"entry_from": an_hour_ago}, headers=gatekeeper_headers)
        later = await client.get("/parking-sessions", params={"entry_from": in_an_hour}, headers=gatekeeper_headers)

        assert since.status_code == 200
        assert len(since.json()) == 1
        assert later.json() == []

    async def test_unknown_session(self, client, gatekeeper_headers):
        response = await client.get("/parking-sessions/31", headers=gatekeeper_headers)
        assert response.status_code == 404


class TestAuth:
    """Credentials, tokens and role checks."""

    async def test_login_returns_usable_token(self, client, admin_headers):
        response = await client.post("/auth/login", json={"email": "admin@campus.test", "password": "secret"})
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["account"]["role"] == "admin"

        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.json()["email"] == "admin@campus.test"

    async def test_login_wrong_password(self, client, admin_headers):
        response = await client.post("/auth/login", json={"email": "admin@campus.test", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_missing_token(self, client):
        response = await client.get("/parking-sessions")
        assert response.status_code == 401

    async def test_invalid_token(self, client):
        response = await client.get("/parking-sessions", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_expired_token(self, client):
        payload = {"sub": "1", "role": "admin", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)}
        token = jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

        response = await client.get("/parking-sessions", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Token expired"

    async def test_tokens_are_signed_without_key_warnings(self, admin_headers):
        token = admin_headers["Authorization"].split()[1]

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])

        assert claims["role"] == "admin"
        assert len(config.JWT_SECRET.encode()) >= 32

    async def test_gatekeeper_cannot_create_vehicles(self, client, gatekeeper_headers, student_id):
        response = await client.post(
            "/vehicles", json={"plate": "QWE1R23", "model": "Ka", "student_id": student_id}, headers=gatekeeper_headers
        )
        assert response.status_code == 403

    async def test_admin_registers_gatekeeper(self, client, admin_headers):
        response = await client.post(
            "/auth/register",
            json={"name": "Gate", "email": "Gate@Campus.test", "password": "gatepass", "role": "gatekeeper"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["email"] == "gate@campus.test"

        login = await client.post("/auth/login", json={"email": "gate@campus.test", "password": "gatepass"})
        assert login.status_code == 200

    async def test_duplicate_account_email(self, client, admin_headers):
        response = await client.post(
            "/auth/register",
            json={"name": "Again", "email": "admin@campus.test", "password": "whatever"},
            headers=admin_headers,
        )
        assert response.status_code == 409


class TestEntitiesAPI:
    """Entity endpoints keep ownership and occupancy rules."""

    async def test_vehicle_with_two_owners_is_rejected(self, client, admin_headers, student_id, faculty_id):
        response = await client.post(
            "/vehicles",
            json={"plate": "QWE1R23", "model": "Ka", "student_id": student_id, "faculty_id": faculty_id},
            headers=admin_headers,
        )
        assert response.status_code == 400

        listing = await client.get("/vehicles", headers=admin_headers)
        assert listing.json() == []

    async def test_spot_update_rejects_occupied(self, client, admin_headers, spot_ids):
        response = await client.put(f"/spots/{spot_ids[0]}", json={"occupied": True}, headers=admin_headers)
        assert response.status_code == 400

        spot = await client.get(f"/spots/{spot_ids[0]}", headers=admin_headers)
        assert spot.json()["occupied"] is False

    async def test_spot_update_other_fields(self, client, admin_headers, spot_ids):
        response = await client.put(
            f"/spots/{spot_ids[0]}", json={"location": "Block B", "type": "Priority"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["type"] == "Priority"

    async def test_available_spots(self, client, gatekeeper_headers, vehicle_ids, spot_ids):
        await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=gatekeeper_headers
        )
        response = await client.get("/spots/available", headers=gatekeeper_headers)

        assert [s["id"] for s in response.json()] == spot_ids[1:]

    async def test_vehicle_search(self, client, gatekeeper_headers, vehicle_ids):
        found = await client.get("/vehicles/search", params={"term": "gol"}, headers=gatekeeper_headers)
        missing = await client.get("/vehicles/search", params={"term": "zzz"}, headers=gatekeeper_headers)

        assert [v["plate"] for v in found.json()] == ["ABC1D23"]
        assert missing.status_code == 404

    async def test_student_lifecycle(self, client, admin_headers):
        created = await client.post(
            "/students", json={"enrollment": "S1", "name": "Bia", "course": "Law"}, headers=admin_headers
        )
        assert created.status_code == 201
        student_id = created.json()["id"]

        duplicate = await client.post("/students", json={"enrollment": "S1", "name": "Bea"}, headers=admin_headers)
        assert duplicate.status_code == 409

        updated = await client.put(f"/students/{student_id}", json={"course": "History"}, headers=admin_headers)
        assert updated.json()["course"] == "History"

        deleted = await client.delete(f"/students/{student_id}", headers=admin_headers)
        assert deleted.json()["is_active"] is False

    async def test_null_for_required_field_is_rejected(self, client, admin_headers, student_id, spot_ids):
        student = await client.put(f"/students/{student_id}", json={"name": None}, headers=admin_headers)
        spot = await client.put(f"/spots/{spot_ids[0]}", json={"number": None}, headers=admin_headers)

        assert student.status_code == 400
        assert "name" in student.json()["detail"]
        assert spot.status_code == 400
        assert "number" in spot.json()["detail"]

        unchanged = await client.get(f"/students/{student_id}", headers=admin_headers)
        assert unchanged.json()["name"] == "Ana Souza"

    async def test_vehicle_owner_can_still_be_cleared(self, client, admin_headers, vehicle_ids, faculty_id):
        response = await client.put(
            f"/vehicles/{vehicle_ids[0]}", json={"student_id": None, "faculty_id": faculty_id}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["owner_type"] == "faculty"

    async def test_vehicle_with_history_cannot_be_deleted(self, client, admin_headers, vehicle_ids, spot_ids):
        entry = await client.post(
            "/parking-sessions", json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]}, headers=admin_headers
        )
        await client.patch(f"/parking-sessions/{entry.json()['id']}/exit", json={}, headers=admin_headers)

        response = await client.delete(f"/vehicles/{vehicle_ids[0]}", headers=admin_headers)

        assert response.status_code == 409


class FailingClient:
    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        raise ConnectionRefusedError("broker down")

    async def __aexit__(self, *exc):
        return False


class TestSideEffectsAndFailures:
    """Notifications are best effort and internal errors stay internal."""

    async def test_publish_failure_does_not_fail_entry(
        self, client, gatekeeper_headers, vehicle_ids, spot_ids, monkeypatch, caplog
    ):
        monkeypatch.setattr(config, "MQTT_HOST", "broker.test")
        monkeypatch.setattr(notifications, "Client", FailingClient)

        with caplog.at_level(logging.ERROR):
            response = await client.post(
                "/parking-sessions",
                json={"vehicle_id": vehicle_ids[0], "spot_id": spot_ids[0]},
                headers=gatekeeper_headers,
            )
            await notifications.drain()

        assert response.status_code == 201
        assert "MQTT publish failed" in caplog.text

        spot = await client.get(f"/spots/{spot_ids[0]}", headers=gatekeeper_headers)
        assert spot.json()["occupied"] is True

    async def test_unexpected_error_is_generic(self, client, gatekeeper_headers, monkeypatch):
        async def explode(db):
            raise RuntimeError("connection to server lost: secret-host:5432")

        monkeypatch.setattr(parking, "find_active", explode)
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as raw_client:
            response = await raw_client.get("/parking-sessions/active", headers=gatekeeper_headers)

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "secret-host" not in response.text

    async def test_health_check(self, client):
        response = await client.get("/")
        assert response.json()["status"] == "ok"
