"""
Integration tests for the REST API endpoints.

The manager dependency is overridden with one backed by the in-memory
store and recording notifier, so no database or Redis is needed.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rental_engine.api.app import create_app
from rental_engine.api.dependencies import get_manager


@pytest_asyncio.fixture
async def client(manager) -> AsyncGenerator[AsyncClient, None]:
    app = create_app()
    app.dependency_overrides[get_manager] = lambda: manager
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _booking(username="alice", start="2024-01-01", end="2024-01-10", insurance=True):
    return {
        "username": username,
        "vehicle_id": 1,
        "start_date": start,
        "end_date": end,
        "insurance": insurance,
    }


async def _approved(client: AsyncClient) -> tuple[int, str]:
    rental = (await client.post("/api/v1/rentals", json=_booking())).json()
    ticket = (await client.post(f"/api/v1/admin/rentals/{rental['id']}/approve")).json()
    return rental["id"], ticket["id"]


# ── Health ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ── Rentals ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_rental_returns_201(client: AsyncClient):
    resp = await client.post("/api/v1/rentals", json=_booking())
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PENDING"
    assert data["fee"] == 945.0
    assert data["customer"]["name"] == "Alice Tan"


@pytest.mark.asyncio
async def test_conflict_returns_409_with_window(client: AsyncClient):
    await client.post("/api/v1/rentals", json=_booking())
    resp = await client.post(
        "/api/v1/rentals", json=_booking("bob", "2024-01-11", "2024-01-15")
    )
    assert resp.status_code == 409
    body = resp.json()
    assert body["holder"] == "Alice Tan"
    assert body["window_start"] == "2023-12-30"
    assert body["window_end"] == "2024-01-12"


@pytest.mark.asyncio
async def test_bad_date_range_returns_422(client: AsyncClient):
    resp = await client.post(
        "/api/v1/rentals", json=_booking(start="2024-01-10", end="2024-01-01")
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_malformed_body_returns_422(client: AsyncClient):
    resp = await client.post("/api/v1/rentals", json={"username": "alice"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_missing_rental_returns_404(client: AsyncClient):
    resp = await client.get("/api/v1/rentals/999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_rentals_for_user(client: AsyncClient):
    await client.post("/api/v1/rentals", json=_booking())
    resp = await client.get("/api/v1/rentals", params={"username": "alice"})
    assert resp.status_code == 200
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_cancel_pending(client: AsyncClient):
    rental = (await client.post("/api/v1/rentals", json=_booking())).json()
    resp = await client.patch(
        f"/api/v1/rentals/{rental['id']}/cancel", json={"reason": "Change of plans"}
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"
    assert resp.json()["cancel_reason"] == "Change of plans"


@pytest.mark.asyncio
async def test_approve_twice_returns_409(client: AsyncClient):
    rental_id, _ = await _approved(client)
    resp = await client.post(f"/api/v1/admin/rentals/{rental_id}/approve")
    assert resp.status_code == 409
    assert "Cannot transition from ACTIVE to ACTIVE" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_extend_without_rental_returns_404(client: AsyncClient):
    resp = await client.post(
        "/api/v1/rentals/extend",
        json={"username": "bob", "vehicle_id": 1, "new_end_date": "2024-01-20"},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_extend_active_rental(client: AsyncClient):
    await _approved(client)
    resp = await client.post(
        "/api/v1/rentals/extend",
        json={"username": "alice", "vehicle_id": 1, "new_end_date": "2024-01-12"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["extended"] is True
    assert body["rental"]["end_date"] == "2024-01-12"
    assert body["rental"]["fee"] == 1080.0


# ── Pickup & return ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_ticket_name_mismatch_returns_400(client: AsyncClient):
    _, ticket_id = await _approved(client)
    resp = await client.post(
        f"/api/v1/tickets/{ticket_id}/validate", json={"customer_name": "Bob Lee"}
    )
    assert resp.status_code == 400
    assert resp.json()["reason"] == "NAME_MISMATCH"


@pytest.mark.asyncio
async def test_unknown_ticket_returns_400(client: AsyncClient):
    resp = await client.post(
        "/api/v1/tickets/TKT-424242/validate", json={"customer_name": "Alice Tan"}
    )
    assert resp.status_code == 400
    assert resp.json()["reason"] == "UNKNOWN"


@pytest.mark.asyncio
async def test_return_before_pickup_returns_409(client: AsyncClient):
    rental_id, _ = await _approved(client)
    resp = await client.post(f"/api/v1/admin/rentals/{rental_id}/return", json={})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_pickup_and_return_flow(client: AsyncClient, clock):
    from datetime import date

    rental_id, ticket_id = await _approved(client)
    resp = await client.post(
        f"/api/v1/tickets/{ticket_id}/validate", json={"customer_name": "alice tan"}
    )
    assert resp.status_code == 200
    assert resp.json()["used"] is True

    vehicle = (await client.get("/api/v1/vehicles/1")).json()
    assert vehicle["status"] == "RENTED"

    clock.today = date(2024, 1, 12)
    resp = await client.post(
        f"/api/v1/admin/rentals/{rental_id}/return",
        json={"damages": [{"description": "Cracked bumper", "severity": 3}]},
    )
    assert resp.status_code == 200
    assert resp.json()["actual_fee"] == 1134.0
    assert resp.json()["late_fee"] == 40.0

    vehicle = (await client.get("/api/v1/vehicles/1")).json()
    assert vehicle["status"] == "UNDER_MAINTENANCE"
    assert vehicle["issues"][0]["description"] == "Cracked bumper"


# ── Vehicles & admin ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_quote(client: AsyncClient):
    resp = await client.get(
        "/api/v1/vehicles/1/quote",
        params={"start_date": "2024-01-01", "end_date": "2024-01-10", "insurance": True},
    )
    assert resp.status_code == 200
    assert resp.json()["fee"] == 945.0
    assert resp.json()["discount"] == 0.1
    assert resp.json()["days"] == 10


@pytest.mark.asyncio
async def test_schedule_shows_buffered_window(client: AsyncClient):
    await client.post("/api/v1/rentals", json=_booking())
    resp = await client.get("/api/v1/vehicles/1/schedule")
    assert resp.json()["unavailable"] == [{"start": "2023-12-30", "end": "2024-01-12"}]


@pytest.mark.asyncio
async def test_add_vehicle_and_override(client: AsyncClient):
    resp = await client.post(
        "/api/v1/admin/vehicles",
        json={
            "plate_no": "NEW1234",
            "brand": "Honda",
            "model": "City",
            "daily_rate": 140.0,
            "discount_tiers": {"7": 0.1},
        },
    )
    assert resp.status_code == 201
    vehicle_id = resp.json()["id"]
    assert resp.json()["discount_tiers"] == {"7": 0.1}

    resp = await client.put(
        f"/api/v1/admin/vehicles/{vehicle_id}/override", json={"status": "OUT_OF_SERVICE"}
    )
    assert resp.json()["status"] == "OUT_OF_SERVICE"

    resp = await client.delete(f"/api/v1/admin/vehicles/{vehicle_id}/override")
    assert resp.json()["status"] == "AVAILABLE"


@pytest.mark.asyncio
async def test_report_and_resolve_issue(client: AsyncClient):
    resp = await client.post(
        "/api/v1/admin/vehicles/1/issues",
        json={"description": "Brake pads worn", "severity": 4, "reported_by": "staff"},
    )
    assert resp.status_code == 201
    issue_id = resp.json()["id"]

    vehicle = (await client.get("/api/v1/vehicles/1")).json()
    assert vehicle["status"] == "UNDER_MAINTENANCE"

    resp = await client.post(
        f"/api/v1/admin/vehicles/1/issues/{issue_id}/resolve",
        json={"cost": 220.0, "resolved_by": "mechanic"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "RESOLVED"

    assert (await client.get("/api/v1/vehicles/1/issues")).json()[0]["id"] == issue_id
    resp = await client.get("/api/v1/vehicles/1/issues", params={"open_only": True})
    assert resp.json() == []


@pytest.mark.asyncio
async def test_archive_hides_vehicle(client: AsyncClient):
    resp = await client.post("/api/v1/admin/vehicles/1/archive")
    assert resp.status_code == 200
    assert (await client.get("/api/v1/vehicles")).json() == []
    listed = (await client.get("/api/v1/vehicles", params={"include_archived": True})).json()
    assert listed[0]["archived"] is True


@pytest.mark.asyncio
async def test_failures_endpoint(client: AsyncClient, notifier):
    notifier.fail = True
    await client.post("/api/v1/rentals", json=_booking())
    resp = await client.get("/api/v1/admin/failures")
    assert resp.status_code == 200
    assert resp.json()[0]["collaborator"] == "notify"
