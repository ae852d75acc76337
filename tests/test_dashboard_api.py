from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from ticketboard.core.config import get_settings
from ticketboard.core.db import dispose_engine
from ticketboard.main import app


@pytest.fixture(autouse=True)
def dashboard_db(tmp_path, monkeypatch):
    db_path = tmp_path / "dashboard.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    get_settings.cache_clear()
    asyncio.run(dispose_engine())
    yield
    asyncio.run(dispose_engine())
    get_settings.cache_clear()


def _ticket_payload(item_id: str, **overrides) -> dict:
    payload = {
        "monday_item_id": item_id,
        "ticket_title": f"Ticket {item_id}",
        "status": "Open",
        "priority": "Medium",
    }
    payload.update(overrides)
    return payload


def test_ticket_crud_and_filters():
    with TestClient(app) as client:
        mapping = client.post(
            "/api/ticket-mappings/", json={"ticket_type": "Network", "team_name": "NOC"}
        )
        assert mapping.status_code == 201

        created = client.post(
            "/api/tickets/",
            json=_ticket_payload(
                "1",
                ticket_title="VPN tunnel down",
                ticket_type="Network",
                reporter="alex",
                priority="High",
            ),
        )
        assert created.status_code == 201
        ticket = created.json()
        assert ticket["team_assigned"] == "NOC"

        client.post(
            "/api/tickets/",
            json=_ticket_payload("2", description="Printer toner empty", status="Closed"),
        )

        duplicate = client.post("/api/tickets/", json=_ticket_payload("1"))
        assert duplicate.status_code == 409
        assert "already exists" in duplicate.json()["detail"]

        search = client.get("/api/tickets/", params={"search": "toner"})
        assert [item["monday_item_id"] for item in search.json()] == ["2"]

        by_reporter = client.get("/api/tickets/", params={"search": "ALEX"})
        assert [item["monday_item_id"] for item in by_reporter.json()] == ["1"]

        closed = client.get("/api/tickets/", params={"status": "Closed"})
        assert [item["monday_item_id"] for item in closed.json()] == ["2"]

        high = client.get("/api/tickets/", params={"priority": "High", "status": "all"})
        assert [item["monday_item_id"] for item in high.json()] == ["1"]

        updated = client.patch(
            f"/api/tickets/{ticket['id']}",
            json={"agent_action_summary": "Restarted the tunnel", "status": "In Progress"},
        )
        assert updated.status_code == 200
        assert updated.json()["agent_action_summary"] == "Restarted the tunnel"
        assert updated.json()["status"] == "In Progress"
        assert updated.json()["ticket_title"] == "VPN tunnel down"

        deleted = client.delete(f"/api/tickets/{ticket['id']}")
        assert deleted.status_code == 204

        missing = client.get(f"/api/tickets/{ticket['id']}")
        assert missing.status_code == 404


def test_ticket_mapping_crud():
    with TestClient(app) as client:
        created = client.post(
            "/api/ticket-mappings/",
            json={"ticket_type": "eSIM", "team_name": "Provisioning", "owner_id": "  "},
        )
        assert created.status_code == 201
        mapping = created.json()
        assert mapping["owner_id"] is None

        updated = client.patch(
            f"/api/ticket-mappings/{mapping['id']}",
            json={"team_name": "Mobile", "owner_id": "user-7"},
        )
        assert updated.status_code == 200
        assert updated.json()["team_name"] == "Mobile"
        assert updated.json()["owner_id"] == "user-7"
        assert updated.json()["ticket_type"] == "eSIM"

        listing = client.get("/api/ticket-mappings/")
        assert [item["team_name"] for item in listing.json()] == ["Mobile"]

        assert client.delete(f"/api/ticket-mappings/{mapping['id']}").status_code == 204
        assert client.get(f"/api/ticket-mappings/{mapping['id']}").status_code == 404


def test_ticket_mapping_requires_type_and_team():
    with TestClient(app) as client:
        response = client.post("/api/ticket-mappings/", json={"ticket_type": " ", "team_name": ""})

    assert response.status_code == 422


def test_device_log_crud_and_search():
    with TestClient(app) as client:
        created = client.post(
            "/api/device-logs/",
            json={
                "mobile_device_number": "+15550001",
                "log_message": "Modem rebooted",
                "log_level": "warn",
            },
        )
        assert created.status_code == 201
        log = created.json()
        assert log["log_level"] == "WARN"

        client.post(
            "/api/device-logs/",
            json={"mobile_device_number": "+15550002", "log_message": "Heartbeat"},
        )

        search = client.get("/api/device-logs/", params={"search": "reboot"})
        assert [item["id"] for item in search.json()] == [log["id"]]

        by_number = client.get("/api/device-logs/", params={"search": "0002"})
        assert [item["log_level"] for item in by_number.json()] == ["INFO"]

        updated = client.patch(f"/api/device-logs/{log['id']}", json={"log_level": "ERROR"})
        assert updated.status_code == 200
        assert updated.json()["log_level"] == "ERROR"
        assert updated.json()["log_message"] == "Modem rebooted"

        invalid = client.patch(f"/api/device-logs/{log['id']}", json={"log_level": "TRACE"})
        assert invalid.status_code == 422

        assert client.delete(f"/api/device-logs/{log['id']}").status_code == 204
        assert client.get(f"/api/device-logs/{log['id']}").status_code == 404


def test_esim_profile_crud_and_conflicts():
    with TestClient(app) as client:
        payload = {
            "iccid_value": "8901260123456789012",
            "activation_code": "LPA:1$smdp.example$ABC123",
            "progress_bar_percentage": 40,
            "status": "Downloading",
            "smdp_status": "Released",
            "device_number": "+15550001",
        }
        created = client.post("/api/esim-profiles/", json=payload)
        assert created.status_code == 201
        profile = created.json()

        duplicate = client.post("/api/esim-profiles/", json=payload)
        assert duplicate.status_code == 409

        out_of_range = client.post(
            "/api/esim-profiles/",
            json={**payload, "iccid_value": "8901260000000000000", "progress_bar_percentage": 140},
        )
        assert out_of_range.status_code == 422

        filtered = client.get("/api/esim-profiles/", params={"status": "Downloading"})
        assert [item["id"] for item in filtered.json()] == [profile["id"]]

        searched = client.get("/api/esim-profiles/", params={"search": "abc123"})
        assert [item["id"] for item in searched.json()] == [profile["id"]]

        updated = client.patch(
            f"/api/esim-profiles/{profile['id']}",
            json={"progress_bar_percentage": 100, "status": "Installed", "device_number": ""},
        )
        assert updated.status_code == 200
        body = updated.json()
        assert body["progress_bar_percentage"] == 100
        assert body["status"] == "Installed"
        assert body["device_number"] is None

        assert client.delete(f"/api/esim-profiles/{profile['id']}").status_code == 204
        assert client.get("/api/esim-profiles/").json() == []


def test_monday_config_is_saved_once_and_replaced():
    with TestClient(app) as client:
        assert client.get("/api/monday-config/").status_code == 404

        first = client.put(
            "/api/monday-config/",
            json={
                "webhook_url": "https://tickets.example/api/webhooks/monday",
                "api_token": "token-1",
                "board_id": "1234",
            },
        )
        assert first.status_code == 200

        second = client.put(
            "/api/monday-config/",
            json={
                "webhook_url": "https://tickets.example/api/webhooks/monday",
                "api_token": "token-2",
                "board_id": "5678",
            },
        )
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]

        current = client.get("/api/monday-config/")
        assert current.status_code == 200
        assert current.json()["board_id"] == "5678"
        assert current.json()["api_token"] == "token-2"


def test_dashboard_summary_counts():
    with TestClient(app) as client:
        client.post("/api/tickets/", json=_ticket_payload("1"))
        client.post("/api/tickets/", json=_ticket_payload("2", status="Closed"))
        client.post("/api/ticket-mappings/", json={"ticket_type": "Network", "team_name": "NOC"})
        client.post(
            "/api/device-logs/",
            json={"mobile_device_number": "+15550001", "log_message": "Boot"},
        )

        response = client.get("/api/dashboard/summary")

    assert response.status_code == 200
    assert response.json() == {
        "total_tickets": 2,
        "open_tickets": 1,
        "team_mappings": 1,
        "device_logs": 1,
    }


def test_ticket_type_change_reassigns_team():
    with TestClient(app) as client:
        client.post("/api/ticket-mappings/", json={"ticket_type": "Network", "team_name": "NOC"})
        client.post("/api/ticket-mappings/", json={"ticket_type": "eSIM", "team_name": "Mobile"})

        created = client.post(
            "/api/tickets/", json=_ticket_payload("1", ticket_type="Network")
        ).json()
        assert created["team_assigned"] == "NOC"

        retyped = client.patch(f"/api/tickets/{created['id']}", json={"ticket_type": "eSIM"})
        assert retyped.status_code == 200
        assert retyped.json()["team_assigned"] == "Mobile"

        unmapped = client.patch(f"/api/tickets/{created['id']}", json={"ticket_type": "Billing"})
        assert unmapped.json()["team_assigned"] is None

        explicit = client.patch(
            f"/api/tickets/{created['id']}",
            json={"ticket_type": "Network", "team_assigned": "Field Ops"},
        )
        assert explicit.json()["team_assigned"] == "Field Ops"

        missing = client.patch("/api/tickets/does-not-exist", json={"ticket_type": "eSIM"})
        assert missing.status_code == 404
