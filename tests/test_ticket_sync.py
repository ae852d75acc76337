from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from ticketboard.core.db import create_engine, create_session_factory, init_db
from ticketboard.models import Ticket, TicketTypeTeamMapping
from ticketboard.services import MondayWebhookProcessor
from ticketboard.services.team_resolver import resolve_team
from ticketboard.services.ticket_sync import (
    delete_ticket,
    fetch_ticket_state,
    update_or_create_ticket,
    upsert_ticket,
)


@pytest_asyncio.fixture
async def session(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'sync.db'}")
    await init_db(engine)
    factory = create_session_factory(engine)
    async with factory() as db_session:
        yield db_session
    await engine.dispose()


def _fields(item_id: str, **overrides) -> dict:
    fields = {
        "monday_item_id": item_id,
        "ticket_title": "Untitled Ticket",
        "ticket_type": None,
        "team_assigned": None,
        "status": "Open",
        "priority": "Medium",
        "description": None,
        "reporter": None,
        "assignee": None,
        "monday_board_id": None,
    }
    fields.update(overrides)
    return fields


async def _count_tickets(session) -> int:
    result = await session.execute(select(func.count()).select_from(Ticket))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_upsert_ticket_overwrites_existing_row(session):
    await upsert_ticket(session, _fields("100", ticket_title="First", priority="Low"))
    first_state = await session.execute(select(Ticket.id, Ticket.created_at))
    first_id, first_created = first_state.one()

    await upsert_ticket(session, _fields("100", ticket_title="Second", priority="High"))

    assert await _count_tickets(session) == 1
    result = await session.execute(
        select(Ticket.id, Ticket.ticket_title, Ticket.priority, Ticket.created_at)
    )
    ticket_id, title, priority, created_at = result.one()
    assert ticket_id == first_id
    assert created_at == first_created
    assert title == "Second"
    assert priority == "High"


@pytest.mark.asyncio
async def test_update_or_create_ticket_updates_existing(session):
    await upsert_ticket(session, _fields("200", ticket_title="Existing"))

    created = await update_or_create_ticket(
        session, "200", {"status": "In Progress"}, _fields("200", ticket_title="Ignored")
    )

    assert created is False
    state = await fetch_ticket_state(session, "200")
    assert state.status == "In Progress"
    assert state.ticket_title == "Existing"


@pytest.mark.asyncio
async def test_update_or_create_ticket_inserts_missing_row(session):
    created = await update_or_create_ticket(
        session,
        "300",
        {"priority": "High"},
        _fields("300", ticket_title="From update", monday_board_id="55"),
    )

    assert created is True
    assert await _count_tickets(session) == 1
    result = await session.execute(select(Ticket).where(Ticket.monday_item_id == "300"))
    ticket = result.scalar_one()
    assert ticket.ticket_title == "From update"
    assert ticket.priority == "High"
    assert ticket.status == "Open"
    assert ticket.monday_board_id == "55"


@pytest.mark.asyncio
async def test_delete_ticket_reports_affected_rows(session):
    await upsert_ticket(session, _fields("400"))

    assert await delete_ticket(session, "400") == 1
    assert await delete_ticket(session, "400") == 0
    assert await fetch_ticket_state(session, "400") is None


@pytest.mark.asyncio
async def test_resolve_team_matches_exact_type(session):
    session.add(TicketTypeTeamMapping(ticket_type="Network", team_name="NOC"))
    await session.commit()

    assert await resolve_team(session, "Network") == "NOC"
    assert await resolve_team(session, "network") is None
    assert await resolve_team(session, "Billing") is None


@pytest.mark.asyncio
async def test_resolve_team_ambiguous_mapping_is_unassigned(session):
    session.add_all(
        [
            TicketTypeTeamMapping(ticket_type="eSIM", team_name="Provisioning"),
            TicketTypeTeamMapping(ticket_type="eSIM", team_name="Support"),
        ]
    )
    await session.commit()

    assert await resolve_team(session, "eSIM") is None


@pytest.mark.asyncio
async def test_processor_guard_suppresses_repeated_reported_status(session, monkeypatch):
    calls: list[dict] = []

    async def fake_send(endpoint, payload, *, timeout=10.0):
        calls.append(payload)
        return True

    monkeypatch.setattr(
        "ticketboard.services.monday_webhook.send_reported_notification", fake_send
    )
    processor = MondayWebhookProcessor(
        session, notification_url="https://automation.example/hook"
    )
    event = {
        "type": "update_column_value",
        "itemId": 500,
        "itemName": "Outage",
        "columnId": "status",
        "columnTitle": "Status",
        "columnType": "color",
        "value": {"label": {"text": "Reported"}},
    }

    await processor.process(
        {"type": "create_item", "itemId": 500, "itemName": "Outage"}
    )
    await processor.process(event)
    await processor.process(event)

    assert len(calls) == 1
    assert calls[0]["ticket_id"] == "500"
    assert calls[0]["ticket_title"] == "Outage"


@pytest.mark.asyncio
async def test_processor_uses_configured_reported_status(session, monkeypatch):
    calls: list[dict] = []

    async def fake_send(endpoint, payload, *, timeout=10.0):
        calls.append(payload)
        return True

    monkeypatch.setattr(
        "ticketboard.services.monday_webhook.send_reported_notification", fake_send
    )
    processor = MondayWebhookProcessor(
        session,
        notification_url="https://automation.example/hook",
        reported_status="Escalated",
    )

    await processor.process(
        {
            "type": "create_pulse",
            "pulseId": 600,
            "columnValues": {"s": {"title": "Status", "text": "Reported"}},
        }
    )
    assert calls == []

    await processor.process(
        {
            "type": "update_column_value",
            "pulseId": 600,
            "columnId": "s",
            "columnTitle": "Status",
            "value": "Escalated",
        }
    )
    assert [call["status"] for call in calls] == ["Escalated"]
