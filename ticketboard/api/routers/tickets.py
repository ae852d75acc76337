from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.db import get_session
from ticketboard.models import Ticket, utcnow
from ticketboard.schemas import TicketCreate, TicketRead, TicketUpdate
from ticketboard.services.team_resolver import resolve_team

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


async def _get_ticket_by_id(ticket_id: str, session: AsyncSession) -> Ticket:
    result = await session.execute(select(Ticket).where(Ticket.id == ticket_id))
    ticket = result.scalar_one_or_none()
    if ticket is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found",
        )
    return ticket


@router.get("/", response_model=list[TicketRead])
async def list_tickets(
    search: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    priority: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[TicketRead]:
    query = select(Ticket).order_by(Ticket.created_at.desc())
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Ticket.ticket_title.ilike(pattern),
                Ticket.description.ilike(pattern),
                Ticket.reporter.ilike(pattern),
            )
        )
    if status_filter and status_filter != "all":
        query = query.where(Ticket.status == status_filter)
    if priority and priority != "all":
        query = query.where(Ticket.priority == priority)
    result = await session.execute(query)
    return [TicketRead.model_validate(ticket) for ticket in result.scalars().all()]


@router.post("/", response_model=TicketRead, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreate,
    session: AsyncSession = Depends(get_session),
) -> TicketRead:
    existing = await session.execute(
        select(Ticket.id).where(Ticket.monday_item_id == payload.monday_item_id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A ticket with this Monday item id already exists",
        )

    data = payload.model_dump()
    if data["ticket_type"] and not data["team_assigned"]:
        data["team_assigned"] = await resolve_team(session, data["ticket_type"])

    ticket = Ticket(**data)
    session.add(ticket)
    await session.commit()
    await session.refresh(ticket)
    return TicketRead.model_validate(ticket)


@router.get("/{ticket_id}", response_model=TicketRead)
async def get_ticket(
    ticket_id: str,
    session: AsyncSession = Depends(get_session),
) -> TicketRead:
    ticket = await _get_ticket_by_id(ticket_id, session)
    return TicketRead.model_validate(ticket)


@router.patch("/{ticket_id}", response_model=TicketRead)
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdate,
    session: AsyncSession = Depends(get_session),
) -> TicketRead:
    data = payload.model_dump(exclude_unset=True)
    for required in ("ticket_title", "status", "priority"):
        if required in data and data[required] is None:
            data.pop(required)

    # Resolved before the ticket is loaded; a failed lookup rolls the session back.
    reassign = bool(data.get("ticket_type")) and "team_assigned" not in data
    resolved_team = await resolve_team(session, data["ticket_type"]) if reassign else None

    ticket = await _get_ticket_by_id(ticket_id, session)
    if reassign and data["ticket_type"] != ticket.ticket_type:
        data["team_assigned"] = resolved_team

    updated = False
    for field_name, value in data.items():
        if getattr(ticket, field_name) != value:
            setattr(ticket, field_name, value)
            updated = True

    if updated:
        ticket.updated_at = utcnow()
        await session.commit()
        await session.refresh(ticket)

    return TicketRead.model_validate(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(
    ticket_id: str,
    session: AsyncSession = Depends(get_session),
) -> Response:
    ticket = await _get_ticket_by_id(ticket_id, session)
    await session.delete(ticket)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
