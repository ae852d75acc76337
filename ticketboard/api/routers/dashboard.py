from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.db import get_session
from ticketboard.core.monday_events import DEFAULT_STATUS
from ticketboard.models import DeviceLog, Ticket, TicketTypeTeamMapping
from ticketboard.schemas import DashboardSummary

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


async def _count(session: AsyncSession, query) -> int:
    result = await session.execute(query)
    return int(result.scalar_one())


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    session: AsyncSession = Depends(get_session),
) -> DashboardSummary:
    return DashboardSummary(
        total_tickets=await _count(session, select(func.count()).select_from(Ticket)),
        open_tickets=await _count(
            session,
            select(func.count()).select_from(Ticket).where(Ticket.status == DEFAULT_STATUS),
        ),
        team_mappings=await _count(
            session, select(func.count()).select_from(TicketTypeTeamMapping)
        ),
        device_logs=await _count(session, select(func.count()).select_from(DeviceLog)),
    )
