from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import MultipleResultsFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.models import TicketTypeTeamMapping

logger = logging.getLogger(__name__)


async def resolve_team(session: AsyncSession, ticket_type: str) -> str | None:
    """Return the team mapped to ``ticket_type``, or ``None`` when unassigned.

    A failed lookup rolls the session back so the caller can keep using it,
    which means it must run before anything is staged on the session.
    """

    try:
        result = await session.execute(
            select(TicketTypeTeamMapping.team_name).where(
                TicketTypeTeamMapping.ticket_type == ticket_type
            )
        )
        team_name = result.scalar_one_or_none()
    except MultipleResultsFound:
        logger.warning(
            "Several teams are mapped to ticket type '%s'; leaving ticket unassigned",
            ticket_type,
        )
        return None
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning(
            "Team lookup failed for ticket type '%s'; leaving ticket unassigned: %s",
            ticket_type,
            exc,
        )
        return None

    if team_name is None:
        logger.debug("No team mapping found for ticket type '%s'", ticket_type)
    return team_name
