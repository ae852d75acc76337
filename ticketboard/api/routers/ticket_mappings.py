from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.db import get_session
from ticketboard.models import TicketTypeTeamMapping, utcnow
from ticketboard.schemas import (
    TicketMappingCreate,
    TicketMappingRead,
    TicketMappingUpdate,
)

router = APIRouter(prefix="/api/ticket-mappings", tags=["Ticket mappings"])


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


async def _get_mapping_by_id(
    mapping_id: str, session: AsyncSession
) -> TicketTypeTeamMapping:
    result = await session.execute(
        select(TicketTypeTeamMapping).where(TicketTypeTeamMapping.id == mapping_id)
    )
    mapping = result.scalar_one_or_none()
    if mapping is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket mapping not found",
        )
    return mapping


@router.get("/", response_model=list[TicketMappingRead])
async def list_mappings(
    session: AsyncSession = Depends(get_session),
) -> list[TicketMappingRead]:
    result = await session.execute(
        select(TicketTypeTeamMapping).order_by(TicketTypeTeamMapping.created_at.desc())
    )
    return [TicketMappingRead.model_validate(mapping) for mapping in result.scalars().all()]


@router.post("/", response_model=TicketMappingRead, status_code=status.HTTP_201_CREATED)
async def create_mapping(
    payload: TicketMappingCreate,
    session: AsyncSession = Depends(get_session),
) -> TicketMappingRead:
    mapping = TicketTypeTeamMapping(
        ticket_type=payload.ticket_type,
        team_name=payload.team_name,
        owner_id=_clean_optional(payload.owner_id),
    )
    session.add(mapping)
    await session.commit()
    await session.refresh(mapping)
    return TicketMappingRead.model_validate(mapping)


@router.get("/{mapping_id}", response_model=TicketMappingRead)
async def get_mapping(
    mapping_id: str,
    session: AsyncSession = Depends(get_session),
) -> TicketMappingRead:
    mapping = await _get_mapping_by_id(mapping_id, session)
    return TicketMappingRead.model_validate(mapping)


@router.patch("/{mapping_id}", response_model=TicketMappingRead)
async def update_mapping(
    mapping_id: str,
    payload: TicketMappingUpdate,
    session: AsyncSession = Depends(get_session),
) -> TicketMappingRead:
    mapping = await _get_mapping_by_id(mapping_id, session)

    data = payload.model_dump(exclude_unset=True)
    updated = False

    if data.get("ticket_type") is not None and data["ticket_type"] != mapping.ticket_type:
        mapping.ticket_type = data["ticket_type"]
        updated = True

    if data.get("team_name") is not None and data["team_name"] != mapping.team_name:
        mapping.team_name = data["team_name"]
        updated = True

    if "owner_id" in data:
        cleaned_owner = _clean_optional(data["owner_id"])
        if cleaned_owner != mapping.owner_id:
            mapping.owner_id = cleaned_owner
            updated = True

    if updated:
        mapping.updated_at = utcnow()
        await session.commit()
        await session.refresh(mapping)

    return TicketMappingRead.model_validate(mapping)


@router.delete("/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mapping(
    mapping_id: str,
    session: AsyncSession = Depends(get_session),
) -> Response:
    mapping = await _get_mapping_by_id(mapping_id, session)
    await session.delete(mapping)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
