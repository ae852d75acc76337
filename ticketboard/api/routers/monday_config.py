from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.db import get_session
from ticketboard.models import MondayConfig, utcnow
from ticketboard.schemas import MondayConfigRead, MondayConfigWrite

router = APIRouter(prefix="/api/monday-config", tags=["Monday configuration"])


async def _load_config(session: AsyncSession) -> MondayConfig | None:
    result = await session.execute(
        select(MondayConfig).order_by(MondayConfig.created_at.asc()).limit(1)
    )
    return result.scalar_one_or_none()


@router.get("/", response_model=MondayConfigRead)
async def get_monday_config(
    session: AsyncSession = Depends(get_session),
) -> MondayConfigRead:
    config = await _load_config(session)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Monday.com configuration has not been saved",
        )
    return MondayConfigRead.model_validate(config)


@router.put("/", response_model=MondayConfigRead)
async def save_monday_config(
    payload: MondayConfigWrite,
    session: AsyncSession = Depends(get_session),
) -> MondayConfigRead:
    config = await _load_config(session)
    if config is None:
        config = MondayConfig(**payload.model_dump())
        session.add(config)
    else:
        config.webhook_url = payload.webhook_url
        config.api_token = payload.api_token
        config.board_id = payload.board_id
        config.updated_at = utcnow()
    await session.commit()
    await session.refresh(config)
    return MondayConfigRead.model_validate(config)
