from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.db import get_session
from ticketboard.models import DeviceLog, utcnow
from ticketboard.schemas import DeviceLogCreate, DeviceLogRead, DeviceLogUpdate

router = APIRouter(prefix="/api/device-logs", tags=["Device logs"])


async def _get_log_by_id(log_id: str, session: AsyncSession) -> DeviceLog:
    result = await session.execute(select(DeviceLog).where(DeviceLog.id == log_id))
    log = result.scalar_one_or_none()
    if log is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device log not found",
        )
    return log


@router.get("/", response_model=list[DeviceLogRead])
async def list_device_logs(
    search: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[DeviceLogRead]:
    query = select(DeviceLog).order_by(DeviceLog.created_at.desc())
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                DeviceLog.mobile_device_number.ilike(pattern),
                DeviceLog.log_message.ilike(pattern),
            )
        )
    result = await session.execute(query)
    return [DeviceLogRead.model_validate(log) for log in result.scalars().all()]


@router.post("/", response_model=DeviceLogRead, status_code=status.HTTP_201_CREATED)
async def create_device_log(
    payload: DeviceLogCreate,
    session: AsyncSession = Depends(get_session),
) -> DeviceLogRead:
    log = DeviceLog(
        mobile_device_number=payload.mobile_device_number,
        log_message=payload.log_message,
        log_level=payload.log_level.value,
    )
    session.add(log)
    await session.commit()
    await session.refresh(log)
    return DeviceLogRead.model_validate(log)


@router.get("/{log_id}", response_model=DeviceLogRead)
async def get_device_log(
    log_id: str,
    session: AsyncSession = Depends(get_session),
) -> DeviceLogRead:
    log = await _get_log_by_id(log_id, session)
    return DeviceLogRead.model_validate(log)


@router.patch("/{log_id}", response_model=DeviceLogRead)
async def update_device_log(
    log_id: str,
    payload: DeviceLogUpdate,
    session: AsyncSession = Depends(get_session),
) -> DeviceLogRead:
    log = await _get_log_by_id(log_id, session)

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "log_level" in data:
        data["log_level"] = data["log_level"].value

    updated = False
    for field_name, value in data.items():
        if getattr(log, field_name) != value:
            setattr(log, field_name, value)
            updated = True

    if updated:
        log.updated_at = utcnow()
        await session.commit()
        await session.refresh(log)

    return DeviceLogRead.model_validate(log)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_device_log(
    log_id: str,
    session: AsyncSession = Depends(get_session),
) -> Response:
    log = await _get_log_by_id(log_id, session)
    await session.delete(log)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
