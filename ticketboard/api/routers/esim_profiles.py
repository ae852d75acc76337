from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.db import get_session
from ticketboard.models import EsimProfile, utcnow
from ticketboard.schemas import EsimProfileCreate, EsimProfileRead, EsimProfileUpdate

router = APIRouter(prefix="/api/esim-profiles", tags=["eSIM profiles"])


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


async def _get_profile_by_id(profile_id: str, session: AsyncSession) -> EsimProfile:
    result = await session.execute(select(EsimProfile).where(EsimProfile.id == profile_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="eSIM profile not found",
        )
    return profile


async def _ensure_unique_iccid(iccid_value: str, session: AsyncSession) -> None:
    existing = await session.execute(
        select(EsimProfile.id).where(EsimProfile.iccid_value == iccid_value)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An eSIM profile with this ICCID already exists",
        )


@router.get("/", response_model=list[EsimProfileRead])
async def list_esim_profiles(
    search: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
) -> list[EsimProfileRead]:
    query = select(EsimProfile).order_by(EsimProfile.created_at.desc())
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                EsimProfile.iccid_value.ilike(pattern),
                EsimProfile.activation_code.ilike(pattern),
                EsimProfile.status.ilike(pattern),
            )
        )
    if status_filter and status_filter != "all":
        query = query.where(EsimProfile.status == status_filter)
    result = await session.execute(query)
    return [EsimProfileRead.model_validate(profile) for profile in result.scalars().all()]


@router.post("/", response_model=EsimProfileRead, status_code=status.HTTP_201_CREATED)
async def create_esim_profile(
    payload: EsimProfileCreate,
    session: AsyncSession = Depends(get_session),
) -> EsimProfileRead:
    await _ensure_unique_iccid(payload.iccid_value, session)

    data = payload.model_dump()
    data["device_number"] = _clean_optional(data["device_number"])
    profile = EsimProfile(**data)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return EsimProfileRead.model_validate(profile)


@router.get("/{profile_id}", response_model=EsimProfileRead)
async def get_esim_profile(
    profile_id: str,
    session: AsyncSession = Depends(get_session),
) -> EsimProfileRead:
    profile = await _get_profile_by_id(profile_id, session)
    return EsimProfileRead.model_validate(profile)


@router.patch("/{profile_id}", response_model=EsimProfileRead)
async def update_esim_profile(
    profile_id: str,
    payload: EsimProfileUpdate,
    session: AsyncSession = Depends(get_session),
) -> EsimProfileRead:
    profile = await _get_profile_by_id(profile_id, session)

    data = payload.model_dump(exclude_unset=True)
    if "device_number" in data:
        data["device_number"] = _clean_optional(data["device_number"])
    data = {
        key: value
        for key, value in data.items()
        if value is not None or key == "device_number"
    }

    iccid_value = data.get("iccid_value")
    if iccid_value is not None and iccid_value != profile.iccid_value:
        await _ensure_unique_iccid(iccid_value, session)

    updated = False
    for field_name, value in data.items():
        if getattr(profile, field_name) != value:
            setattr(profile, field_name, value)
            updated = True

    if updated:
        profile.updated_at = utcnow()
        await session.commit()
        await session.refresh(profile)

    return EsimProfileRead.model_validate(profile)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_esim_profile(
    profile_id: str,
    session: AsyncSession = Depends(get_session),
) -> Response:
    profile = await _get_profile_by_id(profile_id, session)
    await session.delete(profile)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
