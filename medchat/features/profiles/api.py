from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from medchat.core.auth import get_current_user_id
from medchat.db.models import Profile
from medchat.db.session import get_db_session

from .errors import ProfileNotFoundError
from .repo import get_profile, upsert_profile
from .types import ProfilePatch, ProfileResponse

router = APIRouter(prefix="/api/profile", tags=["profile"])


def _to_profile_response(row: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=str(row.id),
        email=row.email,
        name=row.name,
        gender=row.gender,  # type: ignore[arg-type]
        specialty=row.specialty,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


@router.get("", response_model=ProfileResponse)
async def get_profile_route(
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    row = await get_profile(session, user_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Profile '{user_id}' was not found.")
    return _to_profile_response(row)


@router.patch("", response_model=ProfileResponse)
async def patch_profile_route(
    payload: ProfilePatch,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    try:
        row = await upsert_profile(session, user_id=user_id, patch=payload)
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _to_profile_response(row)
