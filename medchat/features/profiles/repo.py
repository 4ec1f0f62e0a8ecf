from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from medchat.db.models import Profile

from .errors import ProfileNotFoundError
from .types import ProfilePatch

_REQUIRED_COLUMNS = frozenset({"email", "gender"})


async def get_profile(session: AsyncSession, user_id: UUID) -> Profile | None:
    return await session.get(Profile, user_id)


async def upsert_profile(
    session: AsyncSession,
    *,
    user_id: UUID,
    patch: ProfilePatch,
) -> Profile:
    row = await get_profile(session, user_id)
    changes = {
        key: value
        for key, value in patch.model_dump(exclude_unset=True).items()
        if value is not None or key not in _REQUIRED_COLUMNS
    }
    if row is None:
        if not changes.get("email"):
            raise ProfileNotFoundError(
                f"Profile '{user_id}' does not exist; an email is required to create it."
            )
        row = Profile(id=user_id, **changes)
        session.add(row)
    else:
        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_at = datetime.now(timezone.utc)

    await session.commit()
    await session.refresh(row)
    return row
