from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from medchat.db.models import Profile
from medchat.features.profiles.errors import ProfileNotFoundError
from medchat.features.profiles.repo import upsert_profile
from medchat.features.profiles.types import ProfilePatch


class _FakeSession:
    def __init__(self):
        self.rows: dict = {}
        self.commits = 0

    async def get(self, _model, key):
        return self.rows.get(key)

    def add(self, row):
        self.rows[row.id] = row

    async def commit(self):
        self.commits += 1

    async def refresh(self, _row):
        return None


def test_upsert_profile_requires_email_to_create():
    session = _FakeSession()
    with pytest.raises(ProfileNotFoundError):
        asyncio.run(upsert_profile(session, user_id=uuid4(), patch=ProfilePatch(name="Ana")))
    assert session.commits == 0


def test_upsert_profile_creates_then_updates_and_ignores_required_nulls():
    session = _FakeSession()
    user_id = uuid4()

    created = asyncio.run(
        upsert_profile(session, user_id=user_id, patch=ProfilePatch(email="ana@example.com", specialty="MyColop"))
    )
    assert isinstance(created, Profile)
    assert created.specialty == "MyColop"

    updated = asyncio.run(
        upsert_profile(
            session,
            user_id=user_id,
            patch=ProfilePatch.model_validate({"email": None, "gender": None, "name": "Ana", "specialty": None}),
        )
    )
    assert updated is created
    assert updated.email == "ana@example.com"
    assert updated.name == "Ana"
    assert updated.specialty is None
    assert session.commits == 2
