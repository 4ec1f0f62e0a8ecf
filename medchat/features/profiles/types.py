from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["female", "male", "other", "not_specified"]


class ProfileResponse(BaseModel):
    id: str
    email: str
    name: str | None
    gender: Gender
    specialty: str | None
    created_at: datetime
    updated_at: datetime


class ProfilePatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str | None = Field(default=None, max_length=320)
    name: str | None = Field(default=None, max_length=255)
    gender: Gender | None = None
    specialty: str | None = Field(default=None, max_length=64)
