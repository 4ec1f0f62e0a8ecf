from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from medchat.features.attachments.schemas import FileAttachment, ImageAttachment

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class HistoryMessage:
    role: Role
    content: str
    attachments: list[FileAttachment | ImageAttachment] = field(default_factory=list)


@dataclass(frozen=True)
class CompletionResult:
    content: str
    model: str
