from __future__ import annotations

from typing import Literal


class ChatDomainError(Exception):
    """Base exception for chat storage and orchestration."""


class ChatNotFoundError(ChatDomainError):
    pass


class MessageNotFoundError(ChatDomainError):
    pass


CompletionErrorKind = Literal["rate_limit", "insufficient_quota", "upstream"]


class CompletionError(ChatDomainError):
    def __init__(self, kind: CompletionErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
