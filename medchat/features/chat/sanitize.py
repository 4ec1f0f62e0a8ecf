from __future__ import annotations

import logging

from medchat.features.shared.text_sanitize import log_sanitization_stats, sanitize_text

logger = logging.getLogger(__name__)

_TITLE_MAX_LENGTH = 255


def sanitize_message_content(
    content: str,
    *,
    location: str = "chat.message_content",
) -> str:
    cleaned, stats = sanitize_text(content, strip=True)
    log_sanitization_stats(logger, location=location, stats=stats)
    return cleaned


def sanitize_chat_title(
    title: str | None,
    *,
    location: str = "chat.title",
) -> str | None:
    if title is None:
        return None
    cleaned, stats = sanitize_text(title, strip=True)
    log_sanitization_stats(logger, location=location, stats=stats)
    cleaned = " ".join(cleaned.split())
    return cleaned[:_TITLE_MAX_LENGTH] or None


__all__ = [
    "sanitize_chat_title",
    "sanitize_message_content",
]
