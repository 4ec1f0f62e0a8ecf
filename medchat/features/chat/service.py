from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from medchat.core.config import get_settings
from medchat.db.models import Chat, Message
from medchat.db.models.chat import DEFAULT_CHAT_TITLE
from medchat.features.attachments.schemas import parse_attachments
from medchat.features.attachments.service import process_attachments

from . import repo
from .completion import FALLBACK_REPLY, generate_chat_title, get_chat_completion
from .payload import assemble_chat_payload
from .prompts import get_system_prompt
from .types import HistoryMessage

logger = logging.getLogger(__name__)

_HISTORY_ROLES = {"user", "assistant"}


@dataclass(frozen=True)
class SendMessageResult:
    chat: Chat
    user_message: Message
    assistant_message: Message


def to_history_message(message: Message) -> HistoryMessage | None:
    if message.role not in _HISTORY_ROLES:
        return None
    return HistoryMessage(
        role=message.role,  # type: ignore[arg-type]
        content=message.content,
        attachments=parse_attachments(message.attachments),
    )


def build_history(messages: Sequence[Message]) -> list[HistoryMessage]:
    history: list[HistoryMessage] = []
    for message in messages:
        item = to_history_message(message)
        if item is not None:
            history.append(item)
    return history


async def send_message(
    session: AsyncSession,
    *,
    user_id: UUID,
    chat_id: UUID | str,
    content: str,
    attachments: Sequence[Any] | None = None,
) -> SendMessageResult:
    settings = get_settings()
    chat = await repo.ensure_chat(session, chat_id, user_id=user_id)

    enriched = await process_attachments(
        parse_attachments(attachments),
        max_size_bytes=settings.attachment_max_size_bytes,
    )
    user_message = await repo.add_message(
        session,
        chat_id=chat.id,
        role="user",
        content=content,
        attachments=enriched,
    )

    recent = await repo.get_recent_messages(session, chat.id, limit=settings.chat_history_limit)
    payload = assemble_chat_payload(
        build_history(recent),
        get_system_prompt(chat.specialty),
        text_model=settings.chat_text_model,
        vision_model=settings.chat_vision_model,
        document_char_limit=settings.chat_document_char_limit,
    )
    logger.info(
        "Sending chat %s to completion (history=%d, model=%s).",
        chat.id,
        len(payload.messages) - 1,
        payload.model,
    )
    completion = await get_chat_completion(
        payload,
        max_tokens=settings.chat_max_tokens,
        temperature=settings.chat_temperature,
    )
    assistant_message = await repo.add_message(
        session,
        chat_id=chat.id,
        role="assistant",
        content=completion.content if completion is not None else FALLBACK_REPLY,
        model=completion.model if completion is not None else None,
    )

    new_title: str | None = None
    if chat.title == DEFAULT_CHAT_TITLE or await repo.count_user_messages(session, chat.id) == 1:
        new_title = await generate_chat_title(user_message.content)
    chat = await repo.touch_chat(session, chat, title=new_title)

    return SendMessageResult(
        chat=chat,
        user_message=user_message,
        assistant_message=assistant_message,
    )


async def reprocess_message_attachments(
    session: AsyncSession,
    message_id: UUID | str,
) -> Message:
    """Run extraction again on a stored message and write the array back.

    Documents that already carry extracted text are left alone, so repeated
    runs only retry pending or failed attachments.
    """
    message = await repo.get_message(session, message_id)
    current = parse_attachments(message.attachments)
    if not current:
        return message
    enriched = await process_attachments(current)
    return await repo.replace_message_attachments(session, message=message, attachments=enriched)


__all__ = [
    "SendMessageResult",
    "build_history",
    "reprocess_message_attachments",
    "send_message",
    "to_history_message",
]
