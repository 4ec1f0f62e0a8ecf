from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from medchat.db.models import Chat, Message
from medchat.db.models.chat import DEFAULT_CHAT_TITLE
from medchat.features.attachments.schemas import (
    FileAttachment,
    ImageAttachment,
    dump_attachments,
)

from .errors import ChatNotFoundError, MessageNotFoundError
from .prompts import GENERAL_SPECIALTY
from .sanitize import sanitize_chat_title, sanitize_message_content

logger = logging.getLogger(__name__)


def to_uuid(value: UUID | str) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(value)


async def ensure_chat(
    session: AsyncSession,
    chat_id: UUID | str,
    *,
    user_id: UUID | None = None,
) -> Chat:
    chat = await session.get(Chat, to_uuid(chat_id))
    if chat is None or (user_id is not None and chat.user_id != user_id):
        raise ChatNotFoundError(f"Chat '{chat_id}' was not found.")
    return chat


async def create_chat(
    session: AsyncSession,
    *,
    user_id: UUID,
    specialty: str | None = None,
    title: str | None = None,
) -> Chat:
    chat = Chat(
        user_id=user_id,
        specialty=(specialty or "").strip() or GENERAL_SPECIALTY,
        title=sanitize_chat_title(title, location="chat.create_chat.title") or DEFAULT_CHAT_TITLE,
    )
    session.add(chat)
    await session.commit()
    await session.refresh(chat)
    return chat


async def list_chats(
    session: AsyncSession,
    *,
    user_id: UUID,
    include_archived: bool = False,
    limit: int = 100,
) -> list[Chat]:
    stmt = (
        select(Chat)
        .where(Chat.user_id == user_id)
        .order_by(Chat.updated_at.desc(), Chat.id.desc())
        .limit(limit)
    )
    if not include_archived:
        stmt = stmt.where(Chat.is_archived.is_(False))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def rename_chat(
    session: AsyncSession,
    *,
    chat_id: UUID | str,
    user_id: UUID,
    title: str,
) -> Chat:
    chat = await ensure_chat(session, chat_id, user_id=user_id)
    chat.title = sanitize_chat_title(title, location="chat.rename_chat.title") or DEFAULT_CHAT_TITLE
    chat.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(chat)
    return chat


async def set_chat_archived(
    session: AsyncSession,
    *,
    chat_id: UUID | str,
    user_id: UUID,
    archived: bool,
) -> Chat:
    chat = await ensure_chat(session, chat_id, user_id=user_id)
    chat.is_archived = archived
    chat.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(chat)
    return chat


async def delete_chat(
    session: AsyncSession,
    *,
    chat_id: UUID | str,
    user_id: UUID,
) -> None:
    chat = await ensure_chat(session, chat_id, user_id=user_id)
    await session.delete(chat)
    await session.commit()


async def touch_chat(session: AsyncSession, chat: Chat, *, title: str | None = None) -> Chat:
    if title is not None:
        chat.title = sanitize_chat_title(title, location="chat.touch_chat.title") or chat.title
    chat.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(chat)
    return chat


async def add_message(
    session: AsyncSession,
    *,
    chat_id: UUID | str,
    role: str,
    content: str,
    model: str | None = None,
    attachments: Sequence[FileAttachment | ImageAttachment] = (),
    metadata: dict[str, Any] | None = None,
) -> Message:
    message = Message(
        chat_id=to_uuid(chat_id),
        role=role,
        content=sanitize_message_content(content, location=f"chat.add_message.content.{role}"),
        model=model,
        attachments=dump_attachments(attachments),
        metadata_json=metadata or {},
    )
    session.add(message)
    await session.commit()
    await session.refresh(message)
    return message


async def get_message(session: AsyncSession, message_id: UUID | str) -> Message:
    message = await session.get(Message, to_uuid(message_id))
    if message is None:
        raise MessageNotFoundError(f"Message '{message_id}' was not found.")
    return message


async def get_chat_messages(session: AsyncSession, chat_id: UUID | str) -> list[Message]:
    stmt = (
        select(Message)
        .where(Message.chat_id == to_uuid(chat_id))
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_recent_messages(
    session: AsyncSession,
    chat_id: UUID | str,
    *,
    limit: int,
) -> list[Message]:
    stmt = (
        select(Message)
        .where(Message.chat_id == to_uuid(chat_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(reversed(result.scalars().all()))


async def count_user_messages(session: AsyncSession, chat_id: UUID | str) -> int:
    stmt = select(func.count(Message.id)).where(
        Message.chat_id == to_uuid(chat_id),
        Message.role == "user",
    )
    result = await session.execute(stmt)
    return int(result.scalar_one() or 0)


async def replace_message_attachments(
    session: AsyncSession,
    *,
    message: Message,
    attachments: Sequence[FileAttachment | ImageAttachment],
) -> Message:
    # The JSON column is rewritten as a whole so the change is always flushed.
    message.attachments = dump_attachments(attachments)
    await session.commit()
    await session.refresh(message)
    return message


__all__ = [
    "add_message",
    "count_user_messages",
    "create_chat",
    "delete_chat",
    "ensure_chat",
    "get_chat_messages",
    "get_message",
    "get_recent_messages",
    "list_chats",
    "rename_chat",
    "replace_message_attachments",
    "set_chat_archived",
    "to_uuid",
    "touch_chat",
]
