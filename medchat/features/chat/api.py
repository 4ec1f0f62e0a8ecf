from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from medchat.core.auth import get_current_user_id
from medchat.db.models import Chat, Message
from medchat.db.session import get_db_session
from medchat.features.attachments.errors import AttachmentValidationError
from medchat.features.shared.ids import parse_uuid

from . import repo
from .errors import ChatNotFoundError, CompletionError
from .service import send_message

router = APIRouter(prefix="/api/chats", tags=["chats"])

_COMPLETION_STATUS = {
    "rate_limit": 429,
    "insufficient_quota": 402,
    "upstream": 502,
}


class ChatResponse(BaseModel):
    id: str
    specialty: str
    title: str
    is_archived: bool
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    role: Literal["system", "user", "assistant"]
    content: str
    model: str | None
    attachments: list[dict[str, Any]]
    metadata: dict[str, Any] | None
    created_at: datetime


class ChatDetailResponse(ChatResponse):
    messages: list[MessageResponse]


class CreateChatRequest(BaseModel):
    specialty: str | None = Field(default=None, max_length=64)
    title: str | None = Field(default=None, max_length=255)


class RenameChatRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class ArchiveChatRequest(BaseModel):
    archived: bool


class SendMessageRequest(BaseModel):
    content: str = Field(default="", max_length=20000)
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class SendMessageResponse(BaseModel):
    chat: ChatResponse
    user_message: MessageResponse
    assistant_message: MessageResponse


def _to_chat_response(chat: Chat) -> ChatResponse:
    return ChatResponse(
        id=str(chat.id),
        specialty=chat.specialty,
        title=chat.title,
        is_archived=chat.is_archived,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
    )


def _to_message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=str(message.id),
        chat_id=str(message.chat_id),
        role=message.role,  # type: ignore[arg-type]
        content=message.content,
        model=message.model,
        attachments=list(message.attachments or []),
        metadata=message.metadata_json,
        created_at=message.created_at,
    )


@router.get("", response_model=list[ChatResponse])
async def get_chats(
    include_archived: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=200),
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> list[ChatResponse]:
    chats = await repo.list_chats(
        session,
        user_id=user_id,
        include_archived=include_archived,
        limit=limit,
    )
    return [_to_chat_response(chat) for chat in chats]


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def post_chat(
    payload: CreateChatRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ChatResponse:
    chat = await repo.create_chat(
        session,
        user_id=user_id,
        specialty=payload.specialty,
        title=payload.title,
    )
    return _to_chat_response(chat)


@router.get("/{chat_id}", response_model=ChatDetailResponse)
async def get_chat(
    chat_id: str,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ChatDetailResponse:
    chat_uuid = parse_uuid(chat_id, field_name="chat_id")
    try:
        chat = await repo.ensure_chat(session, chat_uuid, user_id=user_id)
    except ChatNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    messages = await repo.get_chat_messages(session, chat_uuid)
    return ChatDetailResponse(
        **_to_chat_response(chat).model_dump(),
        messages=[_to_message_response(message) for message in messages],
    )


@router.patch("/{chat_id}/title", response_model=ChatResponse)
async def patch_chat_title(
    chat_id: str,
    payload: RenameChatRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ChatResponse:
    chat_uuid = parse_uuid(chat_id, field_name="chat_id")
    if not payload.title.strip():
        raise HTTPException(status_code=400, detail="Chat title cannot be empty.")
    try:
        chat = await repo.rename_chat(
            session,
            chat_id=chat_uuid,
            user_id=user_id,
            title=payload.title,
        )
    except ChatNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _to_chat_response(chat)


@router.patch("/{chat_id}/archive", response_model=ChatResponse)
async def patch_chat_archive(
    chat_id: str,
    payload: ArchiveChatRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ChatResponse:
    chat_uuid = parse_uuid(chat_id, field_name="chat_id")
    try:
        chat = await repo.set_chat_archived(
            session,
            chat_id=chat_uuid,
            user_id=user_id,
            archived=payload.archived,
        )
    except ChatNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _to_chat_response(chat)


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_chat(
    chat_id: str,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    chat_uuid = parse_uuid(chat_id, field_name="chat_id")
    try:
        await repo.delete_chat(session, chat_id=chat_uuid, user_id=user_id)
    except ChatNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{chat_id}/messages", response_model=SendMessageResponse)
async def post_chat_message(
    chat_id: str,
    payload: SendMessageRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> SendMessageResponse:
    chat_uuid = parse_uuid(chat_id, field_name="chat_id")
    if not payload.content.strip() and not payload.attachments:
        raise HTTPException(status_code=400, detail="Provide a message or at least one attachment.")
    try:
        result = await send_message(
            session,
            user_id=user_id,
            chat_id=chat_uuid,
            content=payload.content,
            attachments=payload.attachments,
        )
    except ChatNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AttachmentValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CompletionError as exc:
        raise HTTPException(status_code=_COMPLETION_STATUS[exc.kind], detail=str(exc)) from exc

    return SendMessageResponse(
        chat=_to_chat_response(result.chat),
        user_message=_to_message_response(result.user_message),
        assistant_message=_to_message_response(result.assistant_message),
    )
