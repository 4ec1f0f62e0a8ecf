from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from medchat.core.auth import get_current_user_id

from .errors import AttachmentValidationError
from .schemas import dump_attachments, parse_attachments
from .service import process_attachments

router = APIRouter(prefix="/api/attachments", tags=["attachments"])


class ProcessAttachmentsRequest(BaseModel):
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class ProcessAttachmentsResponse(BaseModel):
    attachments: list[dict[str, Any]]


@router.post("/process", response_model=ProcessAttachmentsResponse)
async def process_attachments_route(
    payload: ProcessAttachmentsRequest,
    _user_id: UUID = Depends(get_current_user_id),
) -> ProcessAttachmentsResponse:
    try:
        attachments = parse_attachments(payload.attachments)
    except AttachmentValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    processed = await process_attachments(attachments)
    return ProcessAttachmentsResponse(attachments=dump_attachments(processed))
