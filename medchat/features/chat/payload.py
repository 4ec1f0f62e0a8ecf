from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Sequence

from medchat.core.config import DEFAULT_TEXT_MODEL, DEFAULT_VISION_MODEL
from medchat.features.attachments.schemas import FileAttachment, ImageAttachment
from medchat.features.shared.text_sanitize import sanitize_extracted_text

from .types import HistoryMessage, Role

logger = logging.getLogger(__name__)

IMAGE_DETAIL = "high"
DEFAULT_IMAGE_MIME = "image/jpeg"
DEFAULT_DOCUMENT_NAME = "document"
TRUNCATION_MARKER = "\n[truncated]"

_UNAVAILABLE_NOTICE = (
    "[The content of this file could not be read. Ask the user to restate or paste "
    "the relevant information in the chat.]"
)


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ImageBlock:
    url: str
    detail: str = IMAGE_DETAIL
    type: Literal["image"] = "image"


ContentBlock = TextBlock | ImageBlock


@dataclass(frozen=True)
class PayloadMessage:
    role: Role
    content: list[ContentBlock] = field(default_factory=list)


@dataclass(frozen=True)
class ChatPayload:
    messages: list[PayloadMessage]
    model: str

    @property
    def has_images(self) -> bool:
        return contains_image_blocks(self.messages)


def normalize_image_url(payload: str, mime_type: str | None = None) -> str:
    """Turn an attachment payload into a fully qualified inline data URL."""
    value = payload.strip()
    if value.startswith("data:"):
        return value
    image_mime = (mime_type or "").split(";", 1)[0].strip().lower()
    if not image_mime.startswith("image/"):
        image_mime = DEFAULT_IMAGE_MIME
    return f"data:{image_mime};base64,{value}"


def _document_name(attachment: FileAttachment) -> str:
    name = sanitize_extracted_text(attachment.name).replace("\n", " ")
    return name or DEFAULT_DOCUMENT_NAME


def _unavailable_notice(attachment: FileAttachment) -> str:
    if attachment.extraction_error:
        return f"{_UNAVAILABLE_NOTICE}\nReason: {attachment.extraction_error}"
    return _UNAVAILABLE_NOTICE


def _truncate(text: str, limit: int | None) -> str:
    if limit is None or len(text) <= limit:
        return text
    return f"{text[:limit]}{TRUNCATION_MARKER}"


def _document_block(attachment: FileAttachment, *, document_char_limit: int | None) -> TextBlock:
    if attachment.is_extracted:
        body = _truncate((attachment.extracted_text or "").strip(), document_char_limit)
    else:
        body = _unavailable_notice(attachment)
    return TextBlock(text=f"\n\n[Attached file: {_document_name(attachment)}]\n{body}\n")


def build_message_blocks(
    message: HistoryMessage,
    *,
    document_char_limit: int | None = None,
) -> list[ContentBlock]:
    blocks: list[ContentBlock] = [TextBlock(text=message.content)]
    for attachment in message.attachments:
        if isinstance(attachment, FileAttachment):
            blocks.append(_document_block(attachment, document_char_limit=document_char_limit))
    for attachment in message.attachments:
        if isinstance(attachment, ImageAttachment) and attachment.base64.strip():
            blocks.append(ImageBlock(url=normalize_image_url(attachment.base64, attachment.mime_type)))
    return blocks


def contains_image_blocks(messages: Sequence[PayloadMessage]) -> bool:
    return any(isinstance(block, ImageBlock) for message in messages for block in message.content)


def select_model(
    messages: Sequence[PayloadMessage],
    *,
    text_model: str = DEFAULT_TEXT_MODEL,
    vision_model: str = DEFAULT_VISION_MODEL,
) -> str:
    return vision_model if contains_image_blocks(messages) else text_model


def assemble_chat_payload(
    history: Sequence[HistoryMessage],
    system_prompt: str,
    *,
    text_model: str = DEFAULT_TEXT_MODEL,
    vision_model: str = DEFAULT_VISION_MODEL,
    document_char_limit: int | None = None,
) -> ChatPayload:
    """Build the completion request for a conversation.

    The system prompt comes first, followed by one message per history item
    with its role preserved. Each message starts with its own text, then one
    block per document attachment and finally one block per image. The model
    is chosen only after the whole payload is assembled: a single image
    anywhere requires the vision model.
    """
    messages: list[PayloadMessage] = [
        PayloadMessage(role="system", content=[TextBlock(text=system_prompt)])
    ]
    for item in history:
        messages.append(
            PayloadMessage(
                role=item.role,
                content=build_message_blocks(item, document_char_limit=document_char_limit),
            )
        )

    model = select_model(messages, text_model=text_model, vision_model=vision_model)
    logger.debug("Assembled chat payload: messages=%d, model=%s", len(messages), model)
    return ChatPayload(messages=messages, model=model)


__all__ = [
    "ChatPayload",
    "ContentBlock",
    "IMAGE_DETAIL",
    "ImageBlock",
    "PayloadMessage",
    "TextBlock",
    "assemble_chat_payload",
    "build_message_blocks",
    "contains_image_blocks",
    "normalize_image_url",
    "select_model",
]
