from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from medchat.core.config import get_settings

from . import extractors
from .classifier import DocumentKind, classify_attachment
from .schemas import (
    ExtractionErrorKind,
    ExtractionResult,
    ExtractionStatus,
    FileAttachment,
    ImageAttachment,
)

logger = logging.getLogger(__name__)

AnyAttachment = FileAttachment | ImageAttachment

_FORMAT_LABELS: dict[DocumentKind, str] = {
    DocumentKind.PLAIN_TEXT: "text file",
    DocumentKind.PDF: "PDF",
    DocumentKind.DOCX: "Word document",
}

_FAILURE_MESSAGES: dict[tuple[DocumentKind, ExtractionErrorKind], str] = {
    (DocumentKind.PLAIN_TEXT, ExtractionErrorKind.EMPTY_EXTRACTION): (
        "The text file is empty. Check the file and upload it again."
    ),
    (DocumentKind.PLAIN_TEXT, ExtractionErrorKind.DECODE_FAILURE): (
        "The text file could not be read. Make sure it is UTF-8 encoded and not corrupted."
    ),
    (DocumentKind.PDF, ExtractionErrorKind.EMPTY_EXTRACTION): (
        "No text could be extracted from the PDF. It may be a scanned or image-only document; "
        "describe its contents or paste the text into the chat."
    ),
    (DocumentKind.PDF, ExtractionErrorKind.PARSE_FAILURE): (
        "The PDF could not be processed. It may be corrupted or password-protected; "
        "export it again without a password or paste its contents into the chat."
    ),
    (DocumentKind.DOCX, ExtractionErrorKind.EMPTY_EXTRACTION): (
        "The Word document contains no readable text. Check the file or paste its contents into the chat."
    ),
    (DocumentKind.DOCX, ExtractionErrorKind.PARSE_FAILURE): (
        "The Word document could not be read. Make sure it is not password-protected or corrupted, "
        "or convert it to PDF."
    ),
}

_UNSUPPORTED_DOC_MESSAGE = "The DOC format is not supported. Convert the file to DOCX or PDF and upload it again."
_UNRECOGNIZED_FORMAT_MESSAGE = "This file format is not supported. Upload a PDF, DOCX or TXT file instead."


def _oversized_message(max_size_bytes: int) -> str:
    limit_mb = max_size_bytes / (1024 * 1024)
    return (
        f"The document exceeds the maximum allowed size ({limit_mb:g} MB). "
        "Upload a smaller file or paste the relevant sections into the chat."
    )


def describe_extraction_failure(kind: DocumentKind, error: ExtractionErrorKind) -> str:
    message = _FAILURE_MESSAGES.get((kind, error))
    if message is not None:
        return message
    label = _FORMAT_LABELS.get(kind, "file")
    if error is ExtractionErrorKind.DECODE_FAILURE:
        return f"The {label} upload could not be decoded. Upload the file again."
    return f"The {label} could not be processed. Paste the relevant content into the chat instead."


def _mark_extracted(attachment: FileAttachment, text: str) -> FileAttachment:
    return attachment.model_copy(
        update={
            "extracted_text": text,
            "extraction_error": None,
            "extraction_error_kind": None,
            "extraction_status": ExtractionStatus.EXTRACTED,
        }
    )


def _mark_failed(
    attachment: FileAttachment,
    *,
    error: ExtractionErrorKind,
    message: str,
) -> FileAttachment:
    logger.warning(
        "Attachment extraction failed (name=%r, error=%s).",
        attachment.name,
        error.value,
    )
    return attachment.model_copy(
        update={
            "extracted_text": "",
            "extraction_error": message,
            "extraction_error_kind": error,
            "extraction_status": ExtractionStatus.FAILED,
        }
    )


async def _run_extractor(kind: DocumentKind, attachment: FileAttachment) -> ExtractionResult:
    extractor = extractors.EXTRACTORS[kind]
    try:
        return await asyncio.to_thread(extractor, attachment.base64)
    except Exception as exc:
        logger.exception("Extractor for %s crashed on attachment %r.", kind.value, attachment.name)
        return ExtractionResult.failure(ExtractionErrorKind.PARSE_FAILURE, str(exc))


async def process_attachment(attachment: AnyAttachment, *, max_size_bytes: int) -> AnyAttachment:
    if not isinstance(attachment, FileAttachment):
        return attachment
    if attachment.is_extracted:
        return attachment

    if attachment.size > max_size_bytes:
        return _mark_failed(
            attachment,
            error=ExtractionErrorKind.OVERSIZED_INPUT,
            message=_oversized_message(max_size_bytes),
        )

    kind = classify_attachment(attachment)
    if kind is DocumentKind.UNSUPPORTED_DOC:
        return _mark_failed(
            attachment,
            error=ExtractionErrorKind.UNSUPPORTED_FORMAT,
            message=_UNSUPPORTED_DOC_MESSAGE,
        )
    if kind not in extractors.EXTRACTORS:
        return _mark_failed(
            attachment,
            error=ExtractionErrorKind.UNSUPPORTED_FORMAT,
            message=_UNRECOGNIZED_FORMAT_MESSAGE,
        )
    if not attachment.base64.strip():
        return _mark_failed(
            attachment,
            error=ExtractionErrorKind.EMPTY_EXTRACTION,
            message=describe_extraction_failure(kind, ExtractionErrorKind.EMPTY_EXTRACTION),
        )

    result = await _run_extractor(kind, attachment)
    if result.ok and result.text:
        logger.info(
            "Extracted %d characters from %s attachment %r.",
            len(result.text),
            kind.value,
            attachment.name,
        )
        return _mark_extracted(attachment, result.text)

    error = result.error or ExtractionErrorKind.EMPTY_EXTRACTION
    if result.detail:
        logger.debug("Extraction detail for %r: %s", attachment.name, result.detail)
    return _mark_failed(
        attachment,
        error=error,
        message=describe_extraction_failure(kind, error),
    )


async def process_attachments(
    attachments: Sequence[AnyAttachment],
    *,
    max_size_bytes: int | None = None,
) -> list[AnyAttachment]:
    """Extract text for every document attachment in a batch.

    Returns a new list with one entry per input, in input order. Images and
    already-extracted documents come back untouched; each failure is recorded
    on its own attachment and never interrupts the rest of the batch.
    """
    if not attachments:
        return []
    limit = max_size_bytes if max_size_bytes is not None else get_settings().attachment_max_size_bytes
    logger.info("Processing %d attachment(s).", len(attachments))
    processed = await asyncio.gather(
        *(process_attachment(item, max_size_bytes=limit) for item in attachments)
    )
    return list(processed)


__all__ = [
    "describe_extraction_failure",
    "process_attachment",
    "process_attachments",
]
