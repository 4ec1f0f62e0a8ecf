from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from typing import Callable

from docx import Document
from pypdf import PdfReader

from medchat.features.shared.text_sanitize import (
    log_sanitization_stats,
    sanitize_extracted_text_with_stats,
)

from .classifier import DocumentKind
from .schemas import ExtractionErrorKind, ExtractionResult

logger = logging.getLogger(__name__)

_DATA_URL_MARKER = "base64,"
_WHITESPACE_RE = re.compile(r"\s+")

Extractor = Callable[[str], ExtractionResult]


class PayloadDecodeError(ValueError):
    pass


def strip_data_url_prefix(payload: str) -> str:
    if _DATA_URL_MARKER in payload:
        return payload.split(_DATA_URL_MARKER, 1)[1]
    return payload


def decode_base64_payload(payload: str) -> bytes:
    cleaned = _WHITESPACE_RE.sub("", strip_data_url_prefix(payload or ""))
    if not cleaned:
        raise PayloadDecodeError("Attachment payload is empty.")
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadDecodeError(f"Attachment payload is not valid base64: {exc}") from exc


def _finalize(raw_text: str, *, location: str) -> ExtractionResult:
    text, stats = sanitize_extracted_text_with_stats(raw_text)
    log_sanitization_stats(logger, location=location, stats=stats)
    if not text:
        return ExtractionResult.failure(ExtractionErrorKind.EMPTY_EXTRACTION)
    return ExtractionResult.success(text)


def extract_plain_text(payload: str) -> ExtractionResult:
    try:
        data = decode_base64_payload(payload)
        decoded = data.decode("utf-8-sig")
    except (PayloadDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Could not read text attachment: %s", exc)
        return ExtractionResult.failure(ExtractionErrorKind.DECODE_FAILURE, str(exc))
    return _finalize(decoded, location="attachments.extract_plain_text")


def extract_pdf_text(payload: str) -> ExtractionResult:
    try:
        data = decode_base64_payload(payload)
    except PayloadDecodeError as exc:
        logger.warning("Could not decode PDF attachment: %s", exc)
        return ExtractionResult.failure(ExtractionErrorKind.DECODE_FAILURE, str(exc))

    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted and not reader.decrypt(""):
            return ExtractionResult.failure(
                ExtractionErrorKind.PARSE_FAILURE,
                "PDF is password-protected.",
            )
        chunks: list[str] = []
        for page in reader.pages:
            text = (page.extract_text() or "").strip()
            if text:
                chunks.append(text)
    except Exception as exc:
        logger.warning("Could not parse PDF attachment (%d bytes): %s", len(data), exc)
        return ExtractionResult.failure(ExtractionErrorKind.PARSE_FAILURE, str(exc))

    logger.debug("Parsed PDF attachment: pages=%d, text_pages=%d", len(reader.pages), len(chunks))
    return _finalize("\n\n".join(chunks), location="attachments.extract_pdf_text")


def extract_docx_text(payload: str) -> ExtractionResult:
    try:
        data = decode_base64_payload(payload)
    except PayloadDecodeError as exc:
        logger.warning("Could not decode DOCX attachment: %s", exc)
        return ExtractionResult.failure(ExtractionErrorKind.DECODE_FAILURE, str(exc))

    try:
        document = Document(io.BytesIO(data))
        lines = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    lines.append(" | ".join(cells))
    except Exception as exc:
        logger.warning("Could not parse DOCX attachment (%d bytes): %s", len(data), exc)
        return ExtractionResult.failure(ExtractionErrorKind.PARSE_FAILURE, str(exc))

    return _finalize("\n".join(lines), location="attachments.extract_docx_text")


EXTRACTORS: dict[DocumentKind, Extractor] = {
    DocumentKind.PLAIN_TEXT: extract_plain_text,
    DocumentKind.PDF: extract_pdf_text,
    DocumentKind.DOCX: extract_docx_text,
}


__all__ = [
    "EXTRACTORS",
    "Extractor",
    "PayloadDecodeError",
    "decode_base64_payload",
    "extract_docx_text",
    "extract_pdf_text",
    "extract_plain_text",
    "strip_data_url_prefix",
]
