from __future__ import annotations

import re
from enum import Enum

from .schemas import FileAttachment, ImageAttachment

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
PDF_MIME = "application/pdf"
TEXT_MIME = "text/plain"

_DATA_URL_MIME_RE = re.compile(r"^\s*data:([\w.+-]+/[\w.+-]+)\s*[;,]", re.IGNORECASE)


class DocumentKind(str, Enum):
    PLAIN_TEXT = "plain_text"
    PDF = "pdf"
    DOCX = "docx"
    UNSUPPORTED_DOC = "unsupported_doc"
    UNRECOGNIZED = "unrecognized"
    NOT_A_FILE = "not_a_file"


_KIND_BY_SUFFIX: dict[str, DocumentKind] = {
    ".txt": DocumentKind.PLAIN_TEXT,
    ".pdf": DocumentKind.PDF,
    ".docx": DocumentKind.DOCX,
    ".doc": DocumentKind.UNSUPPORTED_DOC,
}

_KIND_BY_MIME: dict[str, DocumentKind] = {
    TEXT_MIME: DocumentKind.PLAIN_TEXT,
    PDF_MIME: DocumentKind.PDF,
    DOCX_MIME: DocumentKind.DOCX,
    DOC_MIME: DocumentKind.UNSUPPORTED_DOC,
}


def data_url_mime_type(payload: str) -> str | None:
    match = _DATA_URL_MIME_RE.match(payload[:256])
    if match is None:
        return None
    return match.group(1).lower()


def _kind_from_name(name: str) -> DocumentKind | None:
    lowered = name.strip().lower()
    for suffix, kind in _KIND_BY_SUFFIX.items():
        if lowered.endswith(suffix):
            return kind
    return None


def _kind_from_mime(mime_type: str | None) -> DocumentKind | None:
    if not mime_type:
        return None
    base = mime_type.split(";", 1)[0].strip().lower()
    return _KIND_BY_MIME.get(base)


def classify_attachment(attachment: FileAttachment | ImageAttachment) -> DocumentKind:
    """Decide which extractor applies to an attachment.

    Signals are checked in order: the file name suffix, the content type
    embedded in a data-URL payload, then the declared mime type. The first
    signal that matches wins. Legacy ``.doc`` files are recognized but
    reported as unsupported.
    """
    if not isinstance(attachment, FileAttachment):
        return DocumentKind.NOT_A_FILE

    for kind in (
        _kind_from_name(attachment.name),
        _kind_from_mime(data_url_mime_type(attachment.base64)),
        _kind_from_mime(attachment.mime_type),
    ):
        if kind is not None:
            return kind
    return DocumentKind.UNRECOGNIZED


__all__ = [
    "DOCX_MIME",
    "DOC_MIME",
    "DocumentKind",
    "PDF_MIME",
    "TEXT_MIME",
    "classify_attachment",
    "data_url_mime_type",
]
