from .classifier import DocumentKind, classify_attachment
from .errors import AttachmentsDomainError, AttachmentValidationError
from .schemas import (
    Attachment,
    ExtractionErrorKind,
    ExtractionResult,
    ExtractionStatus,
    FileAttachment,
    ImageAttachment,
    dump_attachments,
    parse_attachments,
)
from .service import describe_extraction_failure, process_attachment, process_attachments

__all__ = [
    "Attachment",
    "AttachmentValidationError",
    "AttachmentsDomainError",
    "DocumentKind",
    "ExtractionErrorKind",
    "ExtractionResult",
    "ExtractionStatus",
    "FileAttachment",
    "ImageAttachment",
    "classify_attachment",
    "describe_extraction_failure",
    "dump_attachments",
    "parse_attachments",
    "process_attachment",
    "process_attachments",
]
