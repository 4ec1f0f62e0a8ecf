from __future__ import annotations


class AttachmentsDomainError(Exception):
    """Base exception for attachment ingestion."""


class AttachmentValidationError(AttachmentsDomainError):
    pass
