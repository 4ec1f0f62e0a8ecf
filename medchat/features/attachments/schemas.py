from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Sequence, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import AttachmentValidationError

# Records written before the status field existed stored failures as
# bracketed notices inside the extracted text.
LEGACY_PLACEHOLDER_PREFIX = "["


class ExtractionStatus(str, Enum):
    PENDING = "pending"
    EXTRACTED = "extracted"
    FAILED = "failed"


class ExtractionErrorKind(str, Enum):
    OVERSIZED_INPUT = "oversized_input"
    UNSUPPORTED_FORMAT = "unsupported_format"
    DECODE_FAILURE = "decode_failure"
    EMPTY_EXTRACTION = "empty_extraction"
    PARSE_FAILURE = "parse_failure"


class _AttachmentBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    base64: str = Field(default="", validation_alias=AliasChoices("base64", "data_url", "dataUrl"))
    size: int = Field(default=0, ge=0)
    mime_type: str | None = Field(default=None, alias="mimeType")

    @field_validator("name", "base64", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("size", mode="before")
    @classmethod
    def _coerce_size(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return 0
        return value


class FileAttachment(_AttachmentBase):
    type: Literal["file"] = "file"
    extracted_text: str | None = Field(default=None, alias="extractedText")
    extraction_error: str | None = Field(default=None, alias="extractionError")
    extraction_error_kind: ExtractionErrorKind | None = Field(
        default=None,
        alias="extractionErrorKind",
    )
    extraction_status: ExtractionStatus = Field(
        default=ExtractionStatus.PENDING,
        alias="extractionStatus",
    )

    @model_validator(mode="after")
    def _derive_legacy_status(self) -> FileAttachment:
        if "extraction_status" in self.model_fields_set:
            return self
        text = (self.extracted_text or "").strip()
        if text and not text.startswith(LEGACY_PLACEHOLDER_PREFIX):
            self.extraction_status = ExtractionStatus.EXTRACTED
        elif self.extraction_error:
            self.extraction_status = ExtractionStatus.FAILED
        return self

    @property
    def is_extracted(self) -> bool:
        return self.extraction_status is ExtractionStatus.EXTRACTED and bool(
            (self.extracted_text or "").strip()
        )


class ImageAttachment(_AttachmentBase):
    type: Literal["image"] = "image"


Attachment = Annotated[Union[FileAttachment, ImageAttachment], Field(discriminator="type")]

_ATTACHMENT_LIST_ADAPTER: TypeAdapter[list[Attachment]] = TypeAdapter(list[Attachment])


@dataclass(frozen=True)
class ExtractionResult:
    text: str = ""
    error: ExtractionErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> ExtractionResult:
        return cls(text=text)

    @classmethod
    def failure(cls, error: ExtractionErrorKind, detail: str | None = None) -> ExtractionResult:
        return cls(error=error, detail=detail)


def _describe_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for item in exc.errors()[:3]:
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "Invalid attachment payload: " + "; ".join(parts)


def parse_attachments(raw: Sequence[Any] | None) -> list[FileAttachment | ImageAttachment]:
    if not raw:
        return []
    try:
        return _ATTACHMENT_LIST_ADAPTER.validate_python(list(raw))
    except ValidationError as exc:
        raise AttachmentValidationError(_describe_validation_error(exc)) from exc


def dump_attachments(attachments: Sequence[FileAttachment | ImageAttachment]) -> list[dict[str, Any]]:
    return [
        item.model_dump(mode="json", by_alias=True, exclude_none=True)
        for item in attachments
    ]
