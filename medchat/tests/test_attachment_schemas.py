from __future__ import annotations

import pytest

from medchat.features.attachments.errors import AttachmentValidationError
from medchat.features.attachments.schemas import (
    ExtractionErrorKind,
    ExtractionResult,
    ExtractionStatus,
    FileAttachment,
    ImageAttachment,
    dump_attachments,
    parse_attachments,
)


def test_parse_attachments_builds_tagged_union():
    items = parse_attachments(
        [
            {"type": "file", "name": "labs.pdf", "base64": "QUJD", "size": 3},
            {"type": "image", "name": "rash.png", "base64": "QUJD", "size": 3, "mimeType": "image/png"},
        ]
    )
    assert isinstance(items[0], FileAttachment)
    assert isinstance(items[1], ImageAttachment)
    assert items[1].mime_type == "image/png"
    assert items[0].extraction_status is ExtractionStatus.PENDING


def test_parse_attachments_rejects_unknown_type():
    with pytest.raises(AttachmentValidationError):
        parse_attachments([{"type": "video", "name": "clip.mp4", "base64": "", "size": 0}])


def test_parse_attachments_rejects_missing_type():
    with pytest.raises(AttachmentValidationError):
        parse_attachments([{"name": "notes.txt", "base64": "", "size": 0}])


def test_parse_attachments_accepts_legacy_data_url_key():
    [item] = parse_attachments([{"type": "file", "name": "a.txt", "data_url": "data:text/plain;base64,QQ==", "size": 1}])
    assert item.base64 == "data:text/plain;base64,QQ=="


def test_parse_attachments_coerces_missing_values():
    [item] = parse_attachments([{"type": "file", "name": None, "base64": None, "size": None}])
    assert item.name == ""
    assert item.base64 == ""
    assert item.size == 0


def test_parse_attachments_empty_input():
    assert parse_attachments(None) == []
    assert parse_attachments([]) == []


def test_legacy_record_with_text_is_extracted():
    [item] = parse_attachments([{"type": "file", "name": "a.txt", "base64": "", "size": 1, "extractedText": "BP log"}])
    assert item.extraction_status is ExtractionStatus.EXTRACTED
    assert item.is_extracted


def test_legacy_placeholder_text_is_not_extracted():
    [item] = parse_attachments(
        [{"type": "file", "name": "scan.pdf", "base64": "", "size": 1, "extractedText": "[No text found in PDF]"}]
    )
    assert item.extraction_status is ExtractionStatus.PENDING
    assert not item.is_extracted


def test_legacy_record_with_error_is_failed():
    [item] = parse_attachments(
        [{"type": "file", "name": "old.doc", "base64": "", "size": 1, "extractedText": "", "extractionError": "format not supported"}]
    )
    assert item.extraction_status is ExtractionStatus.FAILED


def test_explicit_status_wins_over_derivation():
    [item] = parse_attachments(
        [{"type": "file", "name": "a.txt", "base64": "", "size": 1, "extractedText": "text", "extractionStatus": "failed"}]
    )
    assert item.extraction_status is ExtractionStatus.FAILED
    assert not item.is_extracted


def test_dump_attachments_uses_wire_names():
    item = FileAttachment(
        name="a.txt",
        base64="QQ==",
        size=1,
        extracted_text="A",
        extraction_status=ExtractionStatus.EXTRACTED,
    )
    [dumped] = dump_attachments([item])
    assert dumped == {
        "type": "file",
        "name": "a.txt",
        "base64": "QQ==",
        "size": 1,
        "extractedText": "A",
        "extractionStatus": "extracted",
    }


def test_extraction_result_helpers():
    assert ExtractionResult.success("ok").ok
    failed = ExtractionResult.failure(ExtractionErrorKind.PARSE_FAILURE, "boom")
    assert not failed.ok
    assert failed.text == ""
    assert failed.detail == "boom"


def test_unknown_keys_round_trip_unchanged():
    raw = [{"type": "image", "name": "rash.png", "base64": "QUJD", "size": 3, "preview": "thumb"}]
    assert dump_attachments(parse_attachments(raw)) == raw
