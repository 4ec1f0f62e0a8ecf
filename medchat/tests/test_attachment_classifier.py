from __future__ import annotations

from medchat.features.attachments.classifier import (
    DOCX_MIME,
    DocumentKind,
    classify_attachment,
    data_url_mime_type,
)
from medchat.features.attachments.schemas import FileAttachment, ImageAttachment


def _file(name: str = "", payload: str = "", mime_type: str | None = None) -> FileAttachment:
    return FileAttachment(name=name, base64=payload, size=10, mime_type=mime_type)


def test_image_is_not_a_file():
    assert classify_attachment(ImageAttachment(name="x.pdf", base64="", size=1)) is DocumentKind.NOT_A_FILE


def test_classifies_by_suffix_case_insensitively():
    assert classify_attachment(_file("notes.TXT")) is DocumentKind.PLAIN_TEXT
    assert classify_attachment(_file("Labs.Pdf")) is DocumentKind.PDF
    assert classify_attachment(_file("plan.docx")) is DocumentKind.DOCX


def test_doc_is_recognized_but_unsupported():
    assert classify_attachment(_file("report.doc")) is DocumentKind.UNSUPPORTED_DOC
    assert classify_attachment(_file("", "data:application/msword;base64,AAAA")) is DocumentKind.UNSUPPORTED_DOC


def test_classifies_by_data_url_hint_when_name_is_missing():
    assert classify_attachment(_file("", "data:application/pdf;base64,JVBERi0=")) is DocumentKind.PDF
    assert classify_attachment(_file("upload", f"data:{DOCX_MIME};base64,UEsDBA==")) is DocumentKind.DOCX
    assert classify_attachment(_file("blob", "data:text/plain;charset=utf-8;base64,QQ==")) is DocumentKind.PLAIN_TEXT


def test_name_suffix_wins_over_data_url_hint():
    assert classify_attachment(_file("notes.txt", "data:application/pdf;base64,JVBERi0=")) is DocumentKind.PLAIN_TEXT


def test_declared_mime_type_is_last_signal():
    assert classify_attachment(_file("upload", "QUJD", mime_type="application/pdf")) is DocumentKind.PDF


def test_unmatched_file_is_unrecognized():
    assert classify_attachment(_file("scan.tiff", "data:image/tiff;base64,AAAA")) is DocumentKind.UNRECOGNIZED
    assert classify_attachment(_file("", "")) is DocumentKind.UNRECOGNIZED


def test_data_url_mime_type_parsing():
    assert data_url_mime_type("data:Application/PDF;base64,AAAA") == "application/pdf"
    assert data_url_mime_type("JVBERi0xLjQK") is None


def test_bare_suffix_names_are_classified():
    assert classify_attachment(_file(".pdf")) is DocumentKind.PDF
    assert classify_attachment(_file(".docx")) is DocumentKind.DOCX
    assert classify_attachment(_file(".doc")) is DocumentKind.UNSUPPORTED_DOC
    assert classify_attachment(_file(" referral.DOCX ")) is DocumentKind.DOCX
