from __future__ import annotations

from medchat.features.chat.sanitize import sanitize_chat_title, sanitize_message_content


def test_sanitize_message_content_strips_nul_and_whitespace():
    value = "\x00  hello\x00 world  \x00"
    assert sanitize_message_content(value) == "hello world"


def test_sanitize_message_content_normalizes_newlines():
    assert sanitize_message_content("line1\r\nline2\rline3") == "line1\nline2\nline3"


def test_sanitize_chat_title_collapses_whitespace():
    assert sanitize_chat_title("  Pelvic\n floor   exercises ") == "Pelvic floor exercises"


def test_sanitize_chat_title_empty_becomes_none():
    assert sanitize_chat_title("   ") is None
    assert sanitize_chat_title(None) is None


def test_sanitize_chat_title_is_bounded():
    assert len(sanitize_chat_title("x" * 400) or "") == 255
