from __future__ import annotations

from medchat.core.config import Settings


def _settings(monkeypatch, **env) -> Settings:
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return Settings(_env_file=None)


def test_document_char_limit_defaults_to_2000(monkeypatch):
    monkeypatch.delenv("CHAT_DOCUMENT_CHAR_LIMIT", raising=False)
    assert _settings(monkeypatch).chat_document_char_limit == 2000


def test_document_char_limit_can_be_disabled(monkeypatch):
    assert _settings(monkeypatch, CHAT_DOCUMENT_CHAR_LIMIT="0").chat_document_char_limit is None
    assert _settings(monkeypatch, CHAT_DOCUMENT_CHAR_LIMIT="").chat_document_char_limit is None


def test_document_char_limit_reads_positive_values(monkeypatch):
    assert _settings(monkeypatch, CHAT_DOCUMENT_CHAR_LIMIT="500").chat_document_char_limit == 500
