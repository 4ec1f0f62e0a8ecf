from __future__ import annotations

import base64
import importlib
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient

chat_api = importlib.import_module("medchat.features.chat.api")
from medchat.db.models.chat import DEFAULT_CHAT_TITLE
from medchat.features.chat import repo
from medchat.features.chat.errors import ChatNotFoundError, CompletionError
from medchat.features.chat.service import SendMessageResult
from medchat.main import app

USER_ID = uuid4()
HEADERS = {"X-User-Id": str(USER_ID)}


class _DummySession:
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _ChatStore:
    def __init__(self):
        self.chats: dict = {}
        self.messages: dict = {}

    async def create_chat(self, _session, *, user_id, specialty=None, title=None):
        chat = SimpleNamespace(
            id=uuid4(),
            user_id=user_id,
            specialty=specialty or "general",
            title=title or DEFAULT_CHAT_TITLE,
            is_archived=False,
            created_at=_now(),
            updated_at=_now(),
        )
        self.chats[chat.id] = chat
        self.messages[chat.id] = []
        return chat

    async def list_chats(self, _session, *, user_id, include_archived=False, limit=100):
        items = [chat for chat in self.chats.values() if chat.user_id == user_id]
        if not include_archived:
            items = [chat for chat in items if not chat.is_archived]
        return sorted(items, key=lambda chat: chat.updated_at, reverse=True)[:limit]

    async def ensure_chat(self, _session, chat_id, *, user_id=None):
        chat = self.chats.get(chat_id)
        if chat is None or (user_id is not None and chat.user_id != user_id):
            raise ChatNotFoundError(f"Chat '{chat_id}' was not found.")
        return chat

    async def get_chat_messages(self, _session, chat_id):
        return list(self.messages.get(chat_id, []))

    async def rename_chat(self, _session, *, chat_id, user_id, title):
        chat = await self.ensure_chat(_session, chat_id, user_id=user_id)
        chat.title = title.strip()
        chat.updated_at = _now()
        return chat

    async def set_chat_archived(self, _session, *, chat_id, user_id, archived):
        chat = await self.ensure_chat(_session, chat_id, user_id=user_id)
        chat.is_archived = archived
        chat.updated_at = _now()
        return chat

    async def delete_chat(self, _session, *, chat_id, user_id):
        await self.ensure_chat(_session, chat_id, user_id=user_id)
        self.chats.pop(chat_id)
        self.messages.pop(chat_id, None)


def _message(chat_id, role, content, *, model=None, attachments=None):
    return SimpleNamespace(
        id=uuid4(),
        chat_id=chat_id,
        role=role,
        content=content,
        model=model,
        attachments=attachments or [],
        metadata_json={},
        created_at=_now(),
    )


def _patch_store(monkeypatch) -> _ChatStore:
    store = _ChatStore()
    for name in (
        "create_chat",
        "list_chats",
        "ensure_chat",
        "get_chat_messages",
        "rename_chat",
        "set_chat_archived",
        "delete_chat",
    ):
        monkeypatch.setattr(repo, name, getattr(store, name))

    async def _override_db():
        yield _DummySession()

    monkeypatch.setitem(app.dependency_overrides, chat_api.get_db_session, _override_db)
    return store


def test_requests_without_identity_are_rejected(monkeypatch):
    _patch_store(monkeypatch)
    client = TestClient(app)
    assert client.get("/api/chats").status_code == 401
    assert client.get("/api/chats", headers={"X-User-Id": "not-a-uuid"}).status_code == 401


def test_chat_crud_flow(monkeypatch):
    store = _patch_store(monkeypatch)
    client = TestClient(app)

    created = client.post("/api/chats", json={"specialty": "MyColop"}, headers=HEADERS)
    assert created.status_code == 201
    body = created.json()
    assert body["specialty"] == "MyColop"
    assert body["title"] == DEFAULT_CHAT_TITLE
    chat_id = body["id"]

    listed = client.get("/api/chats", headers=HEADERS)
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [chat_id]

    renamed = client.patch(f"/api/chats/{chat_id}/title", json={"title": " Hemorrhoid care "}, headers=HEADERS)
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Hemorrhoid care"

    detail = client.get(f"/api/chats/{chat_id}", headers=HEADERS)
    assert detail.status_code == 200
    assert detail.json()["messages"] == []

    other_user = client.get(f"/api/chats/{chat_id}", headers={"X-User-Id": str(uuid4())})
    assert other_user.status_code == 404

    deleted = client.delete(f"/api/chats/{chat_id}", headers=HEADERS)
    assert deleted.status_code == 204
    assert store.chats == {}

    assert client.get(f"/api/chats/{chat_id}", headers=HEADERS).status_code == 404
    assert client.get("/api/chats/not-a-uuid", headers=HEADERS).status_code == 400


def test_archived_chats_are_hidden_from_default_listing(monkeypatch):
    _patch_store(monkeypatch)
    client = TestClient(app)

    kept = client.post("/api/chats", json={}, headers=HEADERS).json()["id"]
    archived = client.post("/api/chats", json={}, headers=HEADERS).json()["id"]

    response = client.patch(f"/api/chats/{archived}/archive", json={"archived": True}, headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["is_archived"] is True

    listed = client.get("/api/chats", headers=HEADERS).json()
    assert [item["id"] for item in listed] == [kept]
    everything = client.get("/api/chats", params={"include_archived": "true"}, headers=HEADERS).json()
    assert {item["id"] for item in everything} == {kept, archived}

    restored = client.patch(f"/api/chats/{archived}/archive", json={"archived": False}, headers=HEADERS)
    assert restored.json()["is_archived"] is False

    missing = client.patch(f"/api/chats/{uuid4()}/archive", json={"archived": True}, headers=HEADERS)
    assert missing.status_code == 404


def test_post_message_returns_both_messages(monkeypatch):
    store = _patch_store(monkeypatch)
    client = TestClient(app)
    chat_id = client.post("/api/chats", json={}, headers=HEADERS).json()["id"]
    captured = {}

    async def _fake_send(_session, *, user_id, chat_id, content, attachments):
        captured.update(user_id=user_id, attachments=attachments)
        chat = await store.ensure_chat(_session, chat_id, user_id=user_id)
        stored_attachments = [
            {
                "type": "file",
                "name": "log.txt",
                "base64": attachments[0]["base64"],
                "size": 3,
                "extractedText": "abc",
                "extractionStatus": "extracted",
            }
        ]
        return SendMessageResult(
            chat=chat,
            user_message=_message(chat.id, "user", content, attachments=stored_attachments),
            assistant_message=_message(chat.id, "assistant", "Reply", model="gpt-4o-mini"),
        )

    monkeypatch.setattr(chat_api, "send_message", _fake_send)
    payload = base64.b64encode(b"abc").decode("ascii")
    response = client.post(
        f"/api/chats/{chat_id}/messages",
        json={"content": "Log attached", "attachments": [{"type": "file", "name": "log.txt", "base64": payload, "size": 3}]},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["user_message"]["attachments"][0]["extractionStatus"] == "extracted"
    assert body["assistant_message"]["content"] == "Reply"
    assert body["assistant_message"]["model"] == "gpt-4o-mini"
    assert captured["user_id"] == USER_ID


def test_post_message_requires_content_or_attachments(monkeypatch):
    _patch_store(monkeypatch)
    client = TestClient(app)
    response = client.post(f"/api/chats/{uuid4()}/messages", json={"content": "  "}, headers=HEADERS)
    assert response.status_code == 400


def test_post_message_rejects_unknown_attachment_type(monkeypatch):
    _patch_store(monkeypatch)
    client = TestClient(app)
    chat_id = client.post("/api/chats", json={}, headers=HEADERS).json()["id"]
    response = client.post(
        f"/api/chats/{chat_id}/messages",
        json={"content": "hi", "attachments": [{"type": "video", "name": "a.mp4", "base64": "", "size": 0}]},
        headers=HEADERS,
    )
    assert response.status_code == 400


def test_completion_errors_map_to_status_codes(monkeypatch):
    _patch_store(monkeypatch)
    client = TestClient(app)
    chat_id = client.post("/api/chats", json={}, headers=HEADERS).json()["id"]

    for kind, expected in (("rate_limit", 429), ("insufficient_quota", 402), ("upstream", 502)):

        async def _failing_send(_session, *, kind=kind, **_kwargs):
            raise CompletionError(kind, f"{kind} failure")

        monkeypatch.setattr(chat_api, "send_message", _failing_send)
        response = client.post(f"/api/chats/{chat_id}/messages", json={"content": "hi"}, headers=HEADERS)
        assert response.status_code == expected
