from __future__ import annotations

import importlib
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from advisorhub.core.config import get_settings
from advisorhub.db.session import get_db_session
from advisorhub.features.attachments import AttachmentNotFoundError
from advisorhub.features.chat import ConversationNotFoundError
from advisorhub.main import app

attachments_api = importlib.import_module("advisorhub.features.attachments.api.router")

USER = {"X-User-Id": "advisor-1"}
OTHER_USER = {"X-User-Id": "advisor-2"}


class _MemoryStore:
    def __init__(self):
        self.conversations: dict[str, SimpleNamespace] = {}
        self.attachments: dict[str, SimpleNamespace] = {}
        self.scheduled: list[str] = []
        self.fail_insert = False

    def add_conversation(self, user_id: str) -> SimpleNamespace:
        conversation = SimpleNamespace(id=uuid4(), user_id=user_id, title="New Chat")
        self.conversations[str(conversation.id)] = conversation
        return conversation

    async def get_user_conversation(self, _session, conversation_id, *, user_id):
        conversation = self.conversations.get(str(conversation_id))
        if conversation is None or conversation.user_id != user_id:
            raise ConversationNotFoundError(f"Conversation '{conversation_id}' was not found.")
        return conversation

    async def create_attachment(
        self,
        _session,
        *,
        conversation_id,
        user_id,
        original_name,
        file_type,
        stored,
    ):
        if self.fail_insert:
            raise RuntimeError("insert failed")
        attachment = SimpleNamespace(
            id=uuid4(),
            conversation_id=conversation_id,
            user_id=user_id,
            file_name=stored.file_name,
            original_name=original_name,
            file_type=file_type,
            file_size=stored.file_size,
            file_path=stored.file_path,
            processing_status="processing",
            extracted_content=None,
            extraction_metadata=None,
            error_message=None,
            created_at=datetime.now(timezone.utc),
            processed_at=None,
        )
        self.attachments[str(attachment.id)] = attachment
        return attachment

    async def list_conversation_attachments(self, _session, conversation_id):
        rows = [item for item in self.attachments.values() if item.conversation_id == conversation_id]
        return sorted(rows, key=lambda item: item.created_at, reverse=True)

    async def get_user_attachment(self, _session, attachment_id, *, user_id):
        attachment = self.attachments.get(str(attachment_id))
        if attachment is None or attachment.user_id != user_id:
            raise AttachmentNotFoundError(f"Attachment '{attachment_id}' was not found.")
        return attachment

    async def delete_attachment(self, _session, attachment):
        self.attachments.pop(str(attachment.id), None)

    def schedule_attachment_extraction(self, attachment_id):
        self.scheduled.append(str(attachment_id))
        return True


@pytest.fixture
def store(monkeypatch, tmp_path):
    memory = _MemoryStore()
    monkeypatch.setattr(attachments_api, "get_user_conversation", memory.get_user_conversation)
    monkeypatch.setattr(attachments_api, "create_attachment", memory.create_attachment)
    monkeypatch.setattr(
        attachments_api,
        "list_conversation_attachments",
        memory.list_conversation_attachments,
    )
    monkeypatch.setattr(attachments_api, "get_user_attachment", memory.get_user_attachment)
    monkeypatch.setattr(attachments_api, "delete_attachment", memory.delete_attachment)
    monkeypatch.setattr(
        attachments_api,
        "schedule_attachment_extraction",
        memory.schedule_attachment_extraction,
    )
    monkeypatch.setattr(get_settings(), "upload_storage_dir", str(tmp_path / "uploads"))

    async def _override_db():
        yield object()

    app.dependency_overrides[get_db_session] = _override_db
    yield memory
    app.dependency_overrides.clear()


def _stored_files(tmp_path):
    files_dir = tmp_path / "uploads" / "files"
    if not files_dir.exists():
        return []
    return sorted(files_dir.iterdir())


def test_upload_returns_processing_row_then_schedules_extraction(store, tmp_path):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"Call the client on Tuesday.", "text/plain")},
        headers=USER,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    attachment = body["attachment"]
    assert set(attachment) == {
        "id",
        "file_name",
        "original_name",
        "file_type",
        "file_size",
        "processing_status",
        "created_at",
    }
    assert attachment["processing_status"] == "processing"
    assert attachment["original_name"] == "notes.txt"
    assert attachment["file_type"] == "text/plain"
    assert attachment["file_size"] == 27
    assert store.scheduled == [attachment["id"]]

    stored = _stored_files(tmp_path)
    assert len(stored) == 1
    assert stored[0].read_bytes() == b"Call the client on Tuesday."


def test_upload_requires_identity(store):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"hi", "text/plain")},
    )

    assert response.status_code == 401


def test_upload_to_someone_elses_conversation_is_not_found(store, tmp_path):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"hi", "text/plain")},
        headers=OTHER_USER,
    )

    assert response.status_code == 404
    assert _stored_files(tmp_path) == []
    assert store.attachments == {}
    assert store.scheduled == []


def test_upload_rejects_types_outside_admission_list(store, tmp_path):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("setup.exe", b"MZ", "application/x-msdownload")},
        headers=USER,
    )

    assert response.status_code == 415
    assert _stored_files(tmp_path) == []
    assert store.attachments == {}


def test_upload_without_file_is_a_client_error(store):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        data={"comment": "forgot the file"},
        headers=USER,
    )

    assert response.status_code == 400
    assert store.attachments == {}


def test_oversized_upload_leaves_no_file(store, tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "upload_max_size_bytes", 4)
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"far too long", "text/plain")},
        headers=USER,
    )

    assert response.status_code == 413
    assert _stored_files(tmp_path) == []
    assert store.scheduled == []


def test_failed_insert_removes_stored_file(store, tmp_path):
    store.fail_insert = True
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=USER,
    )

    assert response.status_code == 500
    assert _stored_files(tmp_path) == []
    assert store.scheduled == []


def test_list_omits_extracted_content(store):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)
    client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=USER,
    )
    row = next(iter(store.attachments.values()))
    row.processing_status = "completed"
    row.extracted_content = "hello"
    row.extraction_metadata = {"type": "text"}

    response = client.get(f"/api/conversations/{conversation.id}/attachments", headers=USER)

    assert response.status_code == 200
    items = response.json()["attachments"]
    assert len(items) == 1
    assert items[0]["processing_status"] == "completed"
    assert items[0]["metadata"] == {"type": "text"}
    assert "extracted_content" not in items[0]


def test_detail_download_and_delete(store, tmp_path):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)
    upload = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=USER,
    ).json()
    attachment_id = upload["attachment"]["id"]

    detail = client.get(f"/api/attachments/{attachment_id}", headers=USER)
    assert detail.status_code == 200
    assert detail.json()["attachment"]["conversation_id"] == str(conversation.id)
    assert detail.json()["attachment"]["extracted_content"] is None

    assert client.get(f"/api/attachments/{attachment_id}", headers=OTHER_USER).status_code == 404

    content = client.get(f"/api/attachments/{attachment_id}/content", headers=USER)
    assert content.status_code == 200
    assert content.content == b"hello"

    deleted = client.delete(f"/api/attachments/{attachment_id}", headers=USER)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}
    assert store.attachments == {}
    assert _stored_files(tmp_path) == []


def test_delete_tolerates_missing_backing_file(store, tmp_path):
    conversation = store.add_conversation("advisor-1")
    client = TestClient(app)
    upload = client.post(
        f"/api/conversations/{conversation.id}/attachments",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=USER,
    ).json()
    for path in _stored_files(tmp_path):
        path.unlink()

    response = client.delete(f"/api/attachments/{upload['attachment']['id']}", headers=USER)

    assert response.status_code == 200
    assert UUID(upload["attachment"]["id"])
    assert store.attachments == {}


def test_invalid_attachment_id_is_rejected(store):
    client = TestClient(app)
    assert client.get("/api/attachments/not-a-uuid", headers=USER).status_code == 400
