from __future__ import annotations

import asyncio
from types import SimpleNamespace

from advisorhub.features.attachments import context as attachment_context
from advisorhub.features.attachments import build_attachment_context, compose_user_message


def _attachment(name: str, content: str | None, status: str = "completed"):
    return SimpleNamespace(original_name=name, extracted_content=content, processing_status=status)


def test_no_attachments_leaves_message_unchanged():
    assert build_attachment_context([]) == ""
    assert compose_user_message("Summarize the plan", []) == "Summarize the plan"


def test_context_block_lists_files_in_order():
    message = compose_user_message(
        "Summarize",
        [_attachment("report.pdf", "Revenue grew."), _attachment("notes.txt", "Call Tuesday.")],
    )
    assert message == (
        "\n\n=== UPLOADED FILES CONTEXT ===\n"
        "\n[File: report.pdf]\nRevenue grew.\n---\n"
        "\n[File: notes.txt]\nCall Tuesday.\n---\n"
        "=== END UPLOADED FILES ===\n\n"
        "User Query: Summarize"
    )


def test_pending_and_failed_attachments_contribute_nothing():
    attachments = [
        _attachment("pending.pdf", None, status="processing"),
        _attachment("broken.pdf", None, status="failed"),
        _attachment("empty.txt", None),
    ]
    assert compose_user_message("Hi", attachments) == "Hi"


def test_assemble_reads_completed_attachments(monkeypatch):
    seen: list[str] = []

    async def _fake_list_completed(_session, conversation_id):
        seen.append(str(conversation_id))
        return [_attachment("notes.txt", "Call Tuesday.")]

    monkeypatch.setattr(attachment_context.repo, "list_completed_attachments", _fake_list_completed)

    message = asyncio.run(
        attachment_context.assemble_user_message(object(), conversation_id="c-1", message="When?")
    )

    assert seen == ["c-1"]
    assert message.endswith("User Query: When?")
    assert "[File: notes.txt]\nCall Tuesday.\n---\n" in message
