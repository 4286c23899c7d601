from __future__ import annotations

import asyncio
from uuid import uuid4

from advisorhub.features.attachments import repo as attachments_repo
from advisorhub.features.extraction import ExtractionResult
from advisorhub.features.extraction.types import PdfMetadata


class _FakeScalarResult:
    def all(self):
        return []


class _FakeExecuteResult:
    def __init__(self, rowcount: int = 1):
        self.rowcount = rowcount

    def scalars(self):
        return _FakeScalarResult()


class _FakeSession:
    def __init__(self, *, rowcount: int = 1):
        self.rowcount = rowcount
        self.statements: list[str] = []
        self.last_params: dict[str, object] = {}
        self.commits = 0

    async def execute(self, stmt):
        compiled = stmt.compile(compile_kwargs={"literal_binds": False})
        self.statements.append(str(compiled))
        self.last_params = dict(compiled.params)
        return _FakeExecuteResult(self.rowcount)

    async def commit(self):
        self.commits += 1


def test_completed_result_is_written_once_guarded_by_status():
    session = _FakeSession()
    result = ExtractionResult(
        extracted_content="Revenue\x00 grew.",
        metadata=PdfMetadata(pages=2),
    )

    updated = asyncio.run(attachments_repo.apply_extraction_result(session, uuid4(), result))

    assert updated is True
    assert session.commits == 1
    sql = session.statements[-1]
    assert sql.startswith("UPDATE attachments")
    assert "processing_status" in sql.split("WHERE", 1)[1]
    values = session.last_params
    assert values["processing_status"] == "completed"
    assert values["extracted_content"] == "Revenue grew."
    assert values["error_message"] is None
    assert values["metadata"] == {"type": "pdf", "pages": 2, "info": {}}
    assert values["processed_at"] is not None
    assert "processing" in values.values()


def test_failed_result_keeps_placeholder_out_of_content():
    session = _FakeSession()
    result = ExtractionResult.failure(
        "PDF parsing failed: EOF marker not found",
        placeholder="[Error processing file: PDF parsing failed: EOF marker not found]",
    )

    asyncio.run(attachments_repo.apply_extraction_result(session, uuid4(), result))

    values = session.last_params
    assert values["processing_status"] == "failed"
    assert values["extracted_content"] is None
    assert values["error_message"] == "PDF parsing failed: EOF marker not found"
    assert values["metadata"] is None


def test_terminal_rows_are_not_overwritten():
    session = _FakeSession(rowcount=0)
    result = ExtractionResult(extracted_content="late")

    updated = asyncio.run(attachments_repo.apply_extraction_result(session, uuid4(), result))

    assert updated is False


def test_completed_listing_filters_status_and_orders_oldest_first():
    session = _FakeSession()

    rows = asyncio.run(attachments_repo.list_completed_attachments(session, uuid4()))

    assert rows == []
    sql = session.statements[-1]
    assert "attachments.extracted_content IS NOT NULL" in sql
    assert "ORDER BY attachments.created_at ASC" in sql
    assert "completed" in session.last_params.values()


def test_conversation_listing_is_newest_first():
    session = _FakeSession()

    asyncio.run(attachments_repo.list_conversation_attachments(session, uuid4()))

    assert "ORDER BY attachments.created_at DESC" in session.statements[-1]
