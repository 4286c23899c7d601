from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from advisorhub.db.models import Attachment
from advisorhub.features.extraction import ExtractionResult
from advisorhub.features.shared.ids import to_uuid
from advisorhub.features.shared.text_sanitize import log_sanitization_stats, sanitize_optional_text

from .errors import AttachmentNotFoundError
from .service import StoredFile

logger = logging.getLogger(__name__)


async def create_attachment(
    session: AsyncSession,
    *,
    conversation_id: UUID,
    user_id: str,
    original_name: str,
    file_type: str,
    stored: StoredFile,
) -> Attachment:
    attachment = Attachment(
        conversation_id=conversation_id,
        user_id=user_id,
        file_name=stored.file_name,
        original_name=original_name,
        file_type=file_type,
        file_size=stored.file_size,
        file_path=stored.file_path,
        processing_status="processing",
    )
    session.add(attachment)
    await session.commit()
    await session.refresh(attachment)
    return attachment


async def get_attachment(session: AsyncSession, attachment_id: UUID | str) -> Attachment | None:
    return await session.get(Attachment, to_uuid(attachment_id))


async def get_user_attachment(
    session: AsyncSession,
    attachment_id: UUID | str,
    *,
    user_id: str,
) -> Attachment:
    attachment = await get_attachment(session, attachment_id)
    if attachment is None or attachment.user_id != user_id:
        raise AttachmentNotFoundError(f"Attachment '{attachment_id}' was not found.")
    return attachment


async def list_conversation_attachments(
    session: AsyncSession,
    conversation_id: UUID | str,
) -> list[Attachment]:
    stmt = (
        select(Attachment)
        .where(Attachment.conversation_id == to_uuid(conversation_id))
        .order_by(Attachment.created_at.desc(), Attachment.id.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def list_completed_attachments(
    session: AsyncSession,
    conversation_id: UUID | str,
) -> list[Attachment]:
    """Attachments usable as chat context, oldest first."""
    stmt = (
        select(Attachment)
        .where(
            Attachment.conversation_id == to_uuid(conversation_id),
            Attachment.processing_status == "completed",
            Attachment.extracted_content.is_not(None),
        )
        .order_by(Attachment.created_at.asc(), Attachment.id.asc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def apply_extraction_result(
    session: AsyncSession,
    attachment_id: UUID | str,
    result: ExtractionResult,
) -> bool:
    """Write the terminal state of an attachment in one statement.

    Only a row still in ``processing`` is touched, so a terminal state is never
    overwritten. A failed result keeps its placeholder out of
    ``extracted_content``; the reason is stored in ``error_message``.
    Returns whether a row was updated.
    """
    completed = result.processing_status == "completed"
    content, content_stats = sanitize_optional_text(result.extracted_content if completed else None)
    error_message, error_stats = sanitize_optional_text(
        None if completed else (result.error_message or "Extraction failed.")
    )
    log_sanitization_stats(logger, location="attachments.extracted_content", stats=content_stats)
    log_sanitization_stats(logger, location="attachments.error_message", stats=error_stats)

    outcome = await session.execute(
        update(Attachment)
        .where(
            Attachment.id == to_uuid(attachment_id),
            Attachment.processing_status == "processing",
        )
        .values(
            {
                Attachment.processing_status: result.processing_status,
                Attachment.extracted_content: content,
                Attachment.extraction_metadata: result.metadata_json(),
                Attachment.error_message: error_message,
                Attachment.processed_at: datetime.now(timezone.utc),
            }
        )
    )
    await session.commit()
    return bool(outcome.rowcount)


async def list_stale_processing_attachments(
    session: AsyncSession,
    *,
    older_than_seconds: int,
    limit: int = 100,
) -> list[Attachment]:
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=max(0, older_than_seconds))
    stmt = (
        select(Attachment)
        .where(
            Attachment.processing_status == "processing",
            Attachment.created_at < cutoff,
        )
        .order_by(Attachment.created_at.asc())
        .limit(limit)
    )
    return list((await session.execute(stmt)).scalars().all())


async def delete_attachment(session: AsyncSession, attachment: Attachment) -> None:
    await session.delete(attachment)
    await session.commit()
