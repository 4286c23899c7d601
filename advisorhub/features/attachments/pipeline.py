from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from advisorhub.core.config import get_settings
from advisorhub.db.session import AsyncSessionLocal
from advisorhub.features.extraction import ExtractionResult, process_file
from advisorhub.features.jobs import BackgroundJobRunner, get_job_runner

from . import repo
from .service import resolve_storage_path

logger = logging.getLogger(__name__)

ABANDONED_MESSAGE = "Extraction did not complete in time."


def extraction_job_key(attachment_id: UUID | str) -> str:
    return f"extract:{attachment_id}"


async def run_attachment_extraction(attachment_id: UUID | str) -> None:
    """Extract one stored attachment and record its terminal state.

    Uses its own sessions because it runs after the upload request is gone.
    No session is held while the file is extracted. A failed store write is
    logged and the row stays in ``processing`` for the stale sweep to pick up
    again.
    """
    settings = get_settings()
    async with AsyncSessionLocal() as session:
        attachment = await repo.get_attachment(session, attachment_id)
        if attachment is None:
            logger.info("Attachment %s vanished before extraction.", attachment_id)
            return
        if attachment.processing_status != "processing":
            return
        row_id = attachment.id
        storage_path = resolve_storage_path(attachment.file_path)
        file_type = attachment.file_type
        original_name = attachment.original_name

    result = await process_file(
        storage_path,
        file_type,
        original_name,
        timeout=settings.extraction_timeout_seconds,
    )

    async with AsyncSessionLocal() as session:
        try:
            updated = await repo.apply_extraction_result(session, row_id, result)
        except Exception:
            logger.exception("Failed to store extraction result for attachment %s.", attachment_id)
            return

    if updated:
        logger.info(
            "Attachment %s extraction finished with status %s.",
            attachment_id,
            result.processing_status,
        )


def schedule_attachment_extraction(
    attachment_id: UUID | str,
    *,
    runner: BackgroundJobRunner | None = None,
) -> bool:
    job_runner = runner or get_job_runner()
    return job_runner.submit(
        extraction_job_key(attachment_id),
        lambda: run_attachment_extraction(attachment_id),
    )


async def reconcile_stale_attachments(
    session: AsyncSession,
    *,
    runner: BackgroundJobRunner | None = None,
) -> dict[str, int]:
    """Re-queue attachments stuck in ``processing`` and give up on very old ones."""
    settings = get_settings()
    job_runner = runner or get_job_runner()
    stale = await repo.list_stale_processing_attachments(
        session,
        older_than_seconds=settings.stale_attachment_after_seconds,
    )
    abandon_cutoff = datetime.now(timezone.utc) - timedelta(
        seconds=settings.stale_attachment_abandon_after_seconds
    )

    requeued = 0
    abandoned = 0
    for attachment in stale:
        if job_runner.is_pending(extraction_job_key(attachment.id)):
            continue
        if attachment.created_at is not None and attachment.created_at < abandon_cutoff:
            failure = ExtractionResult.failure(ABANDONED_MESSAGE, placeholder=f"[{ABANDONED_MESSAGE}]")
            if await repo.apply_extraction_result(session, attachment.id, failure):
                abandoned += 1
            continue
        if schedule_attachment_extraction(attachment.id, runner=job_runner):
            requeued += 1

    if requeued or abandoned:
        logger.info("Stale attachment sweep: requeued=%s abandoned=%s", requeued, abandoned)
    return {"requeued": requeued, "abandoned": abandoned}
