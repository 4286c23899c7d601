from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from advisorhub.db.models import Attachment
from advisorhub.db.session import get_db_session
from advisorhub.features.attachments.errors import AttachmentNotFoundError
from advisorhub.features.attachments.pipeline import schedule_attachment_extraction
from advisorhub.features.attachments.repo import (
    create_attachment,
    delete_attachment,
    get_user_attachment,
    list_conversation_attachments,
)
from advisorhub.features.attachments.schemas import (
    AttachmentDetail,
    AttachmentDetailResponse,
    AttachmentListItem,
    AttachmentListResponse,
    DeleteAttachmentResponse,
    UploadAttachmentResponse,
    UploadedAttachment,
)
from advisorhub.features.attachments.service import (
    content_type_for,
    is_admitted,
    remove_stored_file,
    resolve_storage_path,
    store_upload,
)
from advisorhub.features.auth import CurrentUser, get_current_user
from advisorhub.features.chat import ConversationNotFoundError, get_user_conversation
from advisorhub.features.shared.ids import parse_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["attachments"])


def _to_list_item(row: Attachment) -> AttachmentListItem:
    return AttachmentListItem(
        id=str(row.id),
        file_name=row.file_name,
        original_name=row.original_name,
        file_type=row.file_type,
        file_size=row.file_size,
        processing_status=row.processing_status,  # type: ignore[arg-type]
        metadata=row.extraction_metadata,
        error_message=row.error_message,
        created_at=row.created_at,
        processed_at=row.processed_at,
    )


def _to_detail(row: Attachment) -> AttachmentDetail:
    return AttachmentDetail(
        **_to_list_item(row).model_dump(),
        conversation_id=str(row.conversation_id),
        extracted_content=row.extracted_content,
    )


async def _start_extraction(attachment_id: UUID) -> None:
    # Must be async: the runner schedules onto the running event loop.
    schedule_attachment_extraction(attachment_id)


async def _load_attachment(session: AsyncSession, attachment_id: str, user: CurrentUser) -> Attachment:
    attachment_uuid = parse_uuid(attachment_id, field_name="attachment_id")
    try:
        return await get_user_attachment(session, attachment_uuid, user_id=user.id)
    except AttachmentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post(
    "/conversations/{conversation_id}/attachments",
    response_model=UploadAttachmentResponse,
)
async def upload_attachment(
    conversation_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile | None = File(default=None),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> UploadAttachmentResponse:
    content_type = content_type_for(file) if file is not None else ""
    if file is not None and not is_admitted(content_type):
        raise HTTPException(
            status_code=415,
            detail=f"File type '{content_type}' is not supported.",
        )

    conversation_uuid = parse_uuid(conversation_id, field_name="conversation_id")
    try:
        await get_user_conversation(session, conversation_uuid, user_id=user.id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    stored = await store_upload(file, conversation_id=conversation_uuid)
    try:
        attachment = await create_attachment(
            session,
            conversation_id=conversation_uuid,
            user_id=user.id,
            original_name=file.filename or stored.file_name,
            file_type=content_type,
            stored=stored,
        )
    except Exception:
        remove_stored_file(stored.file_path)
        raise

    # Runs once the response has been sent.
    background_tasks.add_task(_start_extraction, attachment.id)
    logger.info("Stored attachment %s for conversation %s.", attachment.id, conversation_uuid)

    return UploadAttachmentResponse(
        attachment=UploadedAttachment(
            id=str(attachment.id),
            file_name=attachment.file_name,
            original_name=attachment.original_name,
            file_type=attachment.file_type,
            file_size=attachment.file_size,
            processing_status=attachment.processing_status,  # type: ignore[arg-type]
            created_at=attachment.created_at,
        )
    )


@router.get(
    "/conversations/{conversation_id}/attachments",
    response_model=AttachmentListResponse,
)
async def get_conversation_attachments(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AttachmentListResponse:
    conversation_uuid = parse_uuid(conversation_id, field_name="conversation_id")
    try:
        await get_user_conversation(session, conversation_uuid, user_id=user.id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    rows = await list_conversation_attachments(session, conversation_uuid)
    return AttachmentListResponse(attachments=[_to_list_item(row) for row in rows])


@router.get("/attachments/{attachment_id}", response_model=AttachmentDetailResponse)
async def get_attachment_detail(
    attachment_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AttachmentDetailResponse:
    row = await _load_attachment(session, attachment_id, user)
    return AttachmentDetailResponse(attachment=_to_detail(row))


@router.get("/attachments/{attachment_id}/content")
async def get_attachment_content(
    attachment_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> FileResponse:
    row = await _load_attachment(session, attachment_id, user)
    path = resolve_storage_path(row.file_path)
    if not path.exists():
        raise HTTPException(status_code=404, detail=f"Attachment file '{attachment_id}' is missing.")
    return FileResponse(path, media_type=row.file_type, filename=row.original_name)


@router.delete("/attachments/{attachment_id}", response_model=DeleteAttachmentResponse)
async def remove_attachment(
    attachment_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> DeleteAttachmentResponse:
    row = await _load_attachment(session, attachment_id, user)
    file_path = row.file_path
    if not remove_stored_file(file_path):
        logger.warning("Attachment %s had no backing file at %s.", attachment_id, file_path)
    await delete_attachment(session, row)
    return DeleteAttachmentResponse()
