from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from advisorhub.features.extraction import ProcessingStatus


class UploadedAttachment(BaseModel):
    id: str
    file_name: str
    original_name: str
    file_type: str
    file_size: int
    processing_status: ProcessingStatus
    created_at: datetime


class UploadAttachmentResponse(BaseModel):
    success: bool = True
    attachment: UploadedAttachment


class AttachmentListItem(BaseModel):
    id: str
    file_name: str
    original_name: str
    file_type: str
    file_size: int
    processing_status: ProcessingStatus
    metadata: dict[str, Any] | None
    error_message: str | None
    created_at: datetime
    processed_at: datetime | None


class AttachmentListResponse(BaseModel):
    success: bool = True
    attachments: list[AttachmentListItem]


class AttachmentDetail(AttachmentListItem):
    conversation_id: str
    extracted_content: str | None


class AttachmentDetailResponse(BaseModel):
    success: bool = True
    attachment: AttachmentDetail


class DeleteAttachmentResponse(BaseModel):
    success: bool = True
