from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from advisorhub.db.session import get_db_session
from advisorhub.features.attachments.service import remove_stored_file
from advisorhub.features.auth import CurrentUser, get_current_user
from advisorhub.features.chat import (
    ConversationListEntry,
    ConversationNotFoundError,
    create_conversation,
    delete_conversation,
    get_conversation_messages,
    get_user_conversation,
    list_conversations,
    rename_conversation,
)
from advisorhub.features.shared.ids import parse_uuid

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


class ConversationSummaryResponse(BaseModel):
    id: str
    title: str | None
    created_at: datetime
    updated_at: datetime
    message_count: int = 0


class ConversationListResponse(BaseModel):
    items: list[ConversationSummaryResponse]


class ConversationMessageResponse(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime


class ConversationDetailResponse(BaseModel):
    id: str
    title: str | None
    created_at: datetime
    updated_at: datetime
    messages: list[ConversationMessageResponse]


class CreateConversationRequest(BaseModel):
    title: str | None = Field(default=None, max_length=255)


class RenameConversationRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)


def _to_summary_response(item: ConversationListEntry) -> ConversationSummaryResponse:
    return ConversationSummaryResponse(
        id=str(item.id),
        title=item.title,
        created_at=item.created_at,
        updated_at=item.updated_at,
        message_count=item.message_count,
    )


@router.post("", response_model=ConversationSummaryResponse, status_code=status.HTTP_201_CREATED)
async def post_conversation(
    payload: CreateConversationRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> ConversationSummaryResponse:
    conversation = await create_conversation(session, user_id=user.id, title=payload.title)
    return ConversationSummaryResponse(
        id=str(conversation.id),
        title=conversation.title,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


@router.get("", response_model=ConversationListResponse)
async def get_conversations(
    limit: int = Query(default=50, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> ConversationListResponse:
    rows = await list_conversations(session, user_id=user.id, limit=limit)
    return ConversationListResponse(items=[_to_summary_response(item) for item in rows])


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> ConversationDetailResponse:
    conversation_uuid = parse_uuid(conversation_id, field_name="conversation_id")
    try:
        conversation = await get_user_conversation(session, conversation_uuid, user_id=user.id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    messages = await get_conversation_messages(session, conversation_uuid)
    return ConversationDetailResponse(
        id=str(conversation.id),
        title=conversation.title,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        messages=[
            ConversationMessageResponse(
                id=str(message.id),
                role=message.role,  # type: ignore[arg-type]
                content=message.content,
                created_at=message.created_at,
            )
            for message in messages
        ],
    )


@router.patch("/{conversation_id}", response_model=ConversationSummaryResponse)
async def patch_conversation(
    conversation_id: str,
    payload: RenameConversationRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> ConversationSummaryResponse:
    conversation_uuid = parse_uuid(conversation_id, field_name="conversation_id")
    normalized_title = payload.title.strip()
    if not normalized_title:
        raise HTTPException(status_code=400, detail="Conversation title cannot be empty.")
    try:
        conversation = await rename_conversation(
            session,
            conversation_id=conversation_uuid,
            user_id=user.id,
            title=normalized_title,
        )
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ConversationSummaryResponse(
        id=str(conversation.id),
        title=conversation.title,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_conversation(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    conversation_uuid = parse_uuid(conversation_id, field_name="conversation_id")
    try:
        file_paths = await delete_conversation(
            session,
            conversation_id=conversation_uuid,
            user_id=user.id,
        )
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    for file_path in file_paths:
        remove_stored_file(file_path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
