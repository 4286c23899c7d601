from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from advisorhub.db.session import get_db_session
from advisorhub.features.agent.api import streaming
from advisorhub.features.agent.api.schemas import ChatRequest
from advisorhub.features.auth import CurrentUser, get_current_user
from advisorhub.features.shared.ids import parse_uuid

router = APIRouter(prefix="/api/conversations", tags=["agent"])


@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: str,
    payload: ChatRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> StreamingResponse:
    conversation_uuid = parse_uuid(conversation_id, field_name="conversation_id")
    return await streaming.stream_chat_response(
        conversation_uuid,
        payload,
        user=user,
        session=session,
    )
