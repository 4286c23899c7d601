from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.background import BackgroundTask

from advisorhub.core.config import get_settings
from advisorhub.features.agent.api.schemas import ChatRequest
from advisorhub.features.agent.orchestrator import (
    HistoryMessage,
    Orchestrator,
    OrchestratorRequest,
    get_orchestrator,
)
from advisorhub.features.agent.schemas import CompleteEvent, ErrorEvent, encode_sse
from advisorhub.features.attachments import assemble_user_message
from advisorhub.features.auth import CurrentUser
from advisorhub.features.chat import (
    ConversationNotFoundError,
    get_user_conversation,
    maybe_generate_conversation_title,
    save_message,
)
from advisorhub.features.jobs import get_job_runner

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@dataclass
class _StreamOutcome:
    completed: bool = False


def title_job_key(conversation_id: UUID | str) -> str:
    return f"title:{conversation_id}"


async def _schedule_title_generation(conversation_id: UUID, outcome: _StreamOutcome) -> None:
    if not outcome.completed:
        return
    get_job_runner().submit(
        title_job_key(conversation_id),
        lambda: maybe_generate_conversation_title(conversation_id),
    )


def _error_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


async def stream_chat_response(
    conversation_id: UUID,
    payload: ChatRequest,
    *,
    user: CurrentUser,
    session: AsyncSession,
    orchestrator: Orchestrator | None = None,
) -> StreamingResponse:
    try:
        conversation = await get_user_conversation(session, conversation_id, user_id=user.id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    user_message = payload.message.strip()
    if not user_message:
        raise HTTPException(status_code=400, detail="Message cannot be empty.")

    outbound_message = await assemble_user_message(
        session,
        conversation_id=conversation.id,
        message=user_message,
    )
    await save_message(session, conversation_id=conversation.id, role="user", content=user_message)

    settings = get_settings()
    agent = orchestrator or get_orchestrator()
    request = OrchestratorRequest(
        user_message=outbound_message,
        conversation_id=str(conversation.id),
        user_id=user.id,
        conversation_history=tuple(
            HistoryMessage(role=item.role, content=item.content)
            for item in payload.conversation_history
        ),
    )
    outcome = _StreamOutcome()

    async def _event_stream():
        queue: asyncio.Queue[BaseModel | dict[str, Any] | None] = asyncio.Queue()

        async def _emit(event: dict[str, Any]) -> None:
            await queue.put(event)

        async def _producer() -> None:
            try:
                result = await asyncio.wait_for(
                    agent.process_query(request, _emit),
                    timeout=settings.agent_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.error(
                    "Orchestrator timed out after %s seconds for conversation %s.",
                    settings.agent_timeout_seconds,
                    conversation.id,
                )
                await queue.put(
                    ErrorEvent(
                        error=f"The assistant did not respond within {settings.agent_timeout_seconds:g} seconds."
                    )
                )
            except Exception as exc:
                logger.exception("Error processing message for conversation %s.", conversation.id)
                await queue.put(ErrorEvent(error=_error_text(exc)))
            else:
                result_payload = dict(result or {})
                output_text = str(result_payload.get("output_text") or "").strip()
                if output_text:
                    try:
                        await save_message(
                            session,
                            conversation_id=conversation.id,
                            role="assistant",
                            content=output_text,
                        )
                    except Exception:
                        logger.exception(
                            "Failed to persist assistant turn for conversation %s.",
                            conversation.id,
                        )
                outcome.completed = True
                await queue.put(CompleteEvent(data=result_payload))
            finally:
                await queue.put(None)

        producer_task = asyncio.create_task(_producer())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield encode_sse(event)
        finally:
            # A disconnected client closes the generator; stop the orchestrator with it.
            if not producer_task.done():
                producer_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await producer_task

    return StreamingResponse(
        _event_stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(_schedule_title_generation, conversation.id, outcome),
    )
