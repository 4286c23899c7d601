from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol

from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, HumanMessage, SystemMessage

from advisorhub.features.shared.llm import (
    ModelSettingsResolved,
    build_chat_model,
    content_text,
    default_model_settings,
)

from .prompts import ADVISOR_SYSTEM_PROMPT
from .schemas import TextDeltaEvent
from .usage import extract_usage

EventSink = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class HistoryMessage:
    role: str
    content: str


@dataclass(frozen=True)
class OrchestratorRequest:
    user_message: str
    conversation_id: str
    user_id: str
    conversation_history: Sequence[HistoryMessage] = field(default_factory=tuple)


class Orchestrator(Protocol):
    async def process_query(self, request: OrchestratorRequest, emit: EventSink) -> dict[str, Any]:
        """Run one turn, emitting events as they happen, and return the final result."""
        ...


def to_langchain_messages(request: OrchestratorRequest, *, system_prompt: str) -> list[BaseMessage]:
    messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for item in request.conversation_history:
        if item.role == "assistant":
            messages.append(AIMessage(content=item.content))
        else:
            messages.append(HumanMessage(content=item.content))
    messages.append(HumanMessage(content=request.user_message))
    return messages


class LangChainOrchestrator:
    """Streams a single chat model reply as ``text_delta`` events."""

    def __init__(
        self,
        model_settings: ModelSettingsResolved,
        *,
        system_prompt: str = ADVISOR_SYSTEM_PROMPT,
    ) -> None:
        self._model_settings = model_settings
        self._system_prompt = system_prompt

    async def process_query(self, request: OrchestratorRequest, emit: EventSink) -> dict[str, Any]:
        model = build_chat_model(self._model_settings, streaming=True)
        messages = to_langchain_messages(request, system_prompt=self._system_prompt)

        aggregate: AIMessageChunk | None = None
        parts: list[str] = []
        async for chunk in model.astream(messages):
            aggregate = chunk if aggregate is None else aggregate + chunk
            text = content_text(chunk.content)
            if not text:
                continue
            parts.append(text)
            await emit(TextDeltaEvent(content=text).model_dump())

        return {
            "output_text": "".join(parts).strip(),
            "model": self._model_settings.model_name,
            "usage": extract_usage(aggregate),
        }


@lru_cache
def get_orchestrator() -> Orchestrator:
    return LangChainOrchestrator(default_model_settings())
