from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from uuid import UUID

from langchain_core.messages import HumanMessage

from advisorhub.core.config import get_settings
from advisorhub.db.models import Conversation
from advisorhub.db.session import AsyncSessionLocal
from advisorhub.features.shared.ids import to_uuid
from advisorhub.features.shared.llm import build_chat_model, content_text, default_model_settings

from . import repo
from .types import ConversationTurn

logger = logging.getLogger(__name__)

_TURN_PREVIEW_CHARS = 500
_QUOTES_RE = re.compile(r"^[\"']|[\"']$")
_TITLE_PREFIX_RE = re.compile(r"^title:\s*", re.IGNORECASE)

TITLE_PROMPT = """Based on this conversation, generate a concise, descriptive title (max {max_chars} characters). Return ONLY the title text, nothing else.

Conversation:
{conversation}

Title:"""


def format_turns_for_title(turns: Sequence[ConversationTurn]) -> str:
    lines = []
    for turn in turns:
        speaker = "User" if turn.role == "user" else "Assistant"
        lines.append(f"{speaker}: {turn.content[:_TURN_PREVIEW_CHARS]}")
    return "\n\n".join(lines)


def clean_generated_title(raw: str, *, max_chars: int) -> str | None:
    title = _QUOTES_RE.sub("", raw.strip())
    title = _TITLE_PREFIX_RE.sub("", title).strip()
    if not title:
        return None
    if len(title) > max_chars:
        return f"{title[: max_chars - 3]}..."
    return title


async def generate_chat_title(turns: Sequence[ConversationTurn]) -> str | None:
    """Ask the title model for a short title; None when unavailable or empty."""
    settings = get_settings()
    resolved = default_model_settings(model_name=settings.resolved_title_model)
    if not resolved.api_key:
        logger.debug("Skipping title generation: no model API key configured.")
        return None

    prompt = TITLE_PROMPT.format(
        max_chars=settings.title_max_chars,
        conversation=format_turns_for_title(turns),
    )
    try:
        model = build_chat_model(resolved, timeout_seconds=settings.title_timeout_seconds)
        response = await asyncio.wait_for(
            model.ainvoke([HumanMessage(content=prompt)]),
            timeout=settings.title_timeout_seconds,
        )
    except Exception:
        logger.warning("Title generation failed.", exc_info=True)
        return None
    return clean_generated_title(content_text(response.content), max_chars=settings.title_max_chars)


async def maybe_generate_conversation_title(conversation_id: UUID | str) -> None:
    """Replace a placeholder conversation title with a generated one.

    Runs after the chat response has been sent. Nothing here may surface to the
    user, so every failure is logged and dropped.
    """
    settings = get_settings()
    try:
        async with AsyncSessionLocal() as session:
            conversation = await session.get(Conversation, to_uuid(conversation_id))
            if conversation is None:
                return
            if conversation.title and conversation.title != settings.default_conversation_title:
                return

            messages = await repo.get_conversation_messages(
                session,
                conversation_id,
                limit=settings.title_turn_limit,
            )
            if len(messages) < 2:
                return

            turns = [ConversationTurn(role=item.role, content=item.content) for item in messages]
            title = await generate_chat_title(turns)
            if not title:
                return

            if await repo.set_generated_title(session, conversation_id=conversation_id, title=title):
                logger.info("Auto-generated title for conversation %s: %r", conversation_id, title)
    except Exception:
        logger.exception("Error auto-generating title for conversation %s.", conversation_id)
