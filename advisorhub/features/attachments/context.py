from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from . import repo

CONTEXT_OPEN = "\n\n=== UPLOADED FILES CONTEXT ===\n"
CONTEXT_CLOSE = "=== END UPLOADED FILES ===\n\n"
QUERY_PREFIX = "User Query: "


class ContextSource(Protocol):
    original_name: str
    processing_status: str
    extracted_content: str | None


def build_attachment_context(attachments: Sequence[ContextSource]) -> str:
    usable = [
        item
        for item in attachments
        if item.processing_status == "completed" and item.extracted_content is not None
    ]
    if not usable:
        return ""
    parts = [CONTEXT_OPEN]
    for item in usable:
        parts.append(f"\n[File: {item.original_name}]\n{item.extracted_content}\n---\n")
    parts.append(CONTEXT_CLOSE)
    return "".join(parts)


def compose_user_message(message: str, attachments: Sequence[ContextSource]) -> str:
    """Prefix the user's message with the text of their completed uploads."""
    context = build_attachment_context(attachments)
    if not context:
        return message
    return f"{context}{QUERY_PREFIX}{message}"


async def assemble_user_message(
    session: AsyncSession,
    *,
    conversation_id: UUID | str,
    message: str,
) -> str:
    attachments = await repo.list_completed_attachments(session, conversation_id)
    return compose_user_message(message, attachments)
