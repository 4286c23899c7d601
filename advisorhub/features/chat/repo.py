from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from advisorhub.core.config import get_settings
from advisorhub.db.models import Attachment, Conversation, Message
from advisorhub.features.shared.ids import to_uuid
from advisorhub.features.shared.text_sanitize import (
    log_sanitization_stats,
    sanitize_optional_text,
    sanitize_text,
)

from .errors import ConversationNotFoundError
from .types import ConversationListEntry, MessageRole

logger = logging.getLogger(__name__)


async def get_user_conversation(
    session: AsyncSession,
    conversation_id: UUID | str,
    *,
    user_id: str,
) -> Conversation:
    """Load a conversation owned by ``user_id``.

    A conversation owned by someone else is reported exactly like a missing
    one so callers cannot probe for existence.
    """
    conversation = await session.get(Conversation, to_uuid(conversation_id))
    if conversation is None or conversation.user_id != user_id:
        raise ConversationNotFoundError(f"Conversation '{conversation_id}' was not found.")
    return conversation


async def create_conversation(
    session: AsyncSession,
    *,
    user_id: str,
    title: str | None = None,
) -> Conversation:
    clean_title, title_stats = sanitize_optional_text(title, strip=True)
    log_sanitization_stats(logger, location="chat.create_conversation.title", stats=title_stats)
    conversation = Conversation(
        user_id=user_id,
        title=clean_title or get_settings().default_conversation_title,
    )
    session.add(conversation)
    await session.commit()
    await session.refresh(conversation)
    return conversation


async def list_conversations(
    session: AsyncSession,
    *,
    user_id: str,
    limit: int = 100,
) -> list[ConversationListEntry]:
    message_count = (
        select(func.count(Message.id))
        .where(Message.conversation_id == Conversation.id)
        .correlate(Conversation)
        .scalar_subquery()
    )
    stmt = (
        select(Conversation, message_count.label("message_count"))
        .where(Conversation.user_id == user_id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(stmt)).all()
    return [
        ConversationListEntry(
            id=conversation.id,
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            message_count=int(count or 0),
        )
        for conversation, count in rows
    ]


async def rename_conversation(
    session: AsyncSession,
    *,
    conversation_id: UUID | str,
    user_id: str,
    title: str,
) -> Conversation:
    conversation = await get_user_conversation(session, conversation_id, user_id=user_id)
    clean_title, title_stats = sanitize_text(title, strip=True)
    log_sanitization_stats(logger, location="chat.rename_conversation.title", stats=title_stats)
    conversation.title = clean_title
    conversation.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(conversation)
    return conversation


async def delete_conversation(
    session: AsyncSession,
    *,
    conversation_id: UUID | str,
    user_id: str,
) -> list[str]:
    """Delete the conversation and return the storage paths of its attachments."""
    conversation = await get_user_conversation(session, conversation_id, user_id=user_id)
    file_paths = list(
        (
            await session.execute(
                select(Attachment.file_path).where(Attachment.conversation_id == conversation.id)
            )
        )
        .scalars()
        .all()
    )
    await session.delete(conversation)
    await session.commit()
    return file_paths


async def save_message(
    session: AsyncSession,
    *,
    conversation_id: UUID | str,
    role: MessageRole,
    content: str,
) -> Message:
    clean_content, stats = sanitize_text(content, strip=True)
    log_sanitization_stats(logger, location=f"chat.save_message.{role}", stats=stats)
    message = Message(
        conversation_id=to_uuid(conversation_id),
        role=role,
        content=clean_content,
    )
    session.add(message)
    await session.execute(
        update(Conversation)
        .where(Conversation.id == to_uuid(conversation_id))
        .values(updated_at=datetime.now(timezone.utc))
    )
    await session.commit()
    await session.refresh(message)
    return message


async def get_conversation_messages(
    session: AsyncSession,
    conversation_id: UUID | str,
    *,
    limit: int | None = None,
) -> list[Message]:
    stmt = (
        select(Message)
        .where(Message.conversation_id == to_uuid(conversation_id))
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list((await session.execute(stmt)).scalars().all())


async def set_generated_title(
    session: AsyncSession,
    *,
    conversation_id: UUID | str,
    title: str,
) -> bool:
    """Store an auto-generated title unless the conversation was renamed meanwhile."""
    default_title = get_settings().default_conversation_title
    result = await session.execute(
        update(Conversation)
        .where(
            Conversation.id == to_uuid(conversation_id),
            or_(Conversation.title.is_(None), Conversation.title == default_title),
        )
        .values(title=title, updated_at=datetime.now(timezone.utc))
    )
    await session.commit()
    return bool(result.rowcount)
