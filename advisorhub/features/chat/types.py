from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

MessageRole = Literal["user", "assistant"]


@dataclass(frozen=True)
class ConversationTurn:
    role: MessageRole
    content: str


@dataclass(frozen=True)
class ConversationListEntry:
    id: UUID
    title: str | None
    created_at: datetime
    updated_at: datetime
    message_count: int
