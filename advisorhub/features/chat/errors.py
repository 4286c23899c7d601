from __future__ import annotations


class ConversationNotFoundError(Exception):
    pass
