from .errors import ConversationNotFoundError
from .repo import (
    create_conversation,
    delete_conversation,
    get_conversation_messages,
    get_user_conversation,
    list_conversations,
    rename_conversation,
    save_message,
    set_generated_title,
)
from .titles import generate_chat_title, maybe_generate_conversation_title
from .types import ConversationListEntry, ConversationTurn, MessageRole

__all__ = [
    "ConversationListEntry",
    "ConversationNotFoundError",
    "ConversationTurn",
    "MessageRole",
    "create_conversation",
    "delete_conversation",
    "generate_chat_title",
    "get_conversation_messages",
    "get_user_conversation",
    "list_conversations",
    "maybe_generate_conversation_title",
    "rename_conversation",
    "save_message",
    "set_generated_title",
]
