from .attachments import Attachment
from .chat import Conversation, Message

__all__ = [
    "Attachment",
    "Conversation",
    "Message",
]
