from .base import Base
from .models import Attachment, Conversation, Message

__all__ = [
    "Attachment",
    "Base",
    "Conversation",
    "Message",
]
