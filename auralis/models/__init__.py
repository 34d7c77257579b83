from .base import Base
from .call_record import CallRecord
from .call_log import CallLogEntry
from .conversation_message import ConversationMessage
from .notification import Notification

__all__ = ["Base", "CallRecord", "CallLogEntry", "ConversationMessage", "Notification"]
