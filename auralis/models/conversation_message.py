from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ConversationMessage(Base):
    """A transcript line owned by a call record; append-only, ordered by timestamp."""
    __tablename__ = "conversation_messages"

    id: Mapped[str] = mapped_column(String(150), primary_key=True)
    call_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    sentiment: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    conversation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self):
        return f"<ConversationMessage(id='{self.id}', call_id='{self.call_id}', type='{self.type}')>"
