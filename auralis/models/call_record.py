from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from auralis.core.utils.enums import CallStatusEnum


class CallRecord(Base, TimestampMixin):
    """One outbound call attempt, keyed by the locally generated call id.

    Rows are written with field-level merge semantics, so every column except
    the key is nullable: a record can be created optimistically and enriched
    later by the vendor response, webhooks and the poller.
    """
    __tablename__ = "voice_calls"

    call_id: Mapped[str] = mapped_column(String(100), primary_key=True)

    # Vendor cross references
    twilio_call_sid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    elevenlabs_call_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    agent_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    to_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    from_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=CallStatusEnum.INITIATING.value)
    twilio_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    elevenlabs_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Call timing
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ringing_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    connected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_sec: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    end_reason: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    error_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sentiment_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Recording (flattened so each field merges independently)
    recording_sid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    recording_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recording_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    recording_duration_sec: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self):
        return f"<CallRecord(call_id='{self.call_id}', status='{self.status}')>"
