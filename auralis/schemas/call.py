from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from auralis.core.utils.enums import SentimentEnum
from auralis.schemas.base import CamelModel, UtcDateTime
from auralis.models.call_record import CallRecord


class RecordingInfo(CamelModel):
    recording_sid: Optional[str] = None
    recording_url: Optional[str] = None
    status: Optional[str] = None
    duration_sec: Optional[int] = None


class CallRecordResponse(CamelModel):
    """Call record as shown on the dashboard."""
    call_id: str
    twilio_call_sid: Optional[str] = None
    elevenlabs_call_id: Optional[str] = None
    agent_id: Optional[str] = None
    to_number: Optional[str] = None
    from_number: Optional[str] = None
    status: str
    twilio_status: Optional[str] = None
    elevenlabs_status: Optional[str] = None
    started_at: Optional[UtcDateTime] = None
    ringing_at: Optional[UtcDateTime] = None
    connected_at: Optional[UtcDateTime] = None
    ended_at: Optional[UtcDateTime] = None
    duration_sec: Optional[int] = None
    end_reason: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    sentiment_summary: Optional[str] = None
    recording: Optional[RecordingInfo] = None
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None

    @classmethod
    def from_record(cls, record: CallRecord) -> "CallRecordResponse":
        recording = None
        if record.recording_sid or record.recording_url or record.recording_status:
            recording = RecordingInfo(
                recording_sid=record.recording_sid,
                recording_url=record.recording_url,
                status=record.recording_status,
                duration_sec=record.recording_duration_sec,
            )
        response = cls.model_validate(record)
        response.recording = recording
        return response


class InitiateCallRequest(CamelModel):
    # Optional so a missing number is reported with the same message as a blank one
    phone_number: Optional[str] = None


class InitiateCallResponse(CamelModel):
    success: bool = True
    call_id: str
    elevenlabs_call_id: Optional[str] = None
    twilio_call_sid: Optional[str] = None
    status: str
    elevenlabs_status: Optional[str] = None
    message: str
    agent_name: str
    agent_id: str
    from_number: Optional[str] = None
    phone_number: str
    timestamp: UtcDateTime


class EndCallRequest(CamelModel):
    reason: str = Field(default="user_ended", max_length=100)

    @field_validator("reason")
    @classmethod
    def reason_must_not_be_empty(cls, v):
        return v.strip() or "user_ended"


class CallListResponse(CamelModel):
    success: bool = True
    calls: List[CallRecordResponse]
    total_count: int
    timestamp: UtcDateTime


class CallStatisticsResponse(CamelModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    no_answer: int = 0
    in_progress: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    total_duration_sec: int = 0
    average_duration_sec: int = 0


class SyncCallsRequest(CamelModel):
    limit: Optional[int] = Field(default=None, ge=1, le=1000)
    days_back: Optional[int] = Field(default=None, ge=0, le=365)
    status: Optional[str] = None
    direction: Optional[str] = "outbound"
    include_recordings: bool = False


class SyncedCallSummary(CamelModel):
    call_id: str
    status: str
    to_number: Optional[str] = None
    from_number: Optional[str] = None
    duration_sec: Optional[int] = None


class SyncCallsResponse(CamelModel):
    success: bool = True
    message: str
    synced_count: int
    timestamp: UtcDateTime
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CallLogResponse(CamelModel):
    id: int
    call_id: str
    type: str
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: UtcDateTime


class ConversationMessageResponse(CamelModel):
    id: str
    call_id: str
    type: str
    content: str
    timestamp: UtcDateTime
    sentiment: Optional[SentimentEnum] = None
    conversation_id: Optional[str] = None
