from enum import Enum


class CallStatusEnum(str, Enum):
    """Unified call status shared by every vendor."""
    INITIATING = "initiating"
    QUEUED = "queued"
    RINGING = "ringing"
    CALLING = "calling"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    NO_ANSWER = "no-answer"


class VendorEnum(str, Enum):
    TWILIO = "twilio"
    VOICE_AGENT = "voice_agent"


class RecordingStatusEnum(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    ABSENT = "absent"


class CallLogTypeEnum(str, Enum):
    CALL_INITIATED = "call_initiated"
    STATUS_UPDATE = "status_update"
    CONVERSATION_EVENT = "conversation_event"
    RECORDING = "recording"


class MessageTypeEnum(str, Enum):
    AI = "ai"
    HUMAN = "human"
    SYSTEM = "system"


class SentimentEnum(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


#########################################
# Notifications
#########################################
class NotificationTypeEnum(str, Enum):
    CALL_COMPLETED = "call_completed"
    CALL_FAILED = "call_failed"
    AGENT_OFFLINE = "agent_offline"
    QUALITY_ALERT = "quality_alert"
    COST_ALERT = "cost_alert"
    SYSTEM_ALERT = "system_alert"


class SeverityEnum(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RelatedTypeEnum(str, Enum):
    CALL = "call"
    AGENT = "agent"
    CONVERSATION = "conversation"
    SYSTEM = "system"


class PollerStateEnum(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"
