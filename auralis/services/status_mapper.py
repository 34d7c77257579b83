"""Vendor call-status vocabularies mapped onto the unified call status.

This is the only place status translation happens. Vendor vocabularies are
not contractually stable, so mapping is total: anything unrecognised maps to
the state the vendor's own lifecycle starts in instead of raising.
"""
from typing import Dict, FrozenSet, Optional, Union

from auralis.core.utils.enums import CallStatusEnum, VendorEnum


TWILIO_STATUS_MAP: Dict[str, CallStatusEnum] = {
    "queued": CallStatusEnum.QUEUED,
    "initiated": CallStatusEnum.QUEUED,
    "ringing": CallStatusEnum.RINGING,
    "in-progress": CallStatusEnum.IN_PROGRESS,
    "completed": CallStatusEnum.COMPLETED,
    "busy": CallStatusEnum.FAILED,
    "failed": CallStatusEnum.FAILED,
    "no-answer": CallStatusEnum.NO_ANSWER,
    "canceled": CallStatusEnum.FAILED,
}

VOICE_AGENT_STATUS_MAP: Dict[str, CallStatusEnum] = {
    "initiated": CallStatusEnum.INITIATING,
    "ringing": CallStatusEnum.RINGING,
    "in-progress": CallStatusEnum.IN_PROGRESS,
    "processing": CallStatusEnum.IN_PROGRESS,
    "completed": CallStatusEnum.COMPLETED,
    "done": CallStatusEnum.COMPLETED,
    "failed": CallStatusEnum.FAILED,
    "no-answer": CallStatusEnum.NO_ANSWER,
    "busy": CallStatusEnum.FAILED,
    "cancelled": CallStatusEnum.FAILED,
}

FALLBACK_STATUS: Dict[VendorEnum, CallStatusEnum] = {
    VendorEnum.TWILIO: CallStatusEnum.QUEUED,
    VendorEnum.VOICE_AGENT: CallStatusEnum.INITIATING,
}

# Raw statuses collapsed into FAILED that still deserve a distinct end reason
FAILURE_REASONS: Dict[str, str] = {
    "busy": "busy",
    "canceled": "canceled",
    "cancelled": "canceled",
}

TERMINAL_STATUSES: FrozenSet[CallStatusEnum] = frozenset({
    CallStatusEnum.COMPLETED,
    CallStatusEnum.FAILED,
    CallStatusEnum.NO_ANSWER,
})

_VENDOR_ALIASES: Dict[str, VendorEnum] = {
    "twilio": VendorEnum.TWILIO,
    "telephony": VendorEnum.TWILIO,
    "voice_agent": VendorEnum.VOICE_AGENT,
    "voice-agent": VendorEnum.VOICE_AGENT,
    "voiceagent": VendorEnum.VOICE_AGENT,
    "elevenlabs": VendorEnum.VOICE_AGENT,
}


def resolve_vendor(vendor: Union[str, VendorEnum]) -> VendorEnum:
    if isinstance(vendor, VendorEnum):
        return vendor
    try:
        return _VENDOR_ALIASES[str(vendor).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown vendor: {vendor!r}") from None


def _normalize(raw_status: Optional[str]) -> str:
    # in_progress / in-progress / inprogress, no_answer / no-answer / noanswer
    text = str(raw_status or "").strip().lower().replace("_", "-").replace(" ", "-")
    return {"inprogress": "in-progress", "noanswer": "no-answer"}.get(text, text)


def map_status(vendor: Union[str, VendorEnum], raw_status: Optional[str]) -> CallStatusEnum:
    """Translate a vendor status string into the unified call status."""
    resolved = resolve_vendor(vendor)
    table = TWILIO_STATUS_MAP if resolved is VendorEnum.TWILIO else VOICE_AGENT_STATUS_MAP
    return table.get(_normalize(raw_status), FALLBACK_STATUS[resolved])


def failure_reason(raw_status: Optional[str]) -> Optional[str]:
    """End reason for raw statuses that the unified status collapses into FAILED."""
    return FAILURE_REASONS.get(_normalize(raw_status))


def is_terminal(status: Union[str, CallStatusEnum, None]) -> bool:
    if status is None:
        return False
    try:
        return CallStatusEnum(status) in TERMINAL_STATUSES
    except ValueError:
        return False
