from datetime import datetime
from typing import Any, Dict, Optional

from auralis.core.utils.enums import CallStatusEnum, VendorEnum
from auralis.core.utils.timeutils import duration_between, utcnow
from auralis.models.call_record import CallRecord
from auralis.services.status_mapper import failure_reason, is_terminal, map_status, resolve_vendor


_RAW_STATUS_COLUMN = {
    VendorEnum.TWILIO: "twilio_status",
    VendorEnum.VOICE_AGENT: "elevenlabs_status",
}


def status_fields(
    vendor: str | VendorEnum,
    raw_status: Optional[str],
    *,
    record: Optional[CallRecord] = None,
    at: Optional[datetime] = None,
    duration_sec: Optional[int] = None,
) -> Dict[str, Any]:
    """Partial record for a vendor status report.

    Maps the raw status, keeps the raw value in the vendor's own column and
    stamps the lifecycle timestamp that matches the new status. Timestamps
    already on ``record`` are left alone.
    """
    resolved = resolve_vendor(vendor)
    status = map_status(resolved, raw_status)
    at = at or utcnow()

    fields: Dict[str, Any] = {
        "status": status,
        _RAW_STATUS_COLUMN[resolved]: raw_status or None,
    }

    if status is CallStatusEnum.RINGING and not (record and record.ringing_at):
        fields["ringing_at"] = at
    elif status is CallStatusEnum.IN_PROGRESS and not (record and record.connected_at):
        fields["connected_at"] = at
    elif is_terminal(status):
        if not (record and record.ended_at):
            fields["ended_at"] = at
        reason = failure_reason(raw_status)
        if reason:
            fields["end_reason"] = reason

    if duration_sec is None and is_terminal(status) and record is not None:
        duration_sec = duration_between(record.connected_at or record.started_at, fields.get("ended_at") or record.ended_at)
    if duration_sec is not None:
        fields["duration_sec"] = duration_sec
    return fields


def manual_end_fields(record: Optional[CallRecord], reason: str = "user_ended") -> Dict[str, Any]:
    """Partial record for a call ended from the dashboard."""
    ended_at = utcnow()
    fields: Dict[str, Any] = {
        "status": CallStatusEnum.COMPLETED,
        "ended_at": ended_at,
        "end_reason": reason,
    }
    if record is not None:
        fields["duration_sec"] = duration_between(record.connected_at or record.started_at or record.created_at, ended_at)
    return fields
