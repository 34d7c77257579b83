from datetime import timedelta
from typing import Any, Dict, List, Optional

from auralis.core.config import Settings, settings as default_settings
from auralis.core.errors import VendorError
from auralis.core.logging import console_logger
from auralis.core.utils.enums import RecordingStatusEnum, VendorEnum
from auralis.core.utils.timeutils import parse_int, utcnow
from auralis.schemas.call import SyncCallsRequest, SyncCallsResponse, SyncedCallSummary
from auralis.services.call_store import CallRecordStore
from auralis.services.status_mapper import failure_reason, map_status
from auralis.services.twilio_service import TWILIO_CREDENTIALS, TwilioService, recording_media_url


def twilio_call_to_record(call: Any, call_id: Optional[str] = None) -> Dict[str, Any]:
    """Twilio CallInstance -> partial call record.

    ``call_id`` is the id of a record that already owns this SID; calls
    that were not placed through this service get ``twilio-<sid>``.
    """
    return {
        "call_id": call_id or f"twilio-{call.sid}",
        "twilio_call_sid": call.sid,
        "to_number": call.to or None,
        "from_number": getattr(call, "from_", None) or None,
        "status": map_status(VendorEnum.TWILIO, call.status),
        "twilio_status": call.status,
        "started_at": call.start_time,
        "ended_at": call.end_time,
        "duration_sec": parse_int(call.duration),
        "end_reason": failure_reason(call.status),
        "created_at": call.date_created,
    }


class CallSyncService:
    """Pulls recent calls from Twilio into the call record store."""

    def __init__(self, store: CallRecordStore, twilio: TwilioService, config: Optional[Settings] = None):
        self.store = store
        self.twilio = twilio
        self.settings = config or default_settings

    async def _recording_fields(self, call_sid: str) -> Dict[str, Any]:
        try:
            recordings = await self.twilio.list_recordings(limit=1, call_sid=call_sid)
        except VendorError as e:
            console_logger.warning("Recording lookup failed during sync", call_sid=call_sid, error=e.details)
            return {}
        if not recordings:
            return {}
        recording = recordings[0]
        return {
            "recording_sid": recording.sid,
            "recording_url": recording_media_url(recording),
            "recording_duration_sec": parse_int(recording.duration),
            "recording_status": RecordingStatusEnum.COMPLETED.value,
        }

    async def sync(self, request: SyncCallsRequest) -> SyncCallsResponse:
        self.settings.require(*TWILIO_CREDENTIALS, service="Twilio")

        limit = request.limit or self.settings.CALL_SYNC_LIMIT
        days_back = request.days_back if request.days_back is not None else self.settings.CALL_SYNC_DAYS_BACK
        end = utcnow()
        start = end - timedelta(days=days_back)

        calls = await self.twilio.list_calls(
            limit=limit,
            status=request.status,
            start_after=start,
            start_before=end,
        )
        if request.direction:
            # Twilio reports outbound-api / outbound-dial for outbound calls
            calls = [c for c in calls if (c.direction or "").startswith(request.direction)]
        console_logger.info(f"Fetched {len(calls)} calls from Twilio", days_back=days_back, limit=limit)

        records: List[Dict[str, Any]] = []
        for call in calls:
            existing = await self.store.find_by_vendor_id(VendorEnum.TWILIO, call.sid)
            record = twilio_call_to_record(call, existing.call_id if existing else None)
            if existing is not None:
                # The local record keeps its own creation time
                record.pop("created_at")
            if request.include_recordings:
                record.update(await self._recording_fields(call.sid))
            records.append(record)

        synced = await self.store.upsert_many(records)
        console_logger.info(f"Synced {synced} calls to the call record store")

        return SyncCallsResponse(
            message=f"Successfully synced {len(records)} calls",
            synced_count=len(records),
            timestamp=utcnow(),
            metadata={
                "query": {
                    "limit": limit,
                    "daysBack": days_back,
                    "status": request.status,
                    "direction": request.direction,
                    "startTimeAfter": start.isoformat(),
                    "startTimeBefore": end.isoformat(),
                },
                "stored": synced,
                "calls": [
                    SyncedCallSummary(
                        call_id=r["call_id"],
                        status=r["status"].value,
                        to_number=r["to_number"],
                        from_number=r["from_number"],
                        duration_sec=r["duration_sec"],
                    ).model_dump(by_alias=True)
                    for r in records
                ],
            },
        )
