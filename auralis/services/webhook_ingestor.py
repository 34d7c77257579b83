"""Vendor callbacks folded into call records.

Nothing in here raises: every failure is logged and the route still
acknowledges the callback.
"""
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from auralis.core.logging import console_logger
from auralis.core.utils.enums import CallLogTypeEnum, CallStatusEnum, MessageTypeEnum, SentimentEnum, VendorEnum
from auralis.core.utils.timeutils import parse_int, parse_timestamp, utcnow
from auralis.models.call_record import CallRecord
from auralis.services.call_lifecycle import status_fields
from auralis.services.call_store import CallRecordStore
from auralis.services.status_mapper import is_terminal


_TRANSCRIPT_ROLES = {
    "agent": MessageTypeEnum.AI,
    "user": MessageTypeEnum.HUMAN,
}

_CALL_OUTCOME_SENTIMENT = {
    "success": SentimentEnum.POSITIVE,
    "failure": SentimentEnum.NEGATIVE,
    "unknown": SentimentEnum.NEUTRAL,
}


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


class WebhookIngestor:

    def __init__(self, store: CallRecordStore):
        self.store = store

    async def _apply(self, record: CallRecord, fields: Dict[str, Any], vendor: VendorEnum) -> None:
        was_terminal = is_terminal(record.status)
        updated = await self.store.update_record(record.call_id, fields)
        console_logger.info(
            "Call record updated from webhook",
            call_id=record.call_id,
            vendor=vendor.value,
            status=getattr(fields.get("status"), "value", fields.get("status")),
            updated=updated,
        )
        if updated and not was_terminal and is_terminal(fields.get("status")):
            current = await self.store.get_record(record.call_id)
            if current is not None:
                await self.store.notify_call_ended(current)

    # ---------------------------------------------------------------
    # Twilio
    # ---------------------------------------------------------------

    async def handle_telephony(self, kind: str, payload: Mapping[str, Any]) -> None:
        try:
            if kind == "status":
                await self._twilio_status(payload)
            elif kind == "recording":
                await self._twilio_recording(payload)
            else:
                console_logger.warning("Ignoring unknown Twilio webhook type", type=kind)
        except Exception:
            console_logger.error("Twilio webhook processing failed", type=kind, exc_info=True)

    async def _twilio_status(self, payload: Mapping[str, Any]) -> None:
        call_sid = payload.get("CallSid")
        raw_status = payload.get("CallStatus")
        if not call_sid:
            console_logger.warning("Twilio status callback without CallSid")
            return

        record = await self.store.find_by_vendor_id(VendorEnum.TWILIO, call_sid)
        if record is None:
            console_logger.warning("No call record for Twilio SID", call_sid=call_sid, status=raw_status)
            return

        fields = status_fields(
            VendorEnum.TWILIO,
            raw_status,
            record=record,
            duration_sec=parse_int(_first(payload, "CallDuration", "Duration")),
        )
        fields["twilio_call_sid"] = call_sid
        started_at = parse_timestamp(_first(payload, "StartTime", "Timestamp"))
        if started_at and not record.started_at:
            fields["started_at"] = started_at
        ended_at = parse_timestamp(payload.get("EndTime"))
        if ended_at:
            fields["ended_at"] = ended_at
        if payload.get("ErrorCode"):
            fields["error_code"] = str(payload["ErrorCode"])
            fields["error_message"] = payload.get("ErrorMessage")

        await self._apply(record, fields, VendorEnum.TWILIO)
        await self.store.add_call_log(
            record.call_id,
            CallLogTypeEnum.STATUS_UPDATE,
            f"Twilio status: {raw_status}",
            {"callSid": call_sid, "status": raw_status, "source": "twilio"},
        )

    async def _twilio_recording(self, payload: Mapping[str, Any]) -> None:
        call_sid = payload.get("CallSid")
        recording_sid = payload.get("RecordingSid")
        if not call_sid or not recording_sid:
            console_logger.warning("Twilio recording callback without CallSid/RecordingSid")
            return

        record = await self.store.find_by_vendor_id(VendorEnum.TWILIO, call_sid)
        if record is None:
            console_logger.warning("No call record for Twilio SID", call_sid=call_sid, recording_sid=recording_sid)
            return

        await self.store.update_record(record.call_id, {
            "recording_sid": recording_sid,
            "recording_url": payload.get("RecordingUrl"),
            "recording_status": payload.get("RecordingStatus"),
            "recording_duration_sec": parse_int(payload.get("RecordingDuration")),
        })
        await self.store.add_call_log(
            record.call_id,
            CallLogTypeEnum.RECORDING,
            f"Recording {payload.get('RecordingStatus') or 'updated'}",
            {"recordingSid": recording_sid, "source": "twilio"},
        )

    # ---------------------------------------------------------------
    # Voice agent (ElevenLabs)
    # ---------------------------------------------------------------

    async def handle_voice_agent(self, kind: str, payload: Mapping[str, Any]) -> None:
        try:
            if payload.get("type") == "post_call_transcription":
                await self._post_call_transcription(payload.get("data") or {})
            elif kind == "call-status":
                await self._voice_agent_status(payload)
            elif kind == "conversation-events":
                await self._conversation_event(payload)
            else:
                console_logger.warning("Ignoring unknown voice agent webhook type", type=kind)
        except Exception:
            console_logger.error("Voice agent webhook processing failed", type=kind, exc_info=True)

    async def _voice_agent_status(self, payload: Mapping[str, Any]) -> None:
        vendor_id = _first(payload, "callId", "call_id", "conversation_id")
        raw_status = _first(payload, "status", "call_status")
        if not vendor_id:
            console_logger.warning("Voice agent status callback without call id")
            return

        record = await self.store.find_by_vendor_id(VendorEnum.VOICE_AGENT, vendor_id)
        if record is None:
            console_logger.warning("No call record for voice agent id", vendor_id=vendor_id, status=raw_status)
            return

        fields = status_fields(
            VendorEnum.VOICE_AGENT,
            raw_status,
            record=record,
            duration_sec=parse_int(payload.get("duration")),
        )
        for key in ("end_reason", "error_code", "error_message"):
            if payload.get(key):
                fields[key] = str(payload[key])

        await self._apply(record, fields, VendorEnum.VOICE_AGENT)
        await self.store.add_call_log(
            record.call_id,
            CallLogTypeEnum.STATUS_UPDATE,
            f"ElevenLabs status: {raw_status}",
            {"status": raw_status, "source": "elevenlabs"},
        )

    async def _conversation_event(self, payload: Mapping[str, Any]) -> None:
        vendor_id = _first(payload, "callId", "call_id", "conversation_id")
        if not vendor_id:
            console_logger.warning("Conversation event without call id")
            return

        record = await self.store.find_by_vendor_id(VendorEnum.VOICE_AGENT, vendor_id)
        if record is None:
            console_logger.warning("No call record for voice agent id", vendor_id=vendor_id)
            return

        event_type = payload.get("event_type")
        await self.store.add_call_log(
            record.call_id,
            CallLogTypeEnum.CONVERSATION_EVENT,
            f"ElevenLabs event: {event_type}",
            {
                "eventType": event_type,
                "message": payload.get("message"),
                "timestamp": payload.get("timestamp"),
                "source": "elevenlabs",
            },
        )

    async def _find_for_conversation(self, data: Mapping[str, Any]) -> Optional[CallRecord]:
        record = await self.store.find_by_vendor_id(VendorEnum.VOICE_AGENT, data.get("conversation_id"))
        if record is None:
            phone_call = (data.get("metadata") or {}).get("phone_call") or {}
            record = await self.store.find_by_vendor_id(VendorEnum.TWILIO, phone_call.get("call_sid"))
        return record

    async def _post_call_transcription(self, data: Mapping[str, Any]) -> None:
        conversation_id = data.get("conversation_id")
        record = await self._find_for_conversation(data)
        if record is None:
            console_logger.warning("No call record for conversation", conversation_id=conversation_id)
            return

        metadata = data.get("metadata") or {}
        analysis = data.get("analysis") or {}
        started = parse_timestamp(metadata.get("start_time_unix_secs")) or record.started_at or utcnow()

        messages: List[Dict[str, Any]] = []
        for index, turn in enumerate(data.get("transcript") or []):
            content = turn.get("message")
            if not content:
                continue
            offset = parse_int(turn.get("time_in_call_secs")) or 0
            messages.append({
                "id": f"{conversation_id or record.call_id}-{index}",
                "call_id": record.call_id,
                "type": _TRANSCRIPT_ROLES.get(turn.get("role"), MessageTypeEnum.SYSTEM).value,
                "content": content,
                "timestamp": started + timedelta(seconds=offset),
                "conversation_id": conversation_id,
            })
        for message in messages:
            await self.store.add_message(message)

        duration = parse_int(metadata.get("call_duration_secs"))
        fields = status_fields(VendorEnum.VOICE_AGENT, data.get("status") or "done", record=record, duration_sec=duration)
        if not is_terminal(fields["status"]):
            fields["status"] = CallStatusEnum.COMPLETED
            fields["ended_at"] = record.ended_at or utcnow()
        if analysis.get("transcript_summary"):
            fields["sentiment_summary"] = analysis["transcript_summary"]

        await self._apply(record, fields, VendorEnum.VOICE_AGENT)
        await self.store.add_call_log(
            record.call_id,
            CallLogTypeEnum.CONVERSATION_EVENT,
            "ElevenLabs post-call transcription received",
            {
                "conversationId": conversation_id,
                "messages": len(messages),
                "sentiment": getattr(_CALL_OUTCOME_SENTIMENT.get(analysis.get("call_successful")), "value", None),
                "source": "elevenlabs",
            },
        )
