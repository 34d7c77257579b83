import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from auralis.core.config import Settings, settings as default_settings
from auralis.core.errors import NotFoundError, VendorError
from auralis.core.logging import console_logger
from auralis.core.utils.enums import VendorEnum


TWILIO_CREDENTIALS = ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_call(call: Any) -> Dict[str, Any]:
    """Twilio CallInstance -> dashboard JSON."""
    return {
        "callSid": call.sid,
        "to": call.to,
        "from": getattr(call, "from_", None),
        "status": call.status,
        "direction": call.direction,
        "startTime": _iso(call.start_time),
        "endTime": _iso(call.end_time),
        "duration": call.duration,
        "price": call.price,
        "priceUnit": call.price_unit,
        "uri": call.uri,
        "accountSid": call.account_sid,
        "parentCallSid": call.parent_call_sid,
        "phoneNumberSid": call.phone_number_sid,
        "answeredBy": call.answered_by,
        "forwardedFrom": call.forwarded_from,
        "groupSid": call.group_sid,
        "callerName": call.caller_name,
        "queueTime": call.queue_time,
        "trunkSid": call.trunk_sid,
        "dateCreated": _iso(call.date_created),
        "dateUpdated": _iso(call.date_updated),
    }


def recording_media_url(recording: Any) -> Optional[str]:
    media_url = getattr(recording, "media_url", None)
    if media_url:
        return media_url
    uri = getattr(recording, "uri", None)
    if uri:
        return f"https://api.twilio.com{uri.removesuffix('.json')}.mp3"
    return None


def serialize_recording(recording: Any) -> Dict[str, Any]:
    """Twilio RecordingInstance -> dashboard JSON."""
    return {
        "sid": recording.sid,
        "accountSid": recording.account_sid,
        "callSid": recording.call_sid,
        "conferenceSid": recording.conference_sid,
        "status": recording.status,
        "dateCreated": _iso(recording.date_created),
        "dateUpdated": _iso(recording.date_updated),
        "startTime": _iso(recording.start_time),
        "duration": recording.duration,
        "channels": recording.channels,
        "source": recording.source,
        "errorCode": recording.error_code,
        "uri": recording.uri,
        "priceUnit": recording.price_unit,
        "price": recording.price,
        "mediaUrl": recording_media_url(recording),
    }


class TwilioService:
    """Thin async wrapper over the (synchronous) Twilio REST client."""

    def __init__(self, config: Optional[Settings] = None, client: Optional[Client] = None):
        self.settings = config or default_settings
        self._client = client

    @property
    def configured(self) -> bool:
        return not self.settings.missing(*TWILIO_CREDENTIALS)

    @property
    def client(self) -> Client:
        if self._client is None:
            self.settings.require(*TWILIO_CREDENTIALS, service="Twilio")
            self._client = Client(self.settings.TWILIO_ACCOUNT_SID, self.settings.TWILIO_AUTH_TOKEN)
        return self._client

    async def _call(self, fn: Callable, *args, not_found: Optional[str] = None, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except TwilioRestException as e:
            console_logger.error("Twilio API error", status=e.status, code=e.code, error=e.msg)
            if e.status == 404 and not_found:
                raise NotFoundError(not_found, details=f"The requested {not_found.split()[0].lower()} does not exist", status=404)
            raise VendorError(
                "Twilio API error",
                vendor=VendorEnum.TWILIO.value,
                status_code=e.status,
                details=e.msg or "Unknown Twilio error",
                code=e.code,
                moreInfo=getattr(e, "more_info", None),
            ) from e

    async def list_calls(
        self,
        limit: int = 20,
        status: Optional[str] = None,
        start_after: Optional[datetime] = None,
        start_before: Optional[datetime] = None,
        to: Optional[str] = None,
        from_: Optional[str] = None,
    ) -> List[Any]:
        filters: Dict[str, Any] = {"limit": limit}
        if status:
            filters["status"] = status
        if start_after:
            filters["start_time_after"] = start_after
        if start_before:
            filters["start_time_before"] = start_before
        if to:
            filters["to"] = to
        if from_:
            filters["from_"] = from_
        console_logger.info("Fetching Twilio calls", **{k: str(v) for k, v in filters.items()})
        return await self._call(self.client.calls.list, **filters)

    async def fetch_call(self, call_sid: str) -> Any:
        return await self._call(self.client.calls(call_sid).fetch, not_found="Call not found")

    async def list_recordings(
        self,
        limit: int = 20,
        call_sid: Optional[str] = None,
        created_after: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ) -> List[Any]:
        filters: Dict[str, Any] = {"limit": limit}
        if call_sid:
            filters["call_sid"] = call_sid
        if created_after:
            filters["date_created_after"] = created_after
        if created_before:
            filters["date_created_before"] = created_before
        return await self._call(self.client.recordings.list, **filters)

    async def fetch_recording(self, recording_sid: str) -> Any:
        return await self._call(self.client.recordings(recording_sid).fetch, not_found="Recording not found")


def get_twilio_service() -> TwilioService:
    """FastAPI dependency; builds the client lazily from the process settings."""
    return TwilioService()
