import secrets
import string
import time
from typing import Optional

from auralis.core.config import Settings, settings as default_settings
from auralis.core.errors import AuralisError, InvalidRequestError, NotFoundError, VendorError
from auralis.core.logging import console_logger
from auralis.core.utils.enums import CallLogTypeEnum, CallStatusEnum, VendorEnum
from auralis.core.utils.phone import to_e164
from auralis.core.utils.timeutils import utcnow
from auralis.models.call_record import CallRecord
from auralis.schemas.call import InitiateCallResponse
from auralis.services.call_lifecycle import manual_end_fields
from auralis.services.call_store import CallRecordStore
from auralis.services.status_mapper import is_terminal
from auralis.services.voice_agent_service import OUTBOUND_CALL_SETTINGS, VoiceAgentService


_BASE36 = string.digits + string.ascii_lowercase


def generate_call_id() -> str:
    """call_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"call_{int(time.time() * 1000)}_{suffix}"


class CallService:
    """Places agent calls and ends them, keeping the call record in step."""

    def __init__(
        self,
        store: CallRecordStore,
        voice_agent: VoiceAgentService,
        config: Optional[Settings] = None,
    ):
        self.store = store
        self.voice_agent = voice_agent
        self.settings = config or default_settings

    def normalize_phone_number(self, phone_number: Optional[str]) -> str:
        if phone_number is None or not phone_number.strip():
            raise InvalidRequestError("Phone number is required", details="Please provide a valid phone number")
        try:
            return to_e164(phone_number, self.settings.DEFAULT_PHONE_REGION)
        except ValueError as e:
            raise InvalidRequestError("Invalid phone number", details=str(e))

    async def initiate_call(self, phone_number: Optional[str]) -> InitiateCallResponse:
        # No record write and no vendor call without credentials
        self.settings.require(*OUTBOUND_CALL_SETTINGS, service="ElevenLabs")
        to_number = self.normalize_phone_number(phone_number)

        call_id = generate_call_id()
        agent_id = self.settings.ELEVENLABS_AGENT_ID
        from_number = self.settings.TWILIO_NUMBER or None
        log = console_logger.bind(call_id=call_id, to_number=to_number)

        await self.store.create_or_merge_record(
            {
                "call_id": call_id,
                "agent_id": agent_id,
                "to_number": to_number,
                "from_number": from_number,
                "status": CallStatusEnum.INITIATING,
                "started_at": utcnow(),
            },
            critical=True,
        )
        await self.store.add_call_log(
            call_id,
            CallLogTypeEnum.CALL_INITIATED,
            f"Outbound call to {to_number} initiated",
            {"agentId": agent_id},
        )
        log.info("Call record created; placing outbound call")

        try:
            response = await self.voice_agent.outbound_call(to_number)
        except Exception as e:
            error_code = "ELEVENLABS_ERROR"
            if isinstance(e, VendorError) and e.extra.get("status"):
                error_code = f"ELEVENLABS_{e.extra['status']}"
            await self.store.create_or_merge_record({
                "call_id": call_id,
                "status": CallStatusEnum.FAILED,
                "error_code": error_code,
                "error_message": getattr(e, "details", None) or str(e),
                "ended_at": utcnow(),
            })
            log.error("Outbound call failed", error=str(e))
            if isinstance(e, AuralisError):
                raise
            raise VendorError(
                "Failed to make ElevenLabs call",
                vendor=VendorEnum.VOICE_AGENT.value,
                details=str(e) or "Unknown ElevenLabs error",
            ) from e

        elevenlabs_call_id = response.get("conversation_id") or call_id
        elevenlabs_status = response.get("status") or "initiated"
        twilio_call_sid = response.get("call_sid") or None
        await self.store.update_record(call_id, {
            "status": CallStatusEnum.CALLING,
            "elevenlabs_call_id": elevenlabs_call_id,
            "elevenlabs_status": elevenlabs_status,
            "twilio_call_sid": twilio_call_sid,
        })
        log.info("Outbound call placed", elevenlabs_call_id=elevenlabs_call_id, twilio_call_sid=twilio_call_sid)

        return InitiateCallResponse(
            call_id=call_id,
            elevenlabs_call_id=elevenlabs_call_id,
            twilio_call_sid=twilio_call_sid,
            status=CallStatusEnum.CALLING.value,
            elevenlabs_status=elevenlabs_status,
            message="ElevenLabs call initiated successfully",
            agent_name=self.settings.AGENT_DISPLAY_NAME,
            agent_id=agent_id,
            from_number=from_number,
            phone_number=to_number,
            timestamp=utcnow(),
        )

    async def end_call(self, call_id: str, reason: str = "user_ended") -> CallRecord:
        """End a call from the dashboard. A call that already ended is returned unchanged."""
        record = await self.store.get_record(call_id)
        if record is None:
            raise NotFoundError("Call not found", details=f"No call record with id {call_id}")
        if is_terminal(record.status):
            return record

        await self.store.update_record(call_id, manual_end_fields(record, reason))
        await self.store.add_call_log(call_id, CallLogTypeEnum.STATUS_UPDATE, f"Call ended manually ({reason})")
        updated = await self.store.get_record(call_id) or record
        await self.store.notify_call_ended(updated)
        console_logger.info("Call ended manually", call_id=call_id, reason=reason)
        return updated
