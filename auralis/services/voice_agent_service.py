import asyncio
from typing import Any, Callable, Dict, List, Optional

from elevenlabs.client import ElevenLabs
from elevenlabs.core.api_error import ApiError
from fastapi.encoders import jsonable_encoder

from auralis.core.config import Settings, settings as default_settings
from auralis.core.errors import NotFoundError, VendorError
from auralis.core.logging import console_logger
from auralis.core.utils.enums import VendorEnum


OUTBOUND_CALL_SETTINGS = ("ELEVENLABS_API_KEY", "ELEVENLABS_AGENT_ID", "ELEVENLABS_PHONE_NUMBER_ID")


def _error_message(error: ApiError) -> str:
    body = error.body
    if isinstance(body, dict):
        detail = body.get("detail", body)
        if isinstance(detail, dict):
            return str(detail.get("message") or detail.get("status") or detail)
        return str(body.get("message") or detail)
    return str(body or error)


class VoiceAgentService:
    """ElevenLabs Conversational AI: agents, conversations and outbound calls."""

    def __init__(self, config: Optional[Settings] = None, client: Optional[ElevenLabs] = None):
        self.settings = config or default_settings
        self._client = client

    @property
    def client(self) -> ElevenLabs:
        if self._client is None:
            self.settings.require("ELEVENLABS_API_KEY", service="ElevenLabs")
            self._client = ElevenLabs(api_key=self.settings.ELEVENLABS_API_KEY)
        return self._client

    async def _call(self, fn: Callable, *args, not_found: Optional[str] = None, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except ApiError as e:
            message = _error_message(e)
            console_logger.error("ElevenLabs API error", status=e.status_code, error=message)
            if e.status_code == 404 and not_found:
                raise NotFoundError(not_found, details=message, status=404)
            raise VendorError(
                "ElevenLabs API error",
                vendor=VendorEnum.VOICE_AGENT.value,
                status_code=e.status_code,
                details=message,
            ) from e

    async def list_agents(self, page_size: int = 30) -> List[Dict[str, Any]]:
        response = await self._call(self.client.conversational_ai.agents.list, page_size=page_size)
        return jsonable_encoder(response.agents)

    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        agent = await self._call(self.client.conversational_ai.agents.get, agent_id, not_found="Agent not found")
        return jsonable_encoder(agent)

    async def list_conversations(self, agent_id: Optional[str] = None, page_size: int = 30) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {"page_size": page_size}
        if agent_id:
            kwargs["agent_id"] = agent_id
        response = await self._call(self.client.conversational_ai.conversations.list, **kwargs)
        return jsonable_encoder(response.conversations)

    async def get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        conversation = await self._call(
            self.client.conversational_ai.conversations.get,
            conversation_id,
            not_found="Conversation not found",
        )
        return jsonable_encoder(conversation)

    async def outbound_call(self, to_number: str) -> Dict[str, Any]:
        """Dial ``to_number`` with the configured agent through its Twilio number.

        Returns ``conversation_id``, ``call_sid`` (Twilio), ``success`` and ``message``.
        """
        self.settings.require(*OUTBOUND_CALL_SETTINGS, service="ElevenLabs")
        response = await self._call(
            self.client.conversational_ai.twilio.outbound_call,
            agent_id=self.settings.ELEVENLABS_AGENT_ID,
            agent_phone_number_id=self.settings.ELEVENLABS_PHONE_NUMBER_ID,
            to_number=to_number,
        )
        result = jsonable_encoder(response)
        if result.get("success") is False:
            raise VendorError(
                "ElevenLabs API error",
                vendor=VendorEnum.VOICE_AGENT.value,
                details=result.get("message") or "Outbound call was rejected",
            )
        return result


def get_voice_agent_service() -> VoiceAgentService:
    """FastAPI dependency; builds the client lazily from the process settings."""
    return VoiceAgentService()
