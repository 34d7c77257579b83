from fastapi import Depends

from auralis.core.config import Settings, get_settings
from auralis.services.call_service import CallService
from auralis.services.call_store import CallRecordStore, get_call_store
from auralis.services.call_sync_service import CallSyncService
from auralis.services.twilio_service import TwilioService, get_twilio_service
from auralis.services.voice_agent_service import VoiceAgentService, get_voice_agent_service
from auralis.services.webhook_ingestor import WebhookIngestor


def get_call_service(
    store: CallRecordStore = Depends(get_call_store),
    voice_agent: VoiceAgentService = Depends(get_voice_agent_service),
    config: Settings = Depends(get_settings),
) -> CallService:
    return CallService(store, voice_agent, config)


def get_call_sync_service(
    store: CallRecordStore = Depends(get_call_store),
    twilio: TwilioService = Depends(get_twilio_service),
    config: Settings = Depends(get_settings),
) -> CallSyncService:
    return CallSyncService(store, twilio, config)


def get_webhook_ingestor(store: CallRecordStore = Depends(get_call_store)) -> WebhookIngestor:
    return WebhookIngestor(store)
