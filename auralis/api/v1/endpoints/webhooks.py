from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from auralis.api.v1.dependencies import get_webhook_ingestor
from auralis.core.logging import console_logger
from auralis.services.webhook_ingestor import WebhookIngestor


router = APIRouter(tags=["webhooks"])


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Twilio posts form-encoded bodies, ElevenLabs posts JSON."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        body = await request.json()
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return dict(form)


@router.post("/telephony", response_class=PlainTextResponse)
async def telephony_webhook(
    request: Request,
    kind: str = Query("status", alias="type"),
    ingestor: WebhookIngestor = Depends(get_webhook_ingestor),
):
    try:
        payload = await _read_payload(request)
        console_logger.info("Twilio webhook received", type=kind, call_sid=payload.get("CallSid"))
        await ingestor.handle_telephony(kind, payload)
    except Exception as e:
        console_logger.error(f"Twilio webhook error: {e}")
    # Always acknowledged
    return "OK"


@router.post("/voice-agent", response_class=PlainTextResponse)
async def voice_agent_webhook(
    request: Request,
    kind: str = Query("call-status", alias="type"),
    ingestor: WebhookIngestor = Depends(get_webhook_ingestor),
):
    try:
        payload = await _read_payload(request)
        console_logger.info("ElevenLabs webhook received", type=kind, event=payload.get("type"))
        await ingestor.handle_voice_agent(kind, payload)
    except Exception as e:
        console_logger.error(f"ElevenLabs webhook error: {e}")
    return "OK"
