from fastapi import APIRouter
from auralis.api.v1.endpoints import health, calls, webhooks, telephony, voice_agent, notifications
from auralis.core.config import settings

api_router = APIRouter(prefix=settings.API_V1_STR)

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(calls.router, prefix="/calls", tags=["calls"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(telephony.router, prefix="/telephony", tags=["telephony"])
api_router.include_router(voice_agent.router, prefix="/voice-agent", tags=["voice-agent"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
