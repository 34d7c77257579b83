from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException
from auralis.api.v1.router import api_router
from auralis.core.config import settings
from auralis.core.database import db_manager, dispose_engine
from auralis.core.errors import AuralisError
from auralis.core.logging import console_logger
from auralis.core.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    auralis_error_handler,
    http_exception_handler,
    validation_exception_handler,
)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup: report which integrations are usable
    if not db_manager.configured:
        console_logger.warning("DATABASE_URL not set; call records will not be stored")
    for service, names in (
        ("Twilio", ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN")),
        ("ElevenLabs", ("ELEVENLABS_API_KEY", "ELEVENLABS_AGENT_ID", "ELEVENLABS_PHONE_NUMBER_ID")),
    ):
        missing = settings.missing(*names)
        if missing:
            console_logger.warning(f"{service} not fully configured", missing=missing)

    yield

    # Shutdown: close database connections
    await dispose_engine()

app = FastAPI(
    title="Auralis Calls Backend",
    description="Call lifecycle backend for the Auralis voice agent dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ErrorHandlingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AuralisError, auralis_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(api_router)
