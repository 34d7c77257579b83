from pydantic import Field, ConfigDict
from pydantic_settings import BaseSettings
from typing import List
from dotenv import load_dotenv

from auralis.core.errors import ConfigurationError

load_dotenv('.env.local')

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=True)

    # FastAPI
    API_V1_STR: str = Field(default="/api/v1")

    # Database (empty disables the call record store)
    DATABASE_URL: str = Field(default="")
    SQLALCHEMY_DISABLE_POOL: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="console")

    # Twilio
    TWILIO_ACCOUNT_SID: str = Field(default="")
    TWILIO_AUTH_TOKEN: str = Field(default="")
    TWILIO_NUMBER: str = Field(default="")

    # ElevenLabs Conversational AI
    ELEVENLABS_API_KEY: str = Field(default="")
    ELEVENLABS_AGENT_ID: str = Field(default="")
    ELEVENLABS_PHONE_NUMBER_ID: str = Field(default="")
    AGENT_DISPLAY_NAME: str = Field(default="Auralis AI")

    # Phone numbers without a country code are parsed in this region
    DEFAULT_PHONE_REGION: str = Field(default="US")

    # Call status polling
    CALL_POLL_INTERVAL_SECONDS: float = Field(default=5.0)
    CALL_POLL_TIMEOUT_SECONDS: float = Field(default=600.0)

    # Twilio -> store sync defaults
    CALL_SYNC_LIMIT: int = Field(default=50)
    CALL_SYNC_DAYS_BACK: int = Field(default=1)

    # CORS
    BACKEND_CORS_ORIGINS: str = Field(default="http://localhost:3000,http://localhost:8080")


    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",")]

    @property
    def store_configured(self) -> bool:
        return bool(self.DATABASE_URL.strip())

    def missing(self, *names: str) -> List[str]:
        """Return the names of the given settings that are unset or blank."""
        return [name for name in names if not str(getattr(self, name, "") or "").strip()]

    def require(self, *names: str, service: str = "Service") -> None:
        """Raise a ConfigurationError naming every missing setting."""
        missing = self.missing(*names)
        if missing:
            raise ConfigurationError(
                f"{service} configuration missing",
                details=f"Required environment variables not set: {', '.join(missing)}",
                missing=missing,
            )


    model_config = ConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process settings."""
    return settings
