"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from instagram_relay.constants import (
    ASSISTANT_POLL_BACKOFF_FACTOR,
    ASSISTANT_POLL_INTERVAL_SECONDS,
    ASSISTANT_POLL_MAX_ATTEMPTS,
    ASSISTANT_POLL_MAX_INTERVAL_SECONDS,
    DEFAULT_PORT,
    INSTAGRAM_API_TIMEOUT_SECONDS,
    OPENAI_API_BASE_URL,
    OPENAI_API_TIMEOUT_SECONDS,
)

REQUIRED_SETTINGS = (
    "webhook_verify_token",
    "openai_api_key",
    "openai_assistant_id",
    "instagram_page_access_token",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Instagram Configuration
    webhook_verify_token: str = Field(
        ..., description="Shared secret echoed back by the webhook handshake"
    )
    instagram_page_access_token: str = Field(
        ..., description="Page access token used to send Instagram messages"
    )

    # OpenAI Assistants Configuration
    openai_api_key: str = Field(..., description="OpenAI API key")
    openai_assistant_id: str = Field(
        ..., description="Assistant that generates the replies (asst_xxx)"
    )
    openai_base_url: str = Field(
        default=OPENAI_API_BASE_URL, description="OpenAI API base URL"
    )

    # Server
    port: int = Field(default=DEFAULT_PORT, description="HTTP listen port")
    env: Literal["local", "render", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Sentry Configuration
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )

    # ==========================================================================
    # Timeout Configuration
    # ==========================================================================
    # Defaults are sourced from instagram_relay/constants.py.

    openai_api_timeout_seconds: float = Field(
        default=OPENAI_API_TIMEOUT_SECONDS,
        description="Timeout for each OpenAI Assistants API call (seconds)",
    )
    instagram_api_timeout_seconds: float = Field(
        default=INSTAGRAM_API_TIMEOUT_SECONDS,
        description="Timeout for Instagram Graph API calls (seconds)",
    )

    # ==========================================================================
    # Assistant Run Polling
    # ==========================================================================

    assistant_poll_interval_seconds: float = Field(
        default=ASSISTANT_POLL_INTERVAL_SECONDS,
        gt=0,
        description="Delay between run status checks (seconds)",
    )
    assistant_poll_max_attempts: int = Field(
        default=ASSISTANT_POLL_MAX_ATTEMPTS,
        ge=1,
        description="Maximum run status checks before the run times out",
    )
    assistant_poll_backoff_factor: float = Field(
        default=ASSISTANT_POLL_BACKOFF_FACTOR,
        ge=1.0,
        description="Multiplier applied to the poll delay after each check",
    )
    assistant_poll_max_interval_seconds: float = Field(
        default=ASSISTANT_POLL_MAX_INTERVAL_SECONDS,
        gt=0,
        description="Upper bound for the poll delay (seconds)",
    )
    assistant_delete_threads: bool = Field(
        default=True,
        description="Delete the OpenAI thread once its run has finished",
    )

    @field_validator(*REQUIRED_SETTINGS)
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def describe_settings_error(error: ValidationError) -> list[str]:
    """Return the names of the settings that failed validation.

    Used at startup to report which environment variables are missing or
    blank before the error is re-raised.
    """
    fields = []
    for item in error.errors():
        loc = item.get("loc") or ()
        if loc:
            fields.append(str(loc[0]).upper())
    return sorted(set(fields))
