"""Pydantic models for the OpenAI Assistants protocol."""

from pydantic import BaseModel, ConfigDict, Field

from instagram_relay.constants import (
    ASSISTANT_POLL_BACKOFF_FACTOR,
    ASSISTANT_POLL_INTERVAL_SECONDS,
    ASSISTANT_POLL_MAX_ATTEMPTS,
    ASSISTANT_POLL_MAX_INTERVAL_SECONDS,
    RUN_STATUS_COMPLETED,
    TERMINAL_RUN_STATUSES,
)


class AssistantRun(BaseModel):
    """Run of an assistant against a thread, as returned by the API."""

    model_config = ConfigDict(extra="ignore")

    id: str
    thread_id: str | None = None
    # Open enum owned by the API: unknown values are kept as-is
    status: str
    last_error: dict | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == RUN_STATUS_COMPLETED


class AssistantMessage(BaseModel):
    """Message stored on a thread."""

    model_config = ConfigDict(extra="ignore")

    id: str
    role: str
    run_id: str | None = None
    content: list[dict] = Field(default_factory=list)

    def text_value(self) -> str | None:
        """Return the value of the first text content part, if any."""
        for part in self.content:
            if part.get("type") != "text":
                continue
            text = part.get("text")
            if isinstance(text, dict) and isinstance(text.get("value"), str):
                return text["value"]
        return None


class PollPolicy(BaseModel):
    """Bounded polling schedule for run status checks.

    The delay before check n+1 is ``interval_seconds * backoff_factor**(n-1)``
    capped at ``max_interval_seconds``. With the default backoff factor of
    1.0 the delay is fixed.
    """

    model_config = ConfigDict(frozen=True)

    interval_seconds: float = Field(default=ASSISTANT_POLL_INTERVAL_SECONDS, gt=0)
    max_attempts: int = Field(default=ASSISTANT_POLL_MAX_ATTEMPTS, ge=1)
    backoff_factor: float = Field(default=ASSISTANT_POLL_BACKOFF_FACTOR, ge=1.0)
    max_interval_seconds: float = Field(
        default=ASSISTANT_POLL_MAX_INTERVAL_SECONDS, gt=0
    )

    def delay_after(self, attempt: int) -> float:
        """Delay to wait after the given 1-based status check."""
        delay = self.interval_seconds * self.backoff_factor ** (attempt - 1)
        return min(delay, self.max_interval_seconds)
