"""Per-event reply pipeline results."""

from typing import Literal

from pydantic import BaseModel, Field

ReplySource = Literal["assistant", "fallback", "unsupported"]


class ReplyResult(BaseModel):
    """Text chosen as the reply to one inbound message."""

    recipient_id: str
    text: str
    source: ReplySource = Field(
        ..., description="Where the text came from (assistant, fallback, unsupported)"
    )
    error: str | None = Field(
        default=None, description="Assistant error that caused a fallback reply"
    )


class DeliveryResult(ReplyResult):
    """Reply plus the outcome of the single send attempt."""

    sent: bool
    send_error: str | None = None
