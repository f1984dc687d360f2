"""Incoming Instagram messaging webhook models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Participant(BaseModel):
    """Sender or recipient of a messaging event."""

    model_config = ConfigDict(extra="ignore")

    id: str


class IncomingMessage(BaseModel):
    """Message object of a messaging event."""

    model_config = ConfigDict(extra="ignore")

    mid: str | None = None
    text: str | None = None
    is_echo: bool = False
    attachments: list[dict] = Field(default_factory=list)


class MessagingEvent(BaseModel):
    """Single messaging event inside a webhook entry."""

    model_config = ConfigDict(extra="ignore")

    sender: Participant
    recipient: Participant | None = None
    timestamp: int | None = None
    message: IncomingMessage | None = None


class WebhookEntry(BaseModel):
    """Instagram webhook entry.

    Messaging events are kept raw and validated one at a time, so a single
    malformed event does not invalidate its siblings.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    time: int | None = None
    messaging: list[Any] = Field(default_factory=list)


class WebhookPayload(BaseModel):
    """Instagram webhook payload.

    Entries are kept raw and validated one at a time.
    """

    model_config = ConfigDict(extra="ignore")

    object: str
    entry: list[Any] = Field(default_factory=list)


class InboundMessage(BaseModel):
    """Normalized user message extracted from a webhook payload."""

    sender_id: str = Field(..., description="Instagram-scoped user ID (IGSID)")
    text: str | None = Field(
        default=None, description="Message text, None for non-text messages"
    )
    message_id: str | None = None
