"""Extract user messages from Instagram webhook payloads."""

from typing import Any

import logfire
from pydantic import ValidationError

from instagram_relay.constants import INSTAGRAM_WEBHOOK_OBJECT
from instagram_relay.models.webhook_models import (
    InboundMessage,
    MessagingEvent,
    WebhookEntry,
    WebhookPayload,
)


def _validation_summary(error: ValidationError) -> dict[str, Any]:
    return {
        "error_count": error.error_count(),
        "errors": error.errors(include_url=False, include_input=False),
    }


def extract_inbound_messages(payload: Any) -> list[InboundMessage]:
    """
    Flatten a webhook payload into the user messages that need a reply.

    Entries and their messaging events are walked in payload order. Events
    without a message (reads, reactions, postbacks) and echoes of messages
    the page itself sent are skipped. Nothing is reordered or deduplicated.
    A malformed entry or event is logged and skipped on its own; the rest
    of the payload is still processed.

    Args:
        payload: Parsed JSON body of POST /webhook

    Returns:
        Inbound messages, possibly empty. ``text`` is None for messages
        without text (images, stickers, shares).
    """
    if not isinstance(payload, dict):
        logfire.warn("Ignoring non-object webhook body", body_type=type(payload).__name__)
        return []

    if payload.get("object") != INSTAGRAM_WEBHOOK_OBJECT:
        logfire.info(
            "Ignoring webhook for unexpected object",
            object=payload.get("object"),
        )
        return []

    try:
        parsed = WebhookPayload.model_validate(payload)
    except ValidationError as e:
        logfire.warn("Webhook payload failed validation", **_validation_summary(e))
        return []

    messages: list[InboundMessage] = []
    for entry_index, raw_entry in enumerate(parsed.entry):
        try:
            entry = WebhookEntry.model_validate(raw_entry)
        except ValidationError as e:
            logfire.warn(
                "Skipping malformed webhook entry",
                entry_index=entry_index,
                **_validation_summary(e),
            )
            continue

        for event_index, raw_event in enumerate(entry.messaging):
            try:
                event = MessagingEvent.model_validate(raw_event)
            except ValidationError as e:
                logfire.warn(
                    "Skipping malformed messaging event",
                    entry_id=entry.id,
                    event_index=event_index,
                    **_validation_summary(e),
                )
                continue

            if event.message is None:
                logfire.info(
                    "Skipping non-message webhook event",
                    entry_id=entry.id,
                    sender_id=event.sender.id,
                )
                continue

            if event.message.is_echo:
                logfire.info(
                    "Skipping echo message",
                    entry_id=entry.id,
                    message_id=event.message.mid,
                )
                continue

            messages.append(
                InboundMessage(
                    sender_id=event.sender.id,
                    text=event.message.text,
                    message_id=event.message.mid,
                )
            )

    logfire.info(
        "Webhook payload normalized",
        entry_count=len(parsed.entry),
        message_count=len(messages),
    )
    return messages
