"""Per-message reply pipeline.

For every inbound message exactly one reply is attempted:
- the assistant's answer when generation succeeds
- a fixed apology when the assistant fails in any way
- a fixed notice when the message carries no text

The choice of text (generate_reply) is separate from the delivery
(process), so the "always answer, never fail the webhook" policy can be
tested without any HTTP mocking.
"""

from __future__ import annotations

import logging

import logfire

from instagram_relay.config import Settings, get_settings
from instagram_relay.constants import FALLBACK_REPLY_TEXT, NON_TEXT_REPLY_TEXT
from instagram_relay.models.reply_models import DeliveryResult, ReplyResult
from instagram_relay.models.webhook_models import InboundMessage
from instagram_relay.services.assistant_service import (
    AssistantService,
    AssistantServiceError,
    get_assistant_service,
)
from instagram_relay.services.messaging_protocol import (
    MessagingService,
    get_messaging_service,
)

logger = logging.getLogger(__name__)


def fallback_text_for(error: AssistantServiceError) -> str:
    """Map an assistant failure to the text sent to the user instead."""
    return FALLBACK_REPLY_TEXT


class MessageProcessor:
    """Generate and deliver the reply to one inbound message.

    Example:
        >>> processor = MessageProcessor(
        ...     assistant_service=assistant,
        ...     messaging_service=MockMessagingService(),
        ... )
        >>> result = await processor.process(message)
        >>> result.source
        'assistant'
    """

    def __init__(
        self,
        assistant_service: AssistantService,
        messaging_service: MessagingService,
    ):
        self._assistant_service = assistant_service
        self._messaging_service = messaging_service

    async def generate_reply(self, message: InboundMessage) -> ReplyResult:
        """Choose the reply text for a message.

        Never raises for assistant failures: they are mapped to the fallback
        text and recorded on the result.
        """
        if message.text is None or not message.text.strip():
            logfire.info(
                "Non-text message received",
                sender_id=message.sender_id,
                message_id=message.message_id,
            )
            return ReplyResult(
                recipient_id=message.sender_id,
                text=NON_TEXT_REPLY_TEXT,
                source="unsupported",
            )

        try:
            reply = await self._assistant_service.get_reply(message.text)
        except AssistantServiceError as e:
            logfire.error(
                "Assistant reply failed, using fallback",
                sender_id=message.sender_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ReplyResult(
                recipient_id=message.sender_id,
                text=fallback_text_for(e),
                source="fallback",
                error=str(e),
            )

        return ReplyResult(
            recipient_id=message.sender_id,
            text=reply,
            source="assistant",
        )

    async def process(self, message: InboundMessage) -> DeliveryResult:
        """Generate the reply and make the single send attempt for it.

        A failed send is logged and reported in the result, not raised and
        not retried.
        """
        reply = await self.generate_reply(message)

        sent = await self._messaging_service.send_message(
            recipient_id=reply.recipient_id,
            text=reply.text,
        )
        if not sent:
            logger.error(
                "Failed to deliver %s reply to %s", reply.source, reply.recipient_id
            )

        result = DeliveryResult(
            **reply.model_dump(),
            sent=sent,
            send_error=None if sent else "send_failed",
        )
        logfire.info(
            "Message processed",
            sender_id=message.sender_id,
            message_id=message.message_id,
            source=result.source,
            sent=result.sent,
        )
        return result


def get_message_processor(settings: Settings | None = None) -> MessageProcessor:
    """Factory function to create a MessageProcessor from settings.

    Args:
        settings: Settings to build the services from (cached settings by default)

    Returns:
        Configured MessageProcessor instance
    """
    settings = settings or get_settings()
    return MessageProcessor(
        assistant_service=get_assistant_service(settings),
        messaging_service=get_messaging_service(settings.instagram_page_access_token),
    )
