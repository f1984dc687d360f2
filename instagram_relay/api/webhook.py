"""Instagram webhook endpoints.

GET answers the subscription handshake. POST relays every user message in
the payload to the assistant and sends the reply back, one message after
the other, and always acknowledges with 200 so the platform does not
redeliver.
"""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from instagram_relay.config import get_settings
from instagram_relay.constants import EVENT_RECEIVED_RESPONSE
from instagram_relay.logging_config import mask_pii, redact_tokens
from instagram_relay.models.reply_models import DeliveryResult
from instagram_relay.models.webhook_models import InboundMessage
from instagram_relay.services.event_normalizer import extract_inbound_messages
from instagram_relay.services.message_processor import (
    MessageProcessor,
    get_message_processor,
)
from instagram_relay.services.webhook_verifier import verify_subscription

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def verify_webhook(request: Request):
    """Instagram webhook verification endpoint."""
    settings = get_settings()
    logger.info(
        "Webhook verification request: %s",
        redact_tokens(dict(request.query_params)),
    )

    result = verify_subscription(
        mode=request.query_params.get("hub.mode"),
        token=request.query_params.get("hub.verify_token"),
        challenge=request.query_params.get("hub.challenge"),
        expected_token=settings.webhook_verify_token,
    )

    if result.status_code == 200:
        logger.info("Webhook verified successfully")
        return PlainTextResponse(result.body)

    logger.warning("Webhook verification failed: %s", result.reason)
    if result.status_code == 403:
        return Response(status_code=403)
    return PlainTextResponse(result.body, status_code=result.status_code)


@router.post("")
async def handle_webhook(request: Request):
    """Handle incoming Instagram messaging webhook events."""
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        return PlainTextResponse(EVENT_RECEIVED_RESPONSE)

    messages = extract_inbound_messages(payload)
    for message in messages:
        await process_message(message)

    return PlainTextResponse(EVENT_RECEIVED_RESPONSE)


async def process_message(
    message: InboundMessage,
    *,
    processor: MessageProcessor | None = None,
) -> DeliveryResult | None:
    """Reply to one inbound message.

    Errors are logged and never propagated, so one failing message does not
    stop the remaining messages of the same webhook delivery.

    Args:
        message: Normalized inbound message
        processor: Optional injected message processor (for testing)

    Returns:
        Delivery result, or None if processing failed unexpectedly
    """
    logger.info(
        "Message from %s (%d chars)",
        mask_pii(message.sender_id),
        len(message.text or ""),
    )
    try:
        _processor = processor or get_message_processor()
        return await _processor.process(message)
    except Exception as e:
        logger.error("Error processing message: %s", e, exc_info=True)
        return None
