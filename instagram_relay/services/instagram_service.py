"""Instagram Graph API integration."""

import time

import httpx
import logfire

from instagram_relay.config import get_settings
from instagram_relay.constants import (
    GRAPH_API_BASE_URL,
    GRAPH_API_VERSION,
    MAX_OUTBOUND_TEXT_CHARS,
    MESSAGING_TYPE_RESPONSE,
)

SEND_MESSAGE_URL = f"{GRAPH_API_BASE_URL}/{GRAPH_API_VERSION}/me/messages"


def fit_message_text(text: str, limit: int = MAX_OUTBOUND_TEXT_CHARS) -> str:
    """Truncate text to the Instagram message limit, ending with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def _message_id(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data.get("message_id") if isinstance(data, dict) else None


async def send_message(
    page_access_token: str,
    recipient_id: str,
    text: str,
) -> None:
    """
    Send message via Instagram Graph API.

    Args:
        page_access_token: Page access token linked to the Instagram account
        recipient_id: Instagram-scoped user ID to send message to
        text: Message text to send

    Raises:
        httpx.HTTPStatusError: If the Graph API rejects the message
        httpx.RequestError: On network errors and timeouts
    """
    start_time = time.time()
    text = fit_message_text(text)

    logfire.info(
        "Sending Instagram message",
        recipient_id=recipient_id,
        message_length=len(text),
        api_version=GRAPH_API_VERSION,
    )

    params = {"access_token": page_access_token}

    payload = {
        "recipient": {"id": recipient_id},
        "message": {"text": text},
        "messaging_type": MESSAGING_TYPE_RESPONSE,
    }

    try:
        settings = get_settings()
        async with httpx.AsyncClient(
            timeout=settings.instagram_api_timeout_seconds
        ) as client:
            response = await client.post(SEND_MESSAGE_URL, params=params, json=payload)
            elapsed = time.time() - start_time

            if response.is_success:
                logfire.info(
                    "Instagram message sent successfully",
                    recipient_id=recipient_id,
                    status_code=response.status_code,
                    message_id=_message_id(response),
                    response_time_ms=elapsed * 1000,
                )
            else:
                logfire.error(
                    "Instagram message send failed",
                    recipient_id=recipient_id,
                    status_code=response.status_code,
                    response_body=response.text[:500],  # Limit response body length
                    response_time_ms=elapsed * 1000,
                )

            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        elapsed = time.time() - start_time
        logfire.error(
            "Instagram API HTTP error",
            recipient_id=recipient_id,
            status_code=e.response.status_code,
            error_type=type(e).__name__,
            response_time_ms=elapsed * 1000,
        )
        raise
    except httpx.RequestError as e:
        elapsed = time.time() - start_time
        logfire.error(
            "Instagram API request error",
            recipient_id=recipient_id,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=elapsed * 1000,
        )
        raise
