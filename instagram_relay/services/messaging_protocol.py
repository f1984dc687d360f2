"""Messaging abstraction protocols for decoupling from the Instagram API.

This module provides a Protocol-based abstraction for outbound messaging,
allowing the application to:
- Mock messaging in tests without complex httpx mocking
- Support dependency injection in the message processor
"""

from typing import Protocol

import logfire


class MessagingService(Protocol):
    """Protocol for sending messages to platform users."""

    async def send_message(
        self,
        recipient_id: str,
        text: str,
    ) -> bool:
        """Send message to recipient.

        Args:
            recipient_id: Platform-specific user identifier
            text: Message text to send

        Returns:
            True if message sent successfully, False otherwise
        """
        ...


class InstagramMessagingService:
    """Instagram Messaging implementation of MessagingService.

    Wraps instagram_service.send_message while providing the
    MessagingService protocol interface. Failures are logged and reported
    as False; nothing is retried.

    Example:
        >>> service = InstagramMessagingService(page_access_token="...")
        >>> await service.send_message("17841400000000000", "Hello!")
        True
    """

    def __init__(self, page_access_token: str):
        """Initialize with the page access token.

        Args:
            page_access_token: Page access token for Graph API calls
        """
        if not page_access_token:
            raise ValueError("page_access_token is required")
        self._token = page_access_token

    async def send_message(self, recipient_id: str, text: str) -> bool:
        from instagram_relay.services.instagram_service import send_message

        try:
            await send_message(
                page_access_token=self._token,
                recipient_id=recipient_id,
                text=text,
            )
            return True
        except Exception as e:
            logfire.error(
                "InstagramMessagingService.send_message failed",
                recipient_id=recipient_id,
                error_type=type(e).__name__,
            )
            return False


class MockMessagingService:
    """Mock implementation for testing.

    Example:
        >>> service = MockMessagingService()
        >>> await service.send_message("user123", "Test message")
        True
        >>> service.sent_messages
        [('user123', 'Test message')]
    """

    def __init__(self, should_fail_send: bool = False):
        """Initialize mock service.

        Args:
            should_fail_send: Whether send_message should return False
        """
        self._should_fail_send = should_fail_send
        self.sent_messages: list[tuple[str, str]] = []

    async def send_message(self, recipient_id: str, text: str) -> bool:
        """Record sent message and return configured result."""
        self.sent_messages.append((recipient_id, text))
        return not self._should_fail_send


def get_messaging_service(page_access_token: str) -> InstagramMessagingService:
    """Factory function to get a MessagingService implementation.

    Args:
        page_access_token: Page access token

    Returns:
        MessagingService implementation (currently Instagram)
    """
    return InstagramMessagingService(page_access_token=page_access_token)
