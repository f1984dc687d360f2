"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Settings: test_settings, mock_settings
2. Mock Services: mock_assistant_service, mock_messaging_service, mock_message_processor
3. Sample Data: sample_inbound_message, instagram_payload
4. Infrastructure: test_client, mock_logfire, logfire_capture, recorded_sleep
"""

import os
from unittest.mock import AsyncMock, MagicMock, Mock, patch

# Unconfigured logfire calls in unit tests should stay silent
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import logfire  # noqa: E402
import pytest  # noqa: E402

from instagram_relay.config import Settings  # noqa: E402
from instagram_relay.models.webhook_models import InboundMessage  # noqa: E402
from instagram_relay.services.messaging_protocol import MockMessagingService  # noqa: E402

# Modules that import get_settings by name and must see the test settings
_SETTINGS_CONSUMERS = (
    "instagram_relay.config",
    "instagram_relay.main",
    "instagram_relay.api.webhook",
    "instagram_relay.services.assistant_service",
    "instagram_relay.services.instagram_service",
    "instagram_relay.services.message_processor",
)

# Modules that import logfire at module level
_LOGFIRE_CONSUMERS = (
    "instagram_relay.main",
    "instagram_relay.logging_config",
    "instagram_relay.middleware.correlation_id",
    "instagram_relay.services.assistant_service",
    "instagram_relay.services.event_normalizer",
    "instagram_relay.services.instagram_service",
    "instagram_relay.services.message_processor",
    "instagram_relay.services.messaging_protocol",
)


def make_settings(**overrides) -> Settings:
    """Build Settings with test credentials, ignoring the real environment."""
    values = {
        "webhook_verify_token": "test-verify-token",
        "openai_api_key": "sk-test-key",
        "openai_assistant_id": "asst_test123",
        "instagram_page_access_token": "test-page-token",
        "env": "local",
        "logfire_token": None,
        "sentry_dsn": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings():
    """Settings instance with test credentials."""
    return make_settings()


@pytest.fixture
def mock_settings(monkeypatch, test_settings):
    """Make every get_settings() call return the test settings."""
    for module in _SETTINGS_CONSUMERS:
        monkeypatch.setattr(f"{module}.get_settings", lambda: test_settings)
    return test_settings


# =============================================================================
# Service Mocks
# =============================================================================


@pytest.fixture
def mock_assistant_service():
    """Mock AssistantService returning a canned reply."""
    from instagram_relay.services.assistant_service import AssistantService

    service = AsyncMock(spec=AssistantService)
    service.get_reply = AsyncMock(return_value="Hello from the assistant!")
    return service


@pytest.fixture
def mock_messaging_service():
    """Recording messaging service whose sends succeed."""
    return MockMessagingService()


@pytest.fixture
def failing_messaging_service():
    """Recording messaging service whose sends fail."""
    return MockMessagingService(should_fail_send=True)


@pytest.fixture
def mock_message_processor():
    """Mock MessageProcessor for webhook handler tests."""
    from instagram_relay.services.message_processor import MessageProcessor

    processor = AsyncMock(spec=MessageProcessor)
    processor.process = AsyncMock(return_value=None)
    return processor


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_inbound_message():
    return InboundMessage(sender_id="igsid-1", text="What are your hours?", message_id="mid.1")


def build_instagram_payload(*events, object_type="instagram"):
    """Build a webhook payload with one entry holding the given events."""
    return {
        "object": object_type,
        "entry": [
            {
                "id": "17841400000000000",
                "time": 1700000000,
                "messaging": list(events),
            }
        ],
    }


def text_event(sender_id="igsid-1", text="Hello", mid="mid.1", is_echo=False):
    message = {"mid": mid, "text": text}
    if is_echo:
        message["is_echo"] = True
    return {
        "sender": {"id": sender_id},
        "recipient": {"id": "17841400000000000"},
        "timestamp": 1700000000000,
        "message": message,
    }


@pytest.fixture
def instagram_payload():
    """Payload with a single non-echo text message."""
    return build_instagram_payload(text_event(text="Hi there"))


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def recorded_sleep():
    """Awaitable sleep replacement that records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for tests that don't need to verify logging behavior.

    Replaces the module-level logfire reference in every module that uses it.
    """
    from contextlib import contextmanager

    @contextmanager
    def mock_span(*args, **kwargs):
        yield MagicMock()

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.warn = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()

    for module in _LOGFIRE_CONSUMERS:
        monkeypatch.setattr(f"{module}.logfire", mock_logfire_module)

    return mock_logfire_module


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    Yields a list of (level, args, kwargs) tuples.
    """
    captured_logs = []

    def capture(level):
        def _capture(*args, **kwargs):
            captured_logs.append((level, args, kwargs))

        return _capture

    with (
        patch.object(logfire, "info", side_effect=capture("info")),
        patch.object(logfire, "warn", side_effect=capture("warn")),
        patch.object(logfire, "error", side_effect=capture("error")),
    ):
        yield captured_logs


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests (lifespan not started)."""
    from fastapi.testclient import TestClient

    from instagram_relay.main import app

    return TestClient(app)


@pytest.fixture
def build_payload():
    """Factory fixture: build_payload(*events, object_type="instagram")."""
    return build_instagram_payload


@pytest.fixture
def make_text_event():
    """Factory fixture: make_text_event(sender_id, text, mid, is_echo)."""
    return text_event
