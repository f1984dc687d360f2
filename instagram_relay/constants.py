"""Application-wide constants.

This module centralizes the magic numbers, endpoints and fixed reply texts
so there is a single source of truth for them. Settings in config.py
default to the values defined here.
"""

# =============================================================================
# Server
# =============================================================================

# Port used when PORT is not provided by the hosting environment
DEFAULT_PORT = 3000

# Body returned for every POST /webhook, whatever happened per event
EVENT_RECEIVED_RESPONSE = "EVENT_RECEIVED"

# Body of the root health-check route
ROOT_HEALTH_MESSAGE = "Instagram AI Bot server is running!"

# =============================================================================
# Instagram Webhook
# =============================================================================

# Value of the payload "object" field for Instagram messaging webhooks
INSTAGRAM_WEBHOOK_OBJECT = "instagram"

# hub.mode value sent by the platform during subscription verification
WEBHOOK_SUBSCRIBE_MODE = "subscribe"

# =============================================================================
# Instagram Graph API
# =============================================================================

GRAPH_API_BASE_URL = "https://graph.facebook.com"

# Graph API version used for the send-message endpoint
GRAPH_API_VERSION = "v18.0"

# Timeout for Graph API calls (seconds)
INSTAGRAM_API_TIMEOUT_SECONDS = 10.0

# messaging_type marker for replies to a user-initiated message
MESSAGING_TYPE_RESPONSE = "RESPONSE"

# Instagram direct messages are limited to 1000 characters
MAX_OUTBOUND_TEXT_CHARS = 1000

# =============================================================================
# OpenAI Assistants API
# =============================================================================

OPENAI_API_BASE_URL = "https://api.openai.com/v1"

# Protocol-version header required by the Assistants endpoints
OPENAI_BETA_HEADER = "assistants=v2"

# Timeout for each individual Assistants API call (seconds)
OPENAI_API_TIMEOUT_SECONDS = 30.0

# Fixed delay between run status checks (seconds)
ASSISTANT_POLL_INTERVAL_SECONDS = 1.0

# Upper bound on run status checks before giving up on a run
ASSISTANT_POLL_MAX_ATTEMPTS = 60

# Multiplier applied to the poll delay after every check (1.0 = fixed delay)
ASSISTANT_POLL_BACKOFF_FACTOR = 1.0

# Ceiling for the poll delay when backoff is enabled (seconds)
ASSISTANT_POLL_MAX_INTERVAL_SECONDS = 10.0

# Run statuses after which the run will not change any more.
# requires_action is included because no tools are registered for the
# assistant, so such a run can never progress.
TERMINAL_RUN_STATUSES = frozenset(
    {
        "completed",
        "failed",
        "cancelled",
        "expired",
        "incomplete",
        "requires_action",
    }
)

RUN_STATUS_COMPLETED = "completed"

# =============================================================================
# Reply Texts
# =============================================================================

# Sent instead of the assistant reply when generation fails
FALLBACK_REPLY_TEXT = (
    "Sorry, I'm having trouble responding right now. Please try again later."
)

# Sent when the inbound message carries no text (stickers, images, ...)
NON_TEXT_REPLY_TEXT = "Sorry, I can only process text messages for now."
