"""Webhook subscription handshake verification."""

from typing import NamedTuple

from instagram_relay.constants import WEBHOOK_SUBSCRIBE_MODE


class VerificationResult(NamedTuple):
    """HTTP status and plain-text body to answer the handshake with."""

    status_code: int
    body: str
    reason: str


def verify_subscription(
    mode: str | None,
    token: str | None,
    challenge: str | None,
    expected_token: str,
) -> VerificationResult:
    """Decide the response to a GET /webhook handshake.

    The challenge is echoed back verbatim when the mode is ``subscribe`` and
    the token matches. A present but wrong mode or token yields 403; a missing
    mode or token yields 400.
    """
    if not mode or not token:
        return VerificationResult(400, "Missing parameters", "missing_parameters")

    if mode == WEBHOOK_SUBSCRIBE_MODE and token == expected_token:
        return VerificationResult(200, challenge or "", "verified")

    return VerificationResult(403, "", "token_mismatch")
