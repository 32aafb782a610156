"""Signature checks for the payment provider's webhooks.

The provider signs `"{webhook_id}.{timestamp}.{body}"` with HMAC-SHA256 and
sends `v1,<base64 digest>` entries (space separated) in the
`webhook-signature` header.
"""

import base64
import hashlib
import hmac
import logging
import os
import time
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Reject deliveries whose timestamp is further than this from our clock
WEBHOOK_TOLERANCE_SECONDS = 300


def _secret_bytes() -> Optional[bytes]:
    secret = os.getenv("PAYMENT_WEBHOOK_SECRET")
    return secret.encode("utf-8") if secret else None


def sign_payload(webhook_id: str, timestamp: str, body: bytes, secret: bytes) -> str:
    """Signature header value for a payload (used by the provider and in tests)."""
    signed = f"{webhook_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(secret, signed, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(
    webhook_id: Optional[str],
    timestamp: Optional[str],
    signature_header: Optional[str],
    body: bytes,
    now: Optional[float] = None,
) -> bool:
    """Check a webhook delivery against PAYMENT_WEBHOOK_SECRET.

    Returns False when the secret is not configured, a header is missing, the
    timestamp is stale, or no signature matches.
    """
    secret = _secret_bytes()
    if not secret:
        logger.warning("PAYMENT_WEBHOOK_SECRET is not set; rejecting webhook")
        return False
    if not webhook_id or not timestamp or not signature_header:
        return False

    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    current = now if now is not None else time.time()
    if abs(current - sent_at) > WEBHOOK_TOLERANCE_SECONDS:
        logger.warning(f"Webhook {webhook_id} timestamp outside tolerance")
        return False

    expected = sign_payload(webhook_id, timestamp, body, secret)
    return any(
        hmac.compare_digest(expected, candidate)
        for candidate in signature_header.split()
    )
