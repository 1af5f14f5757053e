"""Verification of signed Resend webhook deliveries.

Resend signs webhooks with the Svix scheme:
    signed content = "{svix-id}.{svix-timestamp}.{raw body}"
    key            = base64-decoded secret after the "whsec_" prefix
    signature      = base64(HMAC-SHA256(key, signed content))
The ``svix-signature`` header lists one or more space-separated
``v1,<signature>`` entries (several during secret rotation); the delivery
is authentic if any of them matches.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time

from src.errors.domain import WebhookSignatureError

logger = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"


def _decode_secret(secret: str) -> bytes:
    raw = secret[len(SECRET_PREFIX):] if secret.startswith(SECRET_PREFIX) else secret
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        # Not base64; use the secret bytes as-is.
        return raw.encode("utf-8")


def compute_signature(secret: str, delivery_id: str, timestamp: str, body: bytes) -> str:
    """Compute the base64 v1 signature for a delivery.

    Args:
        secret: Webhook signing secret (``whsec_...``).
        delivery_id: Value of the ``svix-id`` header.
        timestamp: Value of the ``svix-timestamp`` header (unix seconds).
        body: Raw request body bytes.

    Returns:
        Base64-encoded HMAC-SHA256 signature (without the ``v1,`` prefix).
    """
    signed = f"{delivery_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(_decode_secret(secret), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def _candidate_signatures(header: str) -> list[str]:
    candidates = []
    for entry in header.split():
        version, sep, value = entry.partition(",")
        if sep and version == SIGNATURE_VERSION and value:
            candidates.append(value)
    return candidates


def verify_signature(
    secret: str,
    delivery_id: str | None,
    timestamp: str | None,
    signature_header: str | None,
    body: bytes,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Verify a webhook delivery.

    Args:
        secret: Webhook signing secret.
        delivery_id: ``svix-id`` header.
        timestamp: ``svix-timestamp`` header.
        signature_header: ``svix-signature`` header.
        body: Raw request body bytes, exactly as received.
        tolerance_seconds: Allowed clock skew/age; 0 disables the check.
        now: Current unix time (tests).

    Raises:
        WebhookSignatureError: Missing headers, stale timestamp, or no
            matching signature.
    """
    if not delivery_id or not timestamp or not signature_header:
        raise WebhookSignatureError("Missing webhook signature headers")

    if tolerance_seconds > 0:
        try:
            sent_at = int(timestamp)
        except ValueError:
            raise WebhookSignatureError("Invalid webhook timestamp") from None
        current = time.time() if now is None else now
        if abs(current - sent_at) > tolerance_seconds:
            raise WebhookSignatureError("Webhook timestamp outside tolerance window")

    expected = compute_signature(secret, delivery_id, timestamp, body)
    for candidate in _candidate_signatures(signature_header):
        if hmac.compare_digest(candidate.encode("utf-8"), expected.encode("ascii")):
            return

    logger.warning("Webhook signature mismatch for delivery %s", delivery_id)
    raise WebhookSignatureError()
