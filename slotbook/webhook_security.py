"""
Webhook Security Module

Signature verification for payment gateway callbacks (Standard Webhooks, as sent
by Dodo Payments):
- Signed message is "{webhook-id}.{webhook-timestamp}.{raw body}"
- HMAC-SHA256 keyed with the base64-decoded part of the "whsec_" secret
- Header "webhook-signature" carries one or more space separated "v1,<base64>" entries
- Constant-time comparison, 5 minute timestamp tolerance against replays
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from typing import Optional

from .errors import SignatureError

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300

SIGNATURE_HEADER = "webhook-signature"
TIMESTAMP_HEADER = "webhook-timestamp"
ID_HEADER = "webhook-id"


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def extract_signing_key(secret: str) -> bytes:
    """
    Signing key bytes from a "whsec_BASE64KEY" style secret.

    Without the prefix the whole secret is tried as base64, then as raw UTF-8.
    """
    encoded = secret[6:] if secret.startswith("whsec_") else secret
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def verify_timestamp(
    timestamp: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS, now: Optional[float] = None
) -> bool:
    """True when `timestamp` (unix seconds) is within `max_age` of now"""
    if not timestamp:
        return False

    try:
        webhook_time = int(timestamp)
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    current_time = int(now if now is not None else time.time())
    age = abs(current_time - webhook_time)
    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False
    return True


def compute_signature(secret: str, webhook_id: str, timestamp: str, payload: bytes) -> str:
    """base64 HMAC-SHA256 over the byte-exact signed message"""
    signed_message = b".".join([webhook_id.encode("utf-8"), timestamp.encode("utf-8"), payload])
    digest = hmac.new(extract_signing_key(secret), signed_message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def create_webhook_signature(secret: str, webhook_id: str, timestamp: str, payload: bytes) -> str:
    """Signature header value for a payload (used for replaying events and in tests)"""
    return f"v1,{compute_signature(secret, webhook_id, timestamp, payload)}"


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title(), "")
    return value or ""


def verify_standard_webhook(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: Optional[str],
    now: Optional[float] = None,
) -> str:
    """
    Verify a signed webhook over the raw request body.

    Returns:
        The webhook id (unique per event, stable across redeliveries)

    Raises:
        SignatureError: on any missing header, stale timestamp or mismatch
    """
    if not secret:
        logger.error("❌ Webhook signing secret not configured; rejecting event")
        raise SignatureError("webhook secret not configured")

    signature_header = _header(headers, SIGNATURE_HEADER)
    timestamp = _header(headers, TIMESTAMP_HEADER)
    webhook_id = _header(headers, ID_HEADER)

    if not signature_header or not timestamp or not webhook_id:
        logger.warning(f"🚫 Webhook missing signature headers (id={webhook_id or 'unknown'})")
        raise SignatureError("missing webhook signature headers")

    if not verify_timestamp(timestamp, now=now):
        raise SignatureError("webhook timestamp expired or invalid")

    expected = compute_signature(secret, webhook_id, timestamp, raw_body)

    for candidate in signature_header.split():
        version, _, signature = candidate.partition(",")
        if version == "v1" and constant_time_compare(expected, signature):
            logger.debug(f"✅ Webhook signature verified: {webhook_id}")
            return webhook_id

    logger.warning(f"🚫 Webhook signature mismatch for {webhook_id}; possible tampering")
    raise SignatureError("webhook signature mismatch")
