"""
Webhook Security Module

Signature verification for Stripe webhook endpoints:
- Stripe-Signature header parsing (t=<timestamp>,v1=<signature>)
- HMAC-SHA256 over "<timestamp>.<raw body>" with the endpoint secret
- Constant-time signature comparison
- Timestamp tolerance against replayed deliveries
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""

    pass


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_timestamp(
    timestamp: Optional[str],
    max_age: int = MAX_WEBHOOK_AGE_SECONDS,
    now: Optional[int] = None,
) -> bool:
    """
    Verify webhook timestamp is within acceptable range.

    Args:
        timestamp: Unix timestamp as string
        max_age: Maximum age in seconds
        now: Reference time (defaults to the current time)

    Returns:
        True if timestamp is valid, False otherwise
    """
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


def parse_stripe_signature_header(header: str) -> tuple[Optional[str], list[str]]:
    """Split a Stripe-Signature header into its timestamp and v1 signatures"""
    timestamp = None
    signatures = []
    for item in (header or "").split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def compute_stripe_signature(secret: str, timestamp: str, payload: bytes) -> str:
    """Signature Stripe computes for a delivery: HMAC-SHA256 of "<t>.<payload>" """
    return compute_hmac_sha256(secret, timestamp.encode("utf-8") + b"." + payload)


def verify_stripe_signature(
    payload: bytes,
    header: Optional[str],
    secret: Optional[str],
    tolerance: int = MAX_WEBHOOK_AGE_SECONDS,
    now: Optional[int] = None,
) -> None:
    """
    Verify a Stripe webhook delivery.

    Raises:
        WebhookSignatureError: header missing or malformed, timestamp outside
            the tolerance, or no v1 signature matches
    """
    if not secret:
        raise WebhookSignatureError("Webhook secret not configured")
    if not header:
        raise WebhookSignatureError("Missing Stripe-Signature header")

    timestamp, signatures = parse_stripe_signature_header(header)
    if not timestamp or not signatures:
        raise WebhookSignatureError("Malformed Stripe-Signature header")

    if not verify_timestamp(timestamp, max_age=tolerance, now=now):
        raise WebhookSignatureError("Webhook timestamp outside tolerance")

    expected = compute_stripe_signature(secret, timestamp, payload)
    if not any(constant_time_compare(expected, signature) for signature in signatures):
        raise WebhookSignatureError("No matching signature")


async def verify_stripe_webhook(
    request: Request, secret: Optional[str], raise_on_failure: bool = True
) -> tuple[bool, bytes]:
    """
    Verify the Stripe-Signature header of an incoming webhook request.

    Args:
        request: FastAPI request object
        secret: Endpoint signing secret (whsec_...)
        raise_on_failure: If True, raises HTTPException 401 on failure

    Returns:
        Tuple of (is_valid, raw_body)
    """
    # Get raw body BEFORE any parsing - the signature covers the exact bytes
    raw_body = await request.body()
    signature_header = request.headers.get("stripe-signature", "")

    try:
        verify_stripe_signature(raw_body, signature_header, secret)
    except WebhookSignatureError as e:
        logger.error(f"❌ Stripe webhook signature verification failed: {e}")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Invalid webhook signature") from e
        return False, raw_body

    logger.info(f"✅ Stripe webhook signature verified ({len(raw_body)} bytes)")
    return True, raw_body
