"""Webhook signature verification: constant-time HMAC over the raw body.

Security contract:
- Signatures are computed over the exact request bytes, never re-serialized JSON
- All comparisons use hmac.compare_digest() (constant-time, no timing attacks)
- Verification failure -> 401 immediately, no payload processing
- Missing secret -> verification skipped when skip_verification_if_secret_unset
  is on (the default), otherwise every webhook is rejected (fail-closed)
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from collections.abc import Mapping

from checkout_relay.config import Settings

logger = logging.getLogger(__name__)

# Shopify sends a base64-encoded HMAC-SHA256 of the body in this header
SIGNATURE_HEADER = "x-shopify-hmac-sha256"


def sign(body: bytes, secret: str) -> str:
    """Compute the base64 HMAC-SHA256 signature Shopify sends for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_shopify(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Verify a Shopify webhook HMAC-SHA256 signature.

    Args:
        body: Raw request body bytes
        signature_header: Value of X-Shopify-Hmac-SHA256 header
        secret: Shared webhook secret

    Returns:
        True if signature is valid
    """
    if not secret or not signature_header:
        return False

    try:
        supplied = signature_header.encode("ascii")
    except UnicodeEncodeError:
        return False

    return hmac.compare_digest(sign(body, secret).encode("ascii"), supplied)


def verify_webhook(body: bytes, headers: Mapping[str, str], settings: Settings) -> bool:
    """Verify an inbound checkout webhook against the configured secret.

    Args:
        body: Raw request body
        headers: Request headers (any key case)
        settings: Relay settings holding the secret and skip policy

    Returns:
        True if the webhook may be processed
    """
    secret = settings.shopify_webhook_secret
    if not secret:
        if settings.skip_verification_if_secret_unset:
            logger.warning("SHOPIFY_WEBHOOK_SECRET not set, skipping webhook verification")
            return True
        logger.warning("SHOPIFY_WEBHOOK_SECRET not set, rejecting webhook")
        return False

    signature = next(
        (value for key, value in headers.items() if key.lower() == SIGNATURE_HEADER),
        None,
    )
    return verify_shopify(body, signature, secret)
