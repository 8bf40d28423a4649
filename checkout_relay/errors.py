"""Error kinds raised by the relay.

Synchronous endpoints turn these into an HTTP status plus JSON body.
On the webhook path they end up in a ForwardOutcome and are only logged,
since the sender has already been acknowledged.
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base exception for checkout relay errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationFailure(RelayError):
    """Raised when a webhook signature does not match."""


class ValidationFailure(RelayError):
    """Raised when required input is missing or malformed."""


class DownstreamRejection(RelayError):
    """Raised when the Shopify Admin API answers with a non-2xx status.

    ``body`` holds the upstream response verbatim (parsed JSON when the
    response was JSON, raw text otherwise).
    """

    def __init__(self, status_code: int, body: Any) -> None:
        super().__init__(f"Shopify API returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class DownstreamUnreachable(RelayError):
    """Raised when no response was received (connection error, timeout)."""
