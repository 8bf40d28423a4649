"""Checkout webhook lifecycle: verify, acknowledge, then forward out of band.

State machine:

    RECEIVED --> VERIFYING
    VERIFYING --> REJECTED              : signature mismatch (terminal, 401)
    VERIFYING --> ACKNOWLEDGED          : signature ok (200 sent)
    ACKNOWLEDGED --> MAPPING_AND_FORWARDING
    MAPPING_AND_FORWARDING --> FORWARDED
    MAPPING_AND_FORWARDING --> FORWARD_FAILED

Forwarding runs on a detached asyncio task started after the acknowledgment
has been sent. Its outcome is only visible in the WEBHOOK_AUDIT log; it is
never retried and never reported back to the sender. Tasks still running
at shutdown are awaited by drain() when the app stops gracefully and are
lost otherwise.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import ValidationError

from checkout_relay.config import Settings
from checkout_relay.errors import RelayError, ValidationFailure
from checkout_relay.mapper import checkout_to_draft_order
from checkout_relay.models import Checkout, DraftOrder
from checkout_relay.shopify_client import DraftOrderClient
from checkout_relay.webhooks.verification import verify_webhook

logger = logging.getLogger(__name__)


class WebhookState(str, enum.Enum):
    RECEIVED = "received"
    VERIFYING = "verifying"
    REJECTED = "rejected"
    ACKNOWLEDGED = "acknowledged"
    MAPPING_AND_FORWARDING = "mapping_and_forwarding"
    FORWARDED = "forwarded"
    FORWARD_FAILED = "forward_failed"


@dataclass
class ForwardOutcome:
    """Terminal result of the forwarding phase of one webhook."""

    state: WebhookState
    checkout_token: str | None = None
    draft_order: DraftOrder | None = None
    completed_order: DraftOrder | None = None
    error: RelayError | None = None

    @property
    def success(self) -> bool:
        return self.state is WebhookState.FORWARDED


def log_webhook(state: WebhookState, token: str | None = None, detail: str = "") -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT event=checkouts/create token=%s status=%s%s",
        token or "unknown",
        state.value,
        f" {detail}" if detail else "",
    )


def parse_checkout(body: bytes) -> Checkout:
    """Decode the raw webhook body. Only called after verification."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationFailure(f"Webhook body is not valid JSON: {e}") from e

    try:
        return Checkout.model_validate(data)
    except ValidationError as e:
        raise ValidationFailure(f"Webhook body is not a checkout: {e.error_count()} error(s)") from e


class CheckoutWebhookHandler:
    """Transport-independent handler for checkout webhooks.

    The HTTP layer calls authenticate() with the raw body, responds, and
    then calls dispatch(). Everything after the response happens here.
    """

    def __init__(self, settings: Settings, client: DraftOrderClient):
        self._settings = settings
        self._client = client
        # Strong references to in-flight forwards so they are not collected
        # mid-flight; entries are removed as soon as a task finishes.
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def authenticate(self, body: bytes, headers: Mapping[str, str]) -> WebhookState:
        """Run the signature check; returns ACKNOWLEDGED or REJECTED."""
        log_webhook(WebhookState.RECEIVED, detail=f"bytes={len(body)}")
        if verify_webhook(body, headers, self._settings):
            log_webhook(WebhookState.ACKNOWLEDGED)
            return WebhookState.ACKNOWLEDGED
        log_webhook(WebhookState.REJECTED, detail="reason=signature")
        return WebhookState.REJECTED

    async def forward(self, body: bytes) -> ForwardOutcome:
        """Map the checkout and create (optionally complete) its draft order.

        Never raises for relay errors; they are returned in the outcome.
        """
        token = None
        try:
            checkout = parse_checkout(body)
            token = checkout.token
            log_webhook(WebhookState.MAPPING_AND_FORWARDING, token, f"line_items={len(checkout.line_items)}")
            draft_order = await self._client.create_draft_order(checkout_to_draft_order(checkout))
        except RelayError as e:
            return ForwardOutcome(WebhookState.FORWARD_FAILED, checkout_token=token, error=e)

        completed = None
        if self._settings.auto_complete_draft_order:
            try:
                completed = await self._client.complete_draft_order(draft_order.id)
            except RelayError as e:
                return ForwardOutcome(
                    WebhookState.FORWARD_FAILED,
                    checkout_token=token,
                    draft_order=draft_order,
                    error=e,
                )

        return ForwardOutcome(
            WebhookState.FORWARDED,
            checkout_token=token,
            draft_order=draft_order,
            completed_order=completed,
        )

    def dispatch(self, body: bytes) -> asyncio.Task:
        """Start forwarding on a detached task and return its handle."""
        task = asyncio.create_task(self.forward(body))
        self._pending.add(task)
        task.add_done_callback(self._on_forward_done)
        return task

    def _on_forward_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            log_webhook(WebhookState.FORWARD_FAILED, detail="reason=cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unexpected error while forwarding checkout webhook", exc_info=exc)
            log_webhook(WebhookState.FORWARD_FAILED, detail=f"reason={type(exc).__name__}")
            return

        outcome: ForwardOutcome = task.result()
        if outcome.success:
            detail = f"draft_order_id={outcome.draft_order.id}"
            if outcome.draft_order.invoice_url:
                detail += f" invoice_url={outcome.draft_order.invoice_url}"
            if outcome.completed_order is not None:
                detail += " completed=true"
            log_webhook(outcome.state, outcome.checkout_token, detail)
        else:
            detail = f"reason={type(outcome.error).__name__} error={outcome.error.message!r}"
            if outcome.draft_order is not None:
                detail += f" draft_order_id={outcome.draft_order.id}"
            log_webhook(outcome.state, outcome.checkout_token, detail)

    async def drain(self) -> None:
        """Wait for every in-flight forward to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
