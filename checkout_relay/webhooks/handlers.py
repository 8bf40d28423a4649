"""Webhook HTTP handlers: FastAPI routes for inbound checkout webhooks.

Each request:
1. Reads raw body (needed for HMAC verification, before any JSON parsing)
2. Verifies the Shopify signature
3. Returns 200 "Webhook received" immediately
4. Starts forwarding after the response has been sent (detached task)

Security contract:
- Return 401 only for signature failures, with no verification details
- Never report forwarding errors to the webhook sender
- Log all webhook activity for audit trail
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.background import BackgroundTask

from checkout_relay.webhooks.forwarding import CheckoutWebhookHandler, WebhookState

logger = logging.getLogger(__name__)


async def _handle_checkout_webhook(request: Request) -> Response:
    handler: CheckoutWebhookHandler = request.app.state.webhook_handler

    body = await request.body()

    if handler.authenticate(body, request.headers) is WebhookState.REJECTED:
        return JSONResponse({"error": "Invalid webhook signature"}, status_code=401)

    async def start_forwarding() -> None:
        handler.dispatch(body)

    # The background callback runs once the response is sent; it only starts
    # the forward and returns, so the transport never waits on Shopify.
    return PlainTextResponse(
        "Webhook received",
        status_code=200,
        background=BackgroundTask(start_forwarding),
    )


def register_webhook_routes(app: FastAPI) -> None:
    """Register checkout webhook routes on the FastAPI app."""

    @app.post("/webhooks/checkout/create")
    async def checkout_create_webhook(request: Request):
        """Receive Shopify checkouts/create webhooks (signature-verified)."""
        return await _handle_checkout_webhook(request)

    @app.post("/api/checkout")
    async def checkout_webhook(request: Request):
        """Same webhook, serverless-style path."""
        return await _handle_checkout_webhook(request)

    logger.info("Webhook routes registered: /webhooks/checkout/create, /api/checkout")
