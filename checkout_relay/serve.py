"""FastAPI application factory and entry point.

Run with ``checkout-relay`` or ``uvicorn checkout_relay.serve:create_app --factory``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from checkout_relay import __version__
from checkout_relay.config import Settings
from checkout_relay.draft_orders import router as draft_order_router
from checkout_relay.shopify_client import DraftOrderClient
from checkout_relay.webhooks.forwarding import CheckoutWebhookHandler
from checkout_relay.webhooks.handlers import register_webhook_routes

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Keep uvicorn's per-request access lines out of the audit trail
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the relay app.

    ``http_client`` lets callers supply the transport used for Admin API
    calls (tests pass one backed by ``httpx.MockTransport``).
    """
    settings = settings or Settings()
    if not settings.shop or not settings.access_token:
        logger.warning("SHOP or ACCESS_TOKEN not set, draft order calls will fail")

    client = DraftOrderClient(settings, http_client)
    webhook_handler = CheckoutWebhookHandler(settings, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if webhook_handler.pending_count:
            logger.info("Waiting for %d in-flight forward(s)", webhook_handler.pending_count)
        await webhook_handler.drain()
        await client.aclose()

    app = FastAPI(title="Checkout Relay", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.draft_order_client = client
    app.state.webhook_handler = webhook_handler

    register_webhook_routes(app)
    app.include_router(draft_order_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "shop": settings.shop or None}

    return app


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "checkout_relay.serve:create_app",
        factory=True,
        host="0.0.0.0",
        port=3000,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
