"""Shared fixtures for the checkout relay test suite."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from checkout_relay.config import Settings
from checkout_relay.serve import create_app
from checkout_relay.webhooks.verification import sign

SHOP = "test-shop.myshopify.com"
WEBHOOK_SECRET = "shopify-test-secret"


def draft_order_json(draft_order_id: int = 1001, **fields) -> dict:
    body = {
        "id": draft_order_id,
        "status": "open",
        "invoice_url": f"https://{SHOP}/invoices/{draft_order_id}",
        "order_status_url": f"https://{SHOP}/orders/{draft_order_id}/status",
        "line_items": [],
    }
    body.update(fields)
    return {"draft_order": body}


class ShopifyStub:
    """Fake Shopify Admin API for httpx.MockTransport.

    Records every request. Queued responses (or exceptions) are returned in
    order; once the queue is empty a successful draft order is returned.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.queued: list[httpx.Response | Exception] = []

    def queue(self, *responses: httpx.Response | Exception) -> None:
        self.queued.extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.queued:
            response = self.queued.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        if request.url.path.endswith("/complete.json"):
            return httpx.Response(200, json=draft_order_json(status="completed"))
        if request.method == "POST":
            return httpx.Response(201, json=draft_order_json())
        return httpx.Response(200, json=draft_order_json())

    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        shop=SHOP,
        access_token="shpat_test",
        shopify_webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def shopify() -> ShopifyStub:
    return ShopifyStub()


@pytest.fixture
def http_client(shopify: ShopifyStub) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(shopify))


@pytest.fixture
def app(settings, http_client):
    return create_app(settings, http_client)


@pytest.fixture
def client(app):
    """TestClient for request/response checks (no forwarding assertions)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def signed():
    """Factory returning webhook headers for a raw body."""

    def _signed(body: bytes, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
        return {
            "X-Shopify-Hmac-SHA256": sign(body, secret),
            "X-Shopify-Topic": "checkouts/create",
            "Content-Type": "application/json",
        }

    return _signed
