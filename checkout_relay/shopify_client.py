"""Shopify Admin REST API client for draft orders.

One attempt per call: no retry, backoff or circuit breaking. The caller
decides what to do with a failure.

Failure contract:
- Non-2xx response -> DownstreamRejection(status_code, body) with the body verbatim
- No response at all (connect error, timeout) -> DownstreamUnreachable
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from checkout_relay.config import Settings
from checkout_relay.errors import DownstreamRejection, DownstreamUnreachable
from checkout_relay.models import DraftOrder, DraftOrderRequest

logger = logging.getLogger(__name__)


def _response_body(response: httpx.Response) -> Any:
    """Upstream body for diagnostics: parsed JSON when possible, else text."""
    try:
        return response.json()
    except ValueError:
        return response.text


class DraftOrderClient:
    """Create, read, update and complete draft orders for one shop."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.request_timeout)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> DraftOrderClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _url(self, path: str) -> str:
        return f"{self._settings.admin_api_base_url}/{path}"

    def _headers(self) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": self._settings.access_token,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, payload: dict | None = None) -> DraftOrder:
        """Issue one Admin API call and parse the ``draft_order`` it returns."""
        try:
            response = await self._http.request(
                method,
                self._url(path),
                json=payload,
                headers=self._headers(),
                timeout=self._settings.request_timeout,
            )
        except httpx.TransportError as e:
            logger.error("Shopify API unreachable: %s %s (%s: %s)", method, path, type(e).__name__, e)
            raise DownstreamUnreachable(f"{method} {path} failed: {type(e).__name__}") from e

        body = _response_body(response)
        if not response.is_success:
            logger.error("Shopify API error: %s %s -> %d %s", method, path, response.status_code, body)
            raise DownstreamRejection(response.status_code, body)

        try:
            return DraftOrder.model_validate(body["draft_order"])
        except (KeyError, TypeError, ValidationError):
            logger.error("Unexpected Shopify response: %s %s -> %d %s", method, path, response.status_code, body)
            raise DownstreamRejection(response.status_code, body) from None

    async def create_draft_order(self, request: DraftOrderRequest) -> DraftOrder:
        draft_order = await self._request("POST", "draft_orders.json", request.to_payload())
        logger.info("Draft order created: %s", draft_order.id)
        return draft_order

    async def complete_draft_order(self, draft_order_id: int | str) -> DraftOrder:
        """Convert a draft order into a real order."""
        draft_order = await self._request("PUT", f"draft_orders/{draft_order_id}/complete.json", {})
        logger.info("Draft order completed: %s", draft_order.id)
        return draft_order

    async def get_draft_order(self, draft_order_id: int | str) -> DraftOrder:
        return await self._request("GET", f"draft_orders/{draft_order_id}.json")

    async def update_draft_order(self, draft_order_id: int | str, fields: dict[str, Any]) -> DraftOrder:
        """Overwrite the given draft order fields (e.g. the full ``line_items`` list)."""
        return await self._request(
            "PUT", f"draft_orders/{draft_order_id}.json", {"draft_order": fields}
        )
