"""Draft order API routes: direct draft order creation, bypassing the webhook.

Unlike the webhook path these endpoints are synchronous: Shopify errors are
returned to the caller as an HTTP status plus JSON body.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from checkout_relay.config import Settings
from checkout_relay.errors import (
    DownstreamRejection,
    DownstreamUnreachable,
    RelayError,
    ValidationFailure,
)
from checkout_relay.mapper import custom_item_to_line_item, manual_request_to_draft_order
from checkout_relay.models import CustomItemInput, DraftOrder, ManualDraftOrderInput
from checkout_relay.shopify_client import DraftOrderClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["draft-orders"])

ModelT = TypeVar("ModelT", bound=BaseModel)


async def _parse_body(request: Request, model: type[ModelT]) -> ModelT:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationFailure("Request body must be valid JSON") from None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ValidationFailure(f"Invalid request body: {', '.join(fields) or 'body'}") from None


def _error_response(error: RelayError, message: str) -> JSONResponse:
    """Map a relay error onto the status and body the caller sees."""
    if isinstance(error, ValidationFailure):
        return JSONResponse({"error": error.message}, status_code=400)
    if isinstance(error, DownstreamRejection):
        # A 2xx with an unreadable body is still a failure for the caller
        status = error.status_code if error.status_code >= 400 else 502
        return JSONResponse({"error": message, "details": error.body}, status_code=status)
    if isinstance(error, DownstreamUnreachable):
        return JSONResponse({"error": message}, status_code=502)
    logger.error("Unhandled relay error: %s", error)
    return JSONResponse({"error": message}, status_code=500)


def draft_order_summary(draft_order: DraftOrder, settings: Settings) -> dict[str, Any]:
    """Response body for a created draft order; URL fields follow configuration."""
    summary: dict[str, Any] = {"success": True, "draft_order_id": draft_order.id}
    fields = settings.draft_order_response_fields
    if fields in ("invoice_url", "both"):
        summary["invoice_url"] = draft_order.invoice_url
    if fields in ("order_status_url", "both"):
        summary["order_status_url"] = draft_order.order_status_url
    return summary


@router.post("/api/draft-orders")
@router.post("/api/create-draft-order")
async def create_draft_order(request: Request):
    """Create a draft order from variant items and/or custom items."""
    settings: Settings = request.app.state.settings
    client: DraftOrderClient = request.app.state.draft_order_client

    try:
        body = await _parse_body(request, ManualDraftOrderInput)
        if body.custom_items and not settings.custom_items_enabled:
            logger.warning("Ignoring %d custom item(s): custom items are disabled", len(body.custom_items))

        draft_request = manual_request_to_draft_order(body, settings.custom_items_enabled)
        if not draft_request.line_items:
            raise ValidationFailure("No line items provided")

        draft_order = await client.create_draft_order(draft_request)
    except RelayError as e:
        return _error_response(e, "Failed to create draft order")

    return JSONResponse(draft_order_summary(draft_order, settings), status_code=201)


@router.post("/api/draft-orders/{draft_order_id}/custom-items")
async def add_custom_item(draft_order_id: str, request: Request):
    """Append a custom (title/price) item to an existing draft order.

    Shopify replaces the whole line item list on update, so the current
    items are read first and written back with the new one appended.
    """
    settings: Settings = request.app.state.settings
    client: DraftOrderClient = request.app.state.draft_order_client

    try:
        if not settings.custom_items_enabled:
            raise ValidationFailure("Custom items are disabled")
        item = await _parse_body(request, CustomItemInput)

        existing = await client.get_draft_order(draft_order_id)
        line_items = [
            *existing.line_items,
            custom_item_to_line_item(item).model_dump(mode="json"),
        ]
        updated = await client.update_draft_order(draft_order_id, {"line_items": line_items})
    except RelayError as e:
        return _error_response(e, "Failed to add custom item")

    logger.info("Custom item '%s' added to draft order %s", item.title, updated.id)
    return {"draft_order": updated.model_dump(mode="json")}
