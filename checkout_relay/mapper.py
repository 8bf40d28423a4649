"""Checkout -> draft order mapping.

Pure functions only: no I/O, no logging, same input gives the same output.

Mapping contract:
- Variant items keep variant_id, quantity and properties; title/price are dropped
- Items without a variant but with title and price become custom items
- Customer is reduced to its id, never forwarded wholesale
- Properties are passed through in order, unvalidated
"""

from __future__ import annotations

from typing import Union

from checkout_relay.models import (
    Checkout,
    CheckoutLineItem,
    Customer,
    CustomerRef,
    CustomItemInput,
    CustomLineItem,
    DraftOrderRequest,
    ManualDraftOrderInput,
    VariantLineItem,
)

# Provenance labels on draft orders created from checkout webhooks
CHECKOUT_DRAFT_ORDER_TAGS = "custom-properties,checkout-conversion"

# Labels and default note for draft orders created through the manual endpoint
MANUAL_DRAFT_ORDER_TAGS = "custom-properties"
MANUAL_DRAFT_ORDER_NOTE = "Manual draft order creation"

_NOTE_TEMPLATE = "Created from checkout {token}"

OutboundLineItem = Union[VariantLineItem, CustomLineItem]


def checkout_note(token: str | None) -> str:
    return _NOTE_TEMPLATE.format(token=token or "")


def custom_item_to_line_item(item: CustomItemInput) -> CustomLineItem:
    """Apply the custom item defaults: quantity 1, taxable, no properties."""
    return CustomLineItem(
        title=item.title,
        price=item.price,
        quantity=item.quantity or 1,
        taxable=True if item.taxable is None else item.taxable,
        properties=list(item.properties or []),
    )


def map_line_item(item: CheckoutLineItem) -> OutboundLineItem | None:
    """Map one storefront line item to its outbound shape.

    Returns None for an item that has neither a variant nor a title/price
    pair, since Shopify cannot price it.
    """
    if item.variant_id is not None:
        return VariantLineItem(
            variant_id=item.variant_id,
            quantity=item.quantity,
            properties=list(item.properties),
        )
    if item.title and item.price is not None:
        return CustomLineItem(
            title=item.title,
            price=item.price,
            quantity=item.quantity,
            properties=list(item.properties),
        )
    return None


def map_line_items(items: list[CheckoutLineItem]) -> list[OutboundLineItem]:
    mapped = (map_line_item(item) for item in items)
    return [item for item in mapped if item is not None]


def _customer_ref(customer: Customer | None) -> CustomerRef | None:
    if customer is None or customer.id is None:
        return None
    return CustomerRef(id=customer.id)


def checkout_to_draft_order(checkout: Checkout) -> DraftOrderRequest:
    """Build the draft order request for a checkout webhook.

    An empty checkout yields an empty line item list; the Admin API rejects
    it and the error surfaces from the client, not from here.
    """
    return DraftOrderRequest(
        line_items=map_line_items(checkout.line_items),
        customer=_customer_ref(checkout.customer),
        email=checkout.email,
        shipping_address=checkout.shipping_address,
        billing_address=checkout.billing_address,
        note=checkout_note(checkout.token),
        tags=CHECKOUT_DRAFT_ORDER_TAGS,
        use_customer_default_address=True,
    )


def manual_request_to_draft_order(
    request: ManualDraftOrderInput,
    allow_custom_items: bool = True,
) -> DraftOrderRequest:
    """Build the draft order request for a direct (non-webhook) caller.

    Variant items come first, followed by the custom items in the order
    given. Custom items are ignored when ``allow_custom_items`` is False.
    """
    line_items = map_line_items(request.line_items or [])
    if allow_custom_items:
        line_items.extend(custom_item_to_line_item(item) for item in request.custom_items or [])

    return DraftOrderRequest(
        line_items=line_items,
        customer=_customer_ref(request.customer),
        email=request.email,
        shipping_address=request.shipping_address,
        billing_address=request.billing_address,
        note=request.note or MANUAL_DRAFT_ORDER_NOTE,
        tags=MANUAL_DRAFT_ORDER_TAGS,
    )
