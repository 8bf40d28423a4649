"""Tests for checkout -> draft order mapping."""

from __future__ import annotations

import pytest

from checkout_relay.mapper import (
    CHECKOUT_DRAFT_ORDER_TAGS,
    MANUAL_DRAFT_ORDER_NOTE,
    checkout_to_draft_order,
    custom_item_to_line_item,
    manual_request_to_draft_order,
)
from checkout_relay.models import (
    Checkout,
    CustomItemInput,
    CustomLineItem,
    ManualDraftOrderInput,
    VariantLineItem,
)


@pytest.fixture
def checkout() -> Checkout:
    return Checkout.model_validate({
        "token": "abc123",
        "email": "a@b.com",
        "customer": {"id": 42, "email": "a@b.com", "first_name": "Ada", "tags": "vip"},
        "shipping_address": {"address1": "1 Main St", "address2": None, "city": "Springfield"},
        "billing_address": {"address1": "2 Side St", "city": "Shelbyville"},
        "line_items": [
            {
                "variant_id": 111,
                "quantity": 2,
                "title": "Desk",
                "price": "199.00",
                "properties": [
                    {"name": "Material", "value": "Oak"},
                    {"name": "Color", "value": "Red"},
                    {"name": "Material", "value": "Oak"},
                ],
            },
            {"variant_id": 222, "quantity": 1, "properties": None},
        ],
        "total_price": "398.00",
    })


class TestCheckoutToDraftOrder:
    def test_variant_items(self, checkout):
        request = checkout_to_draft_order(checkout)
        payload = request.to_payload()["draft_order"]
        assert payload["line_items"] == [
            {
                "variant_id": 111,
                "quantity": 2,
                "properties": [
                    {"name": "Material", "value": "Oak"},
                    {"name": "Color", "value": "Red"},
                    {"name": "Material", "value": "Oak"},
                ],
            },
            {"variant_id": 222, "quantity": 1, "properties": []},
        ]

    def test_variant_items_never_carry_price_or_title(self, checkout):
        payload = checkout_to_draft_order(checkout).to_payload()["draft_order"]
        for item in payload["line_items"]:
            assert "price" not in item
            assert "title" not in item

    def test_customer_reduced_to_id(self, checkout):
        payload = checkout_to_draft_order(checkout).to_payload()["draft_order"]
        assert payload["customer"] == {"id": 42}

    def test_customer_omitted_when_absent(self, checkout):
        checkout.customer = None
        payload = checkout_to_draft_order(checkout).to_payload()["draft_order"]
        assert "customer" not in payload

    def test_note_tags_and_default_address(self, checkout):
        payload = checkout_to_draft_order(checkout).to_payload()["draft_order"]
        assert payload["note"] == "Created from checkout abc123"
        assert payload["tags"] == CHECKOUT_DRAFT_ORDER_TAGS == "custom-properties,checkout-conversion"
        assert payload["use_customer_default_address"] is True
        assert payload["email"] == "a@b.com"

    def test_addresses_passed_through_verbatim(self, checkout):
        payload = checkout_to_draft_order(checkout).to_payload()["draft_order"]
        assert payload["shipping_address"] == {"address1": "1 Main St", "address2": None, "city": "Springfield"}
        assert payload["billing_address"] == {"address1": "2 Side St", "city": "Shelbyville"}

    def test_empty_checkout_gives_empty_line_items(self):
        request = checkout_to_draft_order(Checkout.model_validate({"token": "t", "line_items": []}))
        assert request.line_items == []
        assert request.to_payload()["draft_order"]["line_items"] == []

    def test_missing_line_items_treated_as_empty(self):
        assert checkout_to_draft_order(Checkout.model_validate({"token": "t", "line_items": None})).line_items == []

    def test_item_without_variant_becomes_custom_item(self):
        checkout = Checkout.model_validate({
            "token": "t",
            "line_items": [{"title": "Engraving", "price": "12.00", "quantity": 1}],
        })
        (item,) = checkout_to_draft_order(checkout).line_items
        assert isinstance(item, CustomLineItem)
        assert item.title == "Engraving"
        assert item.taxable is True

    def test_unpriceable_item_dropped(self):
        checkout = Checkout.model_validate({"token": "t", "line_items": [{"quantity": 1}]})
        assert checkout_to_draft_order(checkout).line_items == []

    def test_mapping_is_idempotent(self, checkout):
        first = checkout_to_draft_order(checkout)
        second = checkout_to_draft_order(checkout)
        assert first == second
        assert first.to_payload() == second.to_payload()

    def test_does_not_mutate_checkout(self, checkout):
        before = checkout.model_dump()
        checkout_to_draft_order(checkout)
        assert checkout.model_dump() == before


class TestCustomItems:
    def test_defaults(self):
        item = custom_item_to_line_item(CustomItemInput(title="Gift wrap", price="5.00"))
        assert item == CustomLineItem(title="Gift wrap", price="5.00", quantity=1, taxable=True, properties=[])

    def test_zero_quantity_defaults_to_one(self):
        assert custom_item_to_line_item(CustomItemInput(title="x", price="1", quantity=0)).quantity == 1

    def test_explicit_values_kept(self):
        item = custom_item_to_line_item(
            CustomItemInput(
                title="Setup fee",
                price=25,
                quantity=3,
                taxable=False,
                properties=[{"name": "Note", "value": "rush"}],
            )
        )
        assert item.quantity == 3
        assert item.taxable is False
        assert [p.name for p in item.properties] == ["Note"]

    def test_custom_items_never_carry_variant_id(self):
        dumped = custom_item_to_line_item(CustomItemInput(title="x", price="1")).model_dump()
        assert "variant_id" not in dumped


class TestManualRequestToDraftOrder:
    def test_merges_variant_then_custom_items(self):
        body = ManualDraftOrderInput.model_validate({
            "lineItems": [{"variant_id": 1, "quantity": 1}],
            "customItems": [{"title": "Gift wrap", "price": "5.00"}],
            "email": "a@b.com",
        })
        request = manual_request_to_draft_order(body)
        assert [type(i) for i in request.line_items] == [VariantLineItem, CustomLineItem]
        assert request.note == MANUAL_DRAFT_ORDER_NOTE
        assert request.tags == "custom-properties"
        assert request.use_customer_default_address is None

    def test_cart_items_alias_and_note(self):
        body = ManualDraftOrderInput.model_validate({
            "cartItems": [{"variant_id": 7, "quantity": 2}],
            "note": "Custom order with properties",
            "customer": {"id": 9, "email": "x@y.z"},
        })
        payload = manual_request_to_draft_order(body).to_payload()["draft_order"]
        assert payload["line_items"][0]["variant_id"] == 7
        assert payload["note"] == "Custom order with properties"
        assert payload["customer"] == {"id": 9}

    def test_camel_case_addresses(self):
        body = ManualDraftOrderInput.model_validate({
            "lineItems": [{"variant_id": 1, "quantity": 1}],
            "shippingAddress": {"city": "Oslo"},
            "billingAddress": {"city": "Bergen"},
        })
        request = manual_request_to_draft_order(body)
        assert request.shipping_address == {"city": "Oslo"}
        assert request.billing_address == {"city": "Bergen"}

    def test_custom_items_ignored_when_disabled(self):
        body = ManualDraftOrderInput.model_validate({"customItems": [{"title": "Gift wrap", "price": "5.00"}]})
        assert manual_request_to_draft_order(body, allow_custom_items=False).line_items == []
