"""Request and response bodies exchanged with the storefront and the Admin API.

All of these are transient: they live for the duration of one request and
are never stored.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


class LineItemProperty(BaseModel):
    """Custom attribute attached to a line item (e.g. a material selection)."""

    name: str
    value: Any = None


class Customer(BaseModel):
    id: Union[int, str, None] = None


class CheckoutLineItem(BaseModel):
    """One product line as the storefront sends it.

    Checkouts carry ``title`` and ``price`` for catalog items too; they are
    only forwarded for items without a ``variant_id``.
    """

    variant_id: Union[int, str, None] = None
    quantity: int = Field(ge=1)
    properties: list[LineItemProperty] = Field(default_factory=list)
    title: str | None = None
    price: Union[str, int, float, None] = None

    @field_validator("properties", mode="before")
    @classmethod
    def properties_default(cls, value: Any) -> Any:
        return _none_to_list(value)


class Checkout(BaseModel):
    """Inbound checkout webhook body. Unknown fields are ignored."""

    token: str | None = None
    email: str | None = None
    customer: Customer | None = None
    shipping_address: dict[str, Any] | None = None
    billing_address: dict[str, Any] | None = None
    line_items: list[CheckoutLineItem] = Field(default_factory=list)

    @field_validator("line_items", mode="before")
    @classmethod
    def line_items_default(cls, value: Any) -> Any:
        return _none_to_list(value)


class CustomItemInput(BaseModel):
    """Ad hoc item supplied by a direct caller; defaults are applied by the mapper."""

    title: str
    price: Union[str, int, float]
    quantity: int | None = None
    taxable: bool | None = None
    properties: list[LineItemProperty] | None = None


class ManualDraftOrderInput(BaseModel):
    """Body of the manual draft-order endpoint (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    line_items: list[CheckoutLineItem] | None = Field(
        default=None, validation_alias=AliasChoices("lineItems", "cartItems", "line_items")
    )
    custom_items: list[CustomItemInput] | None = Field(
        default=None, validation_alias=AliasChoices("customItems", "custom_items")
    )
    customer: Customer | None = None
    email: str | None = None
    shipping_address: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("shippingAddress", "shipping_address")
    )
    billing_address: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("billingAddress", "billing_address")
    )
    note: str | None = None


# ── Outbound ──────────────────────────────────────────────────────────────


class VariantLineItem(BaseModel):
    """Catalog line item: identified by variant, priced by Shopify."""

    model_config = ConfigDict(extra="forbid")

    variant_id: Union[int, str]
    quantity: int
    properties: list[LineItemProperty] = Field(default_factory=list)


class CustomLineItem(BaseModel):
    """Ad hoc line item: carries its own title and price, no variant."""

    model_config = ConfigDict(extra="forbid")

    title: str
    price: Union[str, int, float]
    quantity: int = 1
    taxable: bool = True
    properties: list[LineItemProperty] = Field(default_factory=list)


class CustomerRef(BaseModel):
    id: Union[int, str]


class DraftOrderRequest(BaseModel):
    line_items: list[Union[VariantLineItem, CustomLineItem]] = Field(default_factory=list)
    customer: CustomerRef | None = None
    email: str | None = None
    shipping_address: dict[str, Any] | None = None
    billing_address: dict[str, Any] | None = None
    note: str | None = None
    tags: str | None = None
    use_customer_default_address: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        """Admin API body: ``{"draft_order": {...}}`` without unset top-level fields.

        Only top-level ``None`` values are dropped so addresses and property
        values reach Shopify exactly as received.
        """
        fields = self.model_dump(mode="json")
        return {"draft_order": {k: v for k, v in fields.items() if v is not None}}


class DraftOrder(BaseModel):
    """Draft order as returned by the Admin API (extra fields retained)."""

    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    invoice_url: str | None = None
    order_status_url: str | None = None
    status: str | None = None
    line_items: list[dict[str, Any]] = Field(default_factory=list)
