"""Checkout relay configuration."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the checkout relay."""

    # Shopify Admin API
    shop: str = ""
    access_token: str = ""
    shopify_api_version: str = "2025-10"
    request_timeout: float = 30.0

    # Webhook verification. An unset secret skips verification unless the
    # skip flag is turned off, in which case every webhook is rejected.
    shopify_webhook_secret: str = ""
    skip_verification_if_secret_unset: bool = True

    # Draft order behaviour
    auto_complete_draft_order: bool = False
    custom_items_enabled: bool = True
    draft_order_response_fields: Literal["invoice_url", "order_status_url", "both"] = "both"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def admin_api_base_url(self) -> str:
        return f"https://{self.shop}/admin/api/{self.shopify_api_version}"
