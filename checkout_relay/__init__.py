"""Checkout relay: turns storefront checkout webhooks into Shopify draft orders."""

__version__ = "0.1.0"
