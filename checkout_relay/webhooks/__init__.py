"""Checkout webhook intake.

Receives Shopify checkout webhooks, verifies their signature, acknowledges
them and forwards them as draft orders on a detached task.
"""
