"""Billing domain - Subscriptions, invoice payments and Stripe webhooks"""

from .router import payments_router, router

__all__ = ["router", "payments_router"]
