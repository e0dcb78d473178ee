"""Billing routers - Subscription and invoice payment endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from .payment_service import PaymentService
from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    FactureCheckoutResponse,
    SubscriptionStatusResponse,
    WebhookResponse,
)
from .subscription_service import SubscriptionService
from .webhooks import StripeWebhookHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription", tags=["Subscription"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


def get_webhook_handler(db: Session = Depends(get_db)) -> StripeWebhookHandler:
    return StripeWebhookHandler(db)


# ============================================================================
# SUBSCRIPTION
# ============================================================================


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    ref: Optional[str] = Query(None),
    user: Profile = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Subscription state of the caller's entreprise (or of `ref` for admins)"""
    return service.get_status(user, ref)


@router.post("/webhook", response_model=WebhookResponse)
async def subscription_webhook(
    request: Request, handler: StripeWebhookHandler = Depends(get_webhook_handler)
):
    """Stripe webhook (signature verified against the raw body)"""
    return await handler.handle_request(request)


@router.post("/{slug}", response_model=CheckoutResponse)
async def create_subscription_checkout(
    slug: str,
    body: CheckoutRequest,
    user: Profile = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a subscription checkout session"""
    return await service.create_checkout(slug, body, user)


# ============================================================================
# PAYMENTS
# ============================================================================


@payments_router.post("/webhook", response_model=WebhookResponse)
async def payments_webhook(
    request: Request, handler: StripeWebhookHandler = Depends(get_webhook_handler)
):
    """Stripe webhook for invoice payments and subscriptions"""
    return await handler.handle_request(request)


@payments_router.post("/subscribe/{slug}", response_model=CheckoutResponse)
async def create_trial_subscription_checkout(
    slug: str,
    body: CheckoutRequest,
    user: Profile = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a subscription checkout session with the trial period"""
    return await service.create_trial_checkout(slug, body, user)


@payments_router.post("/factures/{facture_id}/session", response_model=FactureCheckoutResponse)
async def create_facture_checkout(
    facture_id: int,
    user: Profile = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a payment session for an invoice and email the link to the client"""
    return await service.create_facture_checkout(facture_id, user)
