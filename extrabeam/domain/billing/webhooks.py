"""Stripe webhook ingestion - signature check, event dispatch and error mapping"""

import json
import logging

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ...config import STRIPE_WEBHOOK_SECRET
from ...webhook_security import verify_stripe_webhook
from .payment_service import PaymentService
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

INVOICE_EVENTS = (
    "invoice.paid",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
    "invoice.payment_action_required",
)


class StripeWebhookHandler:
    """Routes verified Stripe events to the subscription and payment services"""

    def __init__(self, db: Session):
        self.db = db
        self.subscriptions = SubscriptionService(db)
        self.payments = PaymentService(db)

    async def handle_request(self, request: Request) -> dict:
        _, raw_body = await verify_stripe_webhook(request, STRIPE_WEBHOOK_SECRET)

        try:
            event = json.loads(raw_body)
            return await self.process_event(event)
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Stripe webhook processing failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Webhook processing failed") from e

    async def process_event(self, event: dict) -> dict:
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}
        logger.info(f"📥 Stripe event {event.get('id')} ({event_type})")

        metadata = obj.get("metadata") or {}

        if event_type == "checkout.session.completed":
            if metadata.get("facture_id"):
                return await self.payments.handle_checkout_paid(obj)
            if obj.get("mode") == "subscription":
                return await self.subscriptions.handle_checkout_completed(obj)
            logger.info(f"Checkout session {obj.get('id')} has nothing to reconcile, ignoring")
            return {"received": True}

        if event_type.startswith("customer.subscription."):
            return await self.subscriptions.handle_subscription_event(obj)

        if event_type in INVOICE_EVENTS:
            return await self.subscriptions.handle_invoice_event(obj)

        if event_type == "payment_intent.payment_failed" and metadata.get("facture_id"):
            return await self.payments.handle_payment_failed(obj)

        logger.info(f"Unhandled Stripe event type: {event_type}")
        return {"received": True}
