"""Subscription service - Checkout, status and vendor reconciliation for entreprise subscriptions"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import (
    assert_can_access_entreprise,
    find_entreprise,
    find_entreprise_for_user,
    is_subscription_active,
    normalize_subscription_status,
)
from ...config import APP_URL, STRIPE_PRICE_ANNUAL, STRIPE_PRICE_MONTHLY, SUBSCRIPTION_TRIAL_DAYS
from ...models import Entreprise, Profile
from .repository import BillingRepository
from .schemas import CheckoutRequest
from .stripe_service import StripeError, stripe_service

logger = logging.getLogger(__name__)


def get_price_id(plan: str) -> Optional[str]:
    """Stripe price configured for a plan"""
    return {"monthly": STRIPE_PRICE_MONTHLY, "annual": STRIPE_PRICE_ANNUAL}.get(plan)


def plan_for_price_id(price_id: Optional[str]) -> Optional[str]:
    if not price_id:
        return None
    if price_id == STRIPE_PRICE_MONTHLY:
        return "monthly"
    if price_id == STRIPE_PRICE_ANNUAL:
        return "annual"
    return None


def _first_item(subscription: dict) -> dict:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def subscription_price_id(subscription: dict) -> Optional[str]:
    return (_first_item(subscription).get("price") or {}).get("id")


def subscription_period_end(subscription: dict) -> Optional[datetime]:
    """current_period_end of the subscription, or of its first item on newer API versions"""
    timestamp = subscription.get("current_period_end") or _first_item(subscription).get(
        "current_period_end"
    )
    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).replace(tzinfo=None)


def build_status(entreprise: Entreprise, now: Optional[datetime] = None) -> dict:
    status = normalize_subscription_status(entreprise.subscription_status)
    return {
        "status": status,
        "plan": entreprise.subscription_plan,
        "periodEnd": entreprise.subscription_period_end,
        "isTrial": status == "trialing",
        "isActive": is_subscription_active(status, entreprise.subscription_period_end, now),
    }


class SubscriptionService:
    """Service for entreprise subscriptions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def get_or_create_customer(self, entreprise: Entreprise) -> str:
        """Stripe customer of the entreprise, created and persisted on first use"""
        if entreprise.stripe_customer_id:
            return entreprise.stripe_customer_id

        customer = await stripe_service.create_customer(
            email=entreprise.email or (entreprise.owner.email if entreprise.owner else None),
            name=entreprise.display_name,
            metadata={"entreprise_id": str(entreprise.id), "slug": entreprise.slug},
            idempotency_key=f"entreprise-{entreprise.id}-customer",
        )
        self.repo.set_stripe_customer_id(self.db, entreprise, customer["id"])
        logger.info(f"✅ Stored Stripe customer {customer['id']} for entreprise {entreprise.id}")
        return customer["id"]

    async def create_checkout(
        self,
        slug: str,
        request: CheckoutRequest,
        user: Profile,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
        trial_days: Optional[int] = None,
    ) -> dict:
        """Create a subscription checkout session for an entreprise the user owns"""
        entreprise = find_entreprise(self.db, slug)
        assert_can_access_entreprise(user, entreprise)

        if not stripe_service.is_available():
            raise HTTPException(status_code=503, detail="Billing service temporarily unavailable")

        price_id = get_price_id(request.plan)
        if not price_id:
            logger.error(f"❌ No Stripe price configured for plan {request.plan}")
            raise HTTPException(status_code=500, detail="Plan not configured")

        if (
            request.referral_code
            and not entreprise.referred_by
            and request.referral_code != entreprise.referral_code
        ):
            self.repo.set_referred_by(self.db, entreprise, request.referral_code)

        metadata = {
            "entreprise_id": str(entreprise.id),
            "slug": entreprise.slug,
            "plan": request.plan,
            "intent": request.intent,
            "user_id": user.id,
            "referral_code": entreprise.referred_by,
        }

        try:
            customer_id = await self.get_or_create_customer(entreprise)
            session = await stripe_service.create_subscription_checkout(
                customer_id=customer_id,
                price_id=price_id,
                success_url=success_url
                or f"{APP_URL}/entreprise/{entreprise.slug}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=cancel_url or f"{APP_URL}/entreprise/{entreprise.slug}/subscription/canceled",
                metadata=metadata,
                trial_days=trial_days,
                client_reference_id=str(entreprise.id),
            )
        except StripeError as e:
            logger.error(f"Failed to create checkout session for entreprise {entreprise.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create checkout session") from e

        logger.info(f"✅ Created checkout session for entreprise {entreprise.id}: {session.get('id')}")
        return {"url": session.get("url"), "sessionId": session.get("id")}

    async def create_trial_checkout(self, slug: str, request: CheckoutRequest, user: Profile) -> dict:
        """Checkout variant used by the payments area: trial period and /abonnement return pages"""
        return await self.create_checkout(
            slug,
            request,
            user,
            success_url=f"{APP_URL}/abonnement/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{APP_URL}/abonnement/cancel",
            trial_days=SUBSCRIPTION_TRIAL_DAYS,
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self, user: Profile, ref: Optional[str] = None) -> dict:
        entreprise = find_entreprise_for_user(self.db, user, ref)
        assert_can_access_entreprise(user, entreprise)
        return build_status(entreprise)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def resolve_entreprise(
        self, metadata: Optional[dict], customer_id: Optional[str]
    ) -> Optional[Entreprise]:
        """Correlate a vendor object with an entreprise: metadata first, then customer id"""
        entreprise_id = (metadata or {}).get("entreprise_id")
        if entreprise_id:
            try:
                entreprise = self.repo.get_entreprise_by_id(self.db, int(entreprise_id))
            except (TypeError, ValueError):
                entreprise = None
            if not entreprise:
                logger.warning(f"⚠️ Webhook references unknown entreprise {entreprise_id}")
                raise HTTPException(status_code=404, detail="Entreprise introuvable")
            return entreprise

        if customer_id:
            return self.repo.get_entreprise_by_stripe_customer_id(self.db, customer_id)
        return None

    async def reconcile(
        self,
        entreprise: Entreprise,
        subscription_id: str,
        plan_hint: Optional[str] = None,
    ) -> Entreprise:
        """
        Overwrite the cached subscription columns from the current vendor object.
        The subscription is re-fetched so redelivered or reordered events all
        converge on the vendor's latest state.
        """
        subscription = await stripe_service.retrieve_subscription(subscription_id)

        plan = (
            plan_hint
            or (subscription.get("metadata") or {}).get("plan")
            or plan_for_price_id(subscription_price_id(subscription))
            or entreprise.subscription_plan
        )
        customer = subscription.get("customer")
        if isinstance(customer, dict):
            customer = customer.get("id")

        updated = self.repo.update_entreprise_subscription(
            self.db,
            entreprise,
            status=subscription.get("status"),
            plan=plan,
            period_end=subscription_period_end(subscription),
            stripe_customer_id=customer,
            stripe_subscription_id=subscription.get("id") or subscription_id,
        )
        logger.info(
            f"✅ Entreprise {entreprise.id} subscription synced: "
            f"status={updated.subscription_status}, plan={updated.subscription_plan}"
        )
        return updated

    def credit_referral(self, entreprise: Entreprise, code: Optional[str]) -> bool:
        """Credit the referrer once per referred entreprise"""
        code = code or entreprise.referred_by
        if not code or entreprise.referral_credited_at is not None:
            return False

        referrer = self.repo.get_entreprise_by_referral_code(self.db, code)
        if not referrer or referrer.id == entreprise.id:
            logger.warning(f"⚠️ Referral code {code} does not match another entreprise")
            return False

        self.repo.credit_referrer(self.db, entreprise, referrer)
        logger.info(f"🎁 Referral credited to entreprise {referrer.id} for {entreprise.id}")
        return True

    async def handle_checkout_completed(self, session: dict) -> dict:
        metadata = session.get("metadata") or {}
        entreprise = self.resolve_entreprise(metadata, session.get("customer"))
        if not entreprise:
            logger.warning(f"⚠️ Checkout session {session.get('id')} has no matching entreprise, ignoring")
            return {"received": True}

        subscription_id = session.get("subscription")
        if not subscription_id:
            logger.warning(f"⚠️ Checkout session {session.get('id')} has no subscription, ignoring")
            return {"received": True}

        await self.reconcile(entreprise, subscription_id, metadata.get("plan"))
        self.credit_referral(entreprise, metadata.get("referral_code"))
        return {"received": True}

    async def handle_subscription_event(self, subscription: dict) -> dict:
        entreprise = self.resolve_entreprise(subscription.get("metadata"), subscription.get("customer"))
        if not entreprise:
            logger.warning(f"⚠️ Subscription {subscription.get('id')} has no matching entreprise, ignoring")
            return {"received": True}

        await self.reconcile(entreprise, subscription["id"])
        return {"received": True}

    async def handle_invoice_event(self, invoice: dict) -> dict:
        subscription_id = invoice.get("subscription")
        parent = invoice.get("parent") or {}
        details = parent.get("subscription_details") or invoice.get("subscription_details") or {}
        if not subscription_id:
            subscription_id = details.get("subscription")
        if not subscription_id:
            logger.info(f"Invoice {invoice.get('id')} is not tied to a subscription, ignoring")
            return {"received": True}

        entreprise = self.resolve_entreprise(details.get("metadata"), invoice.get("customer"))
        if not entreprise:
            logger.warning(f"⚠️ Invoice {invoice.get('id')} has no matching entreprise, ignoring")
            return {"received": True}

        await self.reconcile(entreprise, subscription_id)
        return {"received": True}
