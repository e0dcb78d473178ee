"""Stripe service - Integration with the Stripe API"""

import logging
from typing import Optional

import stripe

from ...config import STRIPE_API_BASE, STRIPE_SECRET_KEY, STRIPE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class StripeError(Exception):
    """Raised when Stripe rejects a request or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class StripeService:
    """Service for Stripe API operations"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.client = None

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; billing endpoints will fail until configured")
        else:
            try:
                self.client = stripe.StripeClient(
                    self.api_key,
                    base_addresses={"api": STRIPE_API_BASE},
                    http_client=stripe.HTTPXClient(timeout=STRIPE_TIMEOUT_SECONDS),
                    max_network_retries=2,
                )
                logger.info(f"Stripe client initialized (base={STRIPE_API_BASE})")
            except Exception as e:
                logger.error(f"Failed to initialize Stripe client: {e}")
                self.client = None

    def is_available(self) -> bool:
        """Check if the Stripe client is available"""
        return self.api_key is not None and self.client is not None

    def _require_client(self):
        if not self.is_available():
            raise StripeError("Stripe client not initialized")
        return self.client

    @staticmethod
    def _wrap_error(action: str, error: stripe.StripeError) -> StripeError:
        message = error.user_message or str(error) or type(error).__name__
        logger.error(f"❌ Stripe {action} failed ({error.http_status}): {message}")
        return StripeError(message, status_code=error.http_status, code=error.code)

    async def create_customer(
        self,
        email: Optional[str],
        name: Optional[str] = None,
        metadata: Optional[dict] = None,
        idempotency_key: Optional[str] = None,
    ) -> dict:
        """Create a customer"""
        client = self._require_client()
        params = {"metadata": metadata or {}}
        if email:
            params["email"] = email
        if name:
            params["name"] = name
        options = {"idempotency_key": idempotency_key} if idempotency_key else {}

        try:
            customer = await client.v1.customers.create_async(params=params, options=options)
        except stripe.StripeError as e:
            raise self._wrap_error("customer creation", e) from e

        logger.info(f"✅ Created Stripe customer {customer.id}")
        return customer.to_dict()

    async def create_checkout_session(self, params: dict) -> dict:
        """Create a hosted checkout session (subscription or one-off payment)"""
        client = self._require_client()
        try:
            session = await client.v1.checkout.sessions.create_async(params=params)
        except stripe.StripeError as e:
            raise self._wrap_error(f"checkout session ({params.get('mode')})", e) from e

        logger.info(f"✅ Created Stripe checkout session {session.id} (mode={params.get('mode')})")
        return session.to_dict()

    async def create_subscription_checkout(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[dict] = None,
        trial_days: Optional[int] = None,
        client_reference_id: Optional[str] = None,
    ) -> dict:
        params = {
            "mode": "subscription",
            "customer": customer_id,
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
            "subscription_data": {"metadata": metadata or {}},
        }
        if client_reference_id:
            params["client_reference_id"] = client_reference_id
        if trial_days:
            params["subscription_data"]["trial_period_days"] = trial_days
        return await self.create_checkout_session(params)

    async def create_payment_checkout(
        self,
        amount_cents: int,
        currency: str,
        product_name: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[dict] = None,
        customer_email: Optional[str] = None,
    ) -> dict:
        params = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": product_name},
                        "unit_amount": amount_cents,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
            "payment_intent_data": {"metadata": metadata or {}},
        }
        if customer_email:
            params["customer_email"] = customer_email
        return await self.create_checkout_session(params)

    async def retrieve_subscription(self, subscription_id: str) -> dict:
        """Fetch the authoritative subscription object"""
        client = self._require_client()
        try:
            subscription = await client.v1.subscriptions.retrieve_async(subscription_id)
        except stripe.StripeError as e:
            raise self._wrap_error(f"subscription retrieval {subscription_id}", e) from e
        return subscription.to_dict()


# Global instance
stripe_service = StripeService()
