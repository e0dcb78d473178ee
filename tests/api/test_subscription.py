"""API tests for subscription checkout, status and Stripe webhook reconciliation."""

from datetime import datetime, timedelta

import pytest

from extrabeam.domain.billing.stripe_service import StripeError
from tests.conftest import (
    auth_headers,
    create_entreprise,
    create_profile,
    signed_headers,
    stripe_event,
    subscription_object,
)

pytestmark = pytest.mark.api


# =============================================================================
# CHECKOUT
# =============================================================================


class TestSubscriptionCheckout:
    def test_creates_checkout_session(self, client, db_session, owner, entreprise, stripe_mock):
        response = client.post(
            "/api/subscription/jean-dupont",
            json={"plan": "annual", "intent": "subscribe"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://checkout.stripe.test/cs_sub_1",
            "sessionId": "cs_sub_1",
        }

        kwargs = stripe_mock["create_subscription_checkout"].call_args.kwargs
        assert kwargs["customer_id"] == "cus_new"
        assert kwargs["price_id"] == "price_annual"
        assert kwargs["metadata"]["entreprise_id"] == str(entreprise.id)
        assert kwargs["metadata"]["plan"] == "annual"
        assert kwargs["metadata"]["intent"] == "subscribe"
        assert kwargs["success_url"].startswith(
            "https://app.extrabeam.test/entreprise/jean-dupont/subscription/success"
        )
        assert kwargs["cancel_url"] == "https://app.extrabeam.test/entreprise/jean-dupont/subscription/canceled"

    def test_customer_is_created_once(self, client, db_session, owner, entreprise, stripe_mock):
        for _ in range(2):
            response = client.post(
                "/api/subscription/jean-dupont", json={"plan": "monthly"}, headers=auth_headers(owner)
            )
            assert response.status_code == 200

        assert stripe_mock["create_customer"].await_count == 1
        db_session.expire_all()
        assert entreprise.stripe_customer_id == "cus_new"

    def test_existing_customer_is_reused(self, client, db_session, owner, entreprise, stripe_mock):
        entreprise.stripe_customer_id = "cus_existing"
        db_session.commit()

        client.post("/api/subscription/jean-dupont", json={"plan": "monthly"}, headers=auth_headers(owner))

        stripe_mock["create_customer"].assert_not_awaited()
        assert stripe_mock["create_subscription_checkout"].call_args.kwargs["customer_id"] == "cus_existing"

    def test_referral_code_is_stored_once(self, client, db_session, owner, entreprise, stripe_mock):
        headers = auth_headers(owner)
        client.post("/api/subscription/jean-dupont", json={"referral_code": "PARRAIN1"}, headers=headers)
        client.post("/api/subscription/jean-dupont", json={"referral_code": "AUTRE"}, headers=headers)

        db_session.expire_all()
        assert entreprise.referred_by == "PARRAIN1"
        metadata = stripe_mock["create_subscription_checkout"].call_args.kwargs["metadata"]
        assert metadata["referral_code"] == "PARRAIN1"

    def test_invalid_plan(self, client, db_session, owner, entreprise, stripe_mock):
        response = client.post(
            "/api/subscription/jean-dupont", json={"plan": "weekly"}, headers=auth_headers(owner)
        )

        assert response.status_code == 422

    def test_other_user_is_forbidden(self, client, db_session, entreprise, stripe_mock):
        intruder = create_profile(db_session, "intruder", role="entreprise")

        response = client.post(
            "/api/subscription/jean-dupont", json={"plan": "monthly"}, headers=auth_headers(intruder)
        )

        assert response.status_code == 403
        stripe_mock["create_subscription_checkout"].assert_not_awaited()

    def test_unknown_entreprise(self, client, db_session, owner, stripe_mock):
        response = client.post("/api/subscription/inconnu", json={}, headers=auth_headers(owner))

        assert response.status_code == 404

    def test_vendor_failure_is_500(self, client, db_session, owner, entreprise, stripe_mock):
        stripe_mock["create_subscription_checkout"].side_effect = StripeError("boom", status_code=502)

        response = client.post("/api/subscription/jean-dupont", json={}, headers=auth_headers(owner))

        assert response.status_code == 500

    def test_requires_authentication(self, client, db_session, entreprise, stripe_mock):
        response = client.post("/api/subscription/jean-dupont", json={})

        assert response.status_code in (401, 403)

    def test_trial_checkout_from_payments_area(self, client, db_session, owner, entreprise, stripe_mock):
        response = client.post(
            "/api/payments/subscribe/jean-dupont", json={"plan": "monthly"}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        kwargs = stripe_mock["create_subscription_checkout"].call_args.kwargs
        assert kwargs["trial_days"] == 30
        assert kwargs["success_url"].startswith("https://app.extrabeam.test/abonnement/success")
        assert kwargs["cancel_url"] == "https://app.extrabeam.test/abonnement/cancel"


# =============================================================================
# STATUS
# =============================================================================


class TestSubscriptionStatus:
    def test_active_subscription(self, client, db_session, owner):
        period_end = datetime.utcnow() + timedelta(days=20)
        create_entreprise(db_session, owner, status="active", period_end=period_end, subscription_plan="annual")

        response = client.get("/api/subscription/status", headers=auth_headers(owner))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "active"
        assert body["plan"] == "annual"
        assert body["isActive"] is True
        assert body["isTrial"] is False

    def test_expired_trial_is_inactive(self, client, db_session, owner):
        create_entreprise(db_session, owner, status="trialing", period_end=datetime.utcnow() - timedelta(days=1))

        body = client.get("/api/subscription/status", headers=auth_headers(owner)).json()

        assert body["status"] == "trialing"
        assert body["isTrial"] is True
        assert body["isActive"] is False

    def test_unknown_vendor_status_is_reported_incomplete(self, client, db_session, owner):
        create_entreprise(db_session, owner, status="incomplete_expired")

        body = client.get("/api/subscription/status", headers=auth_headers(owner)).json()

        assert body["status"] == "incomplete"
        assert body["isActive"] is False

    def test_status_of_someone_else_is_forbidden(self, client, db_session, entreprise):
        intruder = create_profile(db_session, "intruder", role="entreprise")

        response = client.get("/api/subscription/status?ref=jean-dupont", headers=auth_headers(intruder))

        assert response.status_code == 403


# =============================================================================
# WEBHOOKS
# =============================================================================


def _post_event(client, payload: bytes, path: str = "/api/subscription/webhook"):
    return client.post(path, content=payload, headers=signed_headers(payload))


def _checkout_session(entreprise, **metadata) -> dict:
    return {
        "id": "cs_sub_1",
        "object": "checkout.session",
        "mode": "subscription",
        "customer": "cus_1",
        "subscription": "sub_1",
        "metadata": {"entreprise_id": str(entreprise.id), **metadata},
    }


class TestSubscriptionWebhook:
    def test_invalid_signature_is_rejected(self, client, db_session, entreprise, stripe_mock):
        payload = stripe_event("checkout.session.completed", _checkout_session(entreprise))

        response = client.post(
            "/api/subscription/webhook",
            content=payload,
            headers=signed_headers(payload, secret="whsec_wrong"),
        )

        assert response.status_code == 401
        stripe_mock["retrieve_subscription"].assert_not_awaited()

    def test_missing_signature_is_rejected(self, client, db_session, entreprise, stripe_mock):
        payload = stripe_event("checkout.session.completed", _checkout_session(entreprise))

        response = client.post("/api/subscription/webhook", content=payload)

        assert response.status_code == 401

    def test_checkout_completed_syncs_subscription(self, client, db_session, entreprise, stripe_mock):
        entreprise.subscription_status = "incomplete"
        db_session.commit()
        period_end = datetime(2031, 3, 1, 12, 0)
        stripe_mock["retrieve_subscription"].return_value = subscription_object(
            status="trialing", price_id="price_monthly", period_end=period_end
        )

        response = _post_event(
            client, stripe_event("checkout.session.completed", _checkout_session(entreprise, plan="annual"))
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        stripe_mock["retrieve_subscription"].assert_awaited_once_with("sub_1")

        db_session.expire_all()
        assert entreprise.subscription_status == "trialing"
        assert entreprise.subscription_plan == "annual"
        assert entreprise.subscription_period_end == period_end
        assert entreprise.stripe_customer_id == "cus_1"
        assert entreprise.stripe_subscription_id == "sub_1"

    def test_redelivery_is_idempotent_and_credits_referral_once(
        self, client, db_session, entreprise, stripe_mock
    ):
        parrain = create_profile(db_session, "parrain", role="entreprise")
        referrer = create_entreprise(db_session, parrain, slug="parrain", referral_code="PARRAIN1")
        payload = stripe_event(
            "checkout.session.completed",
            _checkout_session(entreprise, plan="annual", referral_code="PARRAIN1"),
        )

        first = _post_event(client, payload)
        db_session.expire_all()
        snapshot = (
            entreprise.subscription_status,
            entreprise.subscription_plan,
            entreprise.subscription_period_end,
        )
        second = _post_event(client, payload)

        assert first.status_code == second.status_code == 200
        db_session.expire_all()
        assert (
            entreprise.subscription_status,
            entreprise.subscription_plan,
            entreprise.subscription_period_end,
        ) == snapshot
        assert referrer.referral_rewards_pending == 1
        assert entreprise.referral_credited_at is not None

    def test_stale_event_converges_on_vendor_state(self, client, db_session, entreprise, stripe_mock):
        entreprise.stripe_customer_id = "cus_1"
        db_session.commit()
        stale = subscription_object(status="past_due")
        stripe_mock["retrieve_subscription"].return_value = subscription_object(status="active")

        response = _post_event(client, stripe_event("customer.subscription.updated", stale))

        assert response.status_code == 200
        db_session.expire_all()
        assert entreprise.subscription_status == "active"

    def test_subscription_deleted_by_customer_id(self, client, db_session, entreprise, stripe_mock):
        entreprise.stripe_customer_id = "cus_1"
        db_session.commit()
        stripe_mock["retrieve_subscription"].return_value = subscription_object(status="canceled")

        response = _post_event(
            client, stripe_event("customer.subscription.deleted", subscription_object(status="canceled"))
        )

        assert response.status_code == 200
        db_session.expire_all()
        assert entreprise.subscription_status == "canceled"

    def test_invoice_event_reconciles_subscription(self, client, db_session, entreprise, stripe_mock):
        entreprise.stripe_customer_id = "cus_1"
        db_session.commit()
        stripe_mock["retrieve_subscription"].return_value = subscription_object(status="past_due")
        invoice = {"id": "in_1", "object": "invoice", "customer": "cus_1", "subscription": "sub_1"}

        response = _post_event(client, stripe_event("invoice.payment_failed", invoice))

        assert response.status_code == 200
        db_session.expire_all()
        assert entreprise.subscription_status == "past_due"

    def test_plan_from_price_when_no_hint(self, client, db_session, entreprise, stripe_mock):
        entreprise.stripe_customer_id = "cus_1"
        db_session.commit()
        stripe_mock["retrieve_subscription"].return_value = subscription_object(price_id="price_annual")

        _post_event(client, stripe_event("customer.subscription.created", subscription_object()))

        db_session.expire_all()
        assert entreprise.subscription_plan == "annual"

    def test_unknown_customer_is_acknowledged(self, client, db_session, entreprise, stripe_mock):
        response = _post_event(
            client,
            stripe_event("customer.subscription.updated", subscription_object(customer="cus_unknown")),
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        stripe_mock["retrieve_subscription"].assert_not_awaited()

    def test_unknown_entreprise_in_metadata_is_404(self, client, db_session, entreprise, stripe_mock):
        session = _checkout_session(entreprise)
        session["metadata"]["entreprise_id"] = "99999"

        response = _post_event(client, stripe_event("checkout.session.completed", session))

        assert response.status_code == 404

    def test_vendor_failure_is_500(self, client, db_session, entreprise, stripe_mock):
        stripe_mock["retrieve_subscription"].side_effect = StripeError("unavailable", status_code=503)

        response = _post_event(client, stripe_event("checkout.session.completed", _checkout_session(entreprise)))

        assert response.status_code == 500

    def test_unhandled_event_type_is_acknowledged(self, client, db_session, stripe_mock):
        response = _post_event(client, stripe_event("customer.created", {"id": "cus_1"}))

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_payments_endpoint_accepts_subscription_events(self, client, db_session, entreprise, stripe_mock):
        stripe_mock["retrieve_subscription"].return_value = subscription_object(status="active")

        response = _post_event(
            client,
            stripe_event("checkout.session.completed", _checkout_session(entreprise)),
            path="/api/payments/webhook",
        )

        assert response.status_code == 200
        db_session.expire_all()
        assert entreprise.subscription_status == "active"
