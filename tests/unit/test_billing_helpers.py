"""Unit tests for the Stripe client wrapper, subscription parsing and invoice totals."""

import asyncio
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
import stripe

from extrabeam.domain.billing.stripe_service import StripeError, StripeService
from extrabeam.domain.billing.subscription_service import (
    build_status,
    plan_for_price_id,
    subscription_period_end,
)
from extrabeam.domain.factures.service import compute_from_mission, compute_ttc

pytestmark = pytest.mark.unit


def stripe_object(values: dict) -> Mock:
    return Mock(id=values.get("id"), **{"to_dict.return_value": values})


@pytest.fixture
def stripe_client():
    service = StripeService(api_key="sk_test_unit")
    service.client = SimpleNamespace(
        v1=SimpleNamespace(
            customers=SimpleNamespace(create_async=AsyncMock(return_value=stripe_object({"id": "cus_9"}))),
            checkout=SimpleNamespace(
                sessions=SimpleNamespace(
                    create_async=AsyncMock(return_value=stripe_object({"id": "cs_9", "url": "https://pay"}))
                )
            ),
            subscriptions=SimpleNamespace(retrieve_async=AsyncMock()),
        )
    )
    return service


class TestStripeService:
    def test_unavailable_without_key(self, monkeypatch):
        monkeypatch.setattr("extrabeam.domain.billing.stripe_service.STRIPE_SECRET_KEY", None)

        service = StripeService()

        assert not service.is_available()
        with pytest.raises(StripeError):
            asyncio.run(service.retrieve_subscription("sub_1"))

    def test_customer_creation_passes_idempotency_key(self, stripe_client):
        customer = asyncio.run(
            stripe_client.create_customer("a@b.fr", name="Jean", idempotency_key="entreprise-1-customer")
        )

        assert customer == {"id": "cus_9"}
        call = stripe_client.client.v1.customers.create_async.call_args
        assert call.kwargs["params"] == {"metadata": {}, "email": "a@b.fr", "name": "Jean"}
        assert call.kwargs["options"] == {"idempotency_key": "entreprise-1-customer"}

    def test_subscription_checkout_params(self, stripe_client):
        session = asyncio.run(
            stripe_client.create_subscription_checkout(
                "cus_9", "price_monthly", "https://ok", "https://ko", metadata={"plan": "monthly"}, trial_days=30
            )
        )

        assert session["url"] == "https://pay"
        params = stripe_client.client.v1.checkout.sessions.create_async.call_args.kwargs["params"]
        assert params["mode"] == "subscription"
        assert params["line_items"] == [{"price": "price_monthly", "quantity": 1}]
        assert params["subscription_data"] == {"metadata": {"plan": "monthly"}, "trial_period_days": 30}
        assert "client_reference_id" not in params

    def test_vendor_errors_are_mapped(self, stripe_client):
        stripe_client.client.v1.subscriptions.retrieve_async.side_effect = stripe.StripeError(
            "No such subscription", http_status=404, code="resource_missing"
        )

        with pytest.raises(StripeError) as excinfo:
            asyncio.run(stripe_client.retrieve_subscription("sub_missing"))

        assert excinfo.value.status_code == 404
        assert excinfo.value.code == "resource_missing"
        assert excinfo.value.message == "No such subscription"


class TestSubscriptionParsing:
    def test_period_end_from_subscription(self):
        assert subscription_period_end({"current_period_end": 0}) is None
        assert subscription_period_end({"current_period_end": 86400}) == datetime(1970, 1, 2)

    def test_period_end_from_first_item(self):
        subscription = {"items": {"data": [{"current_period_end": 86400}]}}

        assert subscription_period_end(subscription) == datetime(1970, 1, 2)

    def test_plan_for_price_id(self):
        assert plan_for_price_id("price_monthly") == "monthly"
        assert plan_for_price_id("price_annual") == "annual"
        assert plan_for_price_id("price_unknown") is None

    def test_status_payload(self):
        now = datetime(2030, 1, 1)
        entreprise = SimpleNamespace(
            subscription_status="trialing",
            subscription_plan="monthly",
            subscription_period_end=now + timedelta(days=10),
        )

        status = build_status(entreprise, now)

        assert status == {
            "status": "trialing",
            "plan": "monthly",
            "periodEnd": now + timedelta(days=10),
            "isTrial": True,
            "isActive": True,
        }


class TestInvoiceTotals:
    def test_hours_and_amount_from_mission_slots(self):
        start = datetime(2030, 1, 7, 9, 0)
        mission = SimpleNamespace(
            slots=[
                SimpleNamespace(start=start, end=start + timedelta(hours=3)),
                SimpleNamespace(start=start + timedelta(days=1), end=start + timedelta(days=1, hours=4, minutes=30)),
            ]
        )

        result = compute_from_mission(mission, SimpleNamespace(taux_horaire=20.0))

        assert result == {"hours": 7.5, "rate": 20.0, "montant_ht": 150.0}

    def test_ttc_defaults_to_ht(self):
        assert compute_ttc(100.0, 0, None) == 100.0

    def test_explicit_ttc_without_vat(self):
        assert compute_ttc(100.0, 0, 110.0) == 110.0

    def test_vat_is_added_to_ht(self):
        assert compute_ttc(100.0, 20.0, 150.0) == 120.0
