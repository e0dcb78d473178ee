"""
Test configuration and shared fixtures.

The app runs against an in-memory SQLite database; Stripe calls and email
delivery are replaced with mocks.
"""

import hashlib
import hmac
import json
import os
import time
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_PRICE_MONTHLY"] = "price_monthly"
os.environ["STRIPE_PRICE_ANNUAL"] = "price_annual"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["APP_URL"] = "https://app.extrabeam.test"

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from extrabeam import email_service  # noqa: E402
from extrabeam.database import Base, SessionLocal, engine  # noqa: E402
from extrabeam.domain.billing.stripe_service import stripe_service  # noqa: E402
from extrabeam.main import app  # noqa: E402
from extrabeam.models import Entreprise, Mission, Profile, Slot  # noqa: E402

WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "api: API endpoint tests")


# =============================================================================
# DATABASE / APP
# =============================================================================


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    return TestClient(app)


# =============================================================================
# MOCKS
# =============================================================================


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Every outbound email is captured instead of going through Resend"""
    mock = AsyncMock(return_value={"id": "email_test"})
    monkeypatch.setattr(email_service, "send_email", mock)
    return mock


@pytest.fixture
def stripe_mock(monkeypatch):
    """Stripe API calls replaced with AsyncMocks returning canned objects"""
    mocks = {
        "create_customer": AsyncMock(return_value={"id": "cus_new"}),
        "create_subscription_checkout": AsyncMock(
            return_value={"id": "cs_sub_1", "url": "https://checkout.stripe.test/cs_sub_1"}
        ),
        "create_payment_checkout": AsyncMock(
            return_value={
                "id": "cs_pay_1",
                "url": "https://checkout.stripe.test/cs_pay_1",
                "payment_intent": "pi_1",
            }
        ),
        "retrieve_subscription": AsyncMock(return_value=subscription_object()),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(stripe_service, name, mock)
    return mocks


# =============================================================================
# AUTH
# =============================================================================


def make_token(sub: str, email: str = None, role: str = "client", user_metadata: dict = None) -> str:
    claims = {
        "sub": sub,
        "email": email or f"{sub}@example.com",
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        "app_metadata": {"role": role},
        "user_metadata": user_metadata or {},
    }
    return jwt.encode(claims, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


def auth_headers(profile: Profile) -> dict:
    return {"Authorization": f"Bearer {make_token(profile.id, profile.email, profile.role)}"}


# =============================================================================
# FACTORIES
# =============================================================================


def create_profile(db, profile_id: str, role: str = "client", email: str = None, **fields) -> Profile:
    profile = Profile(id=profile_id, role=role, email=email or f"{profile_id}@example.com", **fields)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def create_entreprise(
    db,
    owner: Profile,
    slug: str = "jean-dupont",
    status: str = "active",
    period_end: datetime = None,
    **fields,
) -> Entreprise:
    fields.setdefault("email", owner.email)
    entreprise = Entreprise(
        user_id=owner.id,
        slug=slug,
        subscription_status=status,
        subscription_period_end=period_end,
        **fields,
    )
    db.add(entreprise)
    if not owner.slug:
        owner.slug = slug
    db.commit()
    db.refresh(entreprise)
    return entreprise


def create_mission(db, entreprise: Entreprise, status: str = "proposed", slots=(), **fields) -> Mission:
    fields.setdefault("contact_email", "contact@hotel.example")
    fields.setdefault("contact_phone", "0600000000")
    fields.setdefault("etablissement", "Hôtel du Port")
    mission = Mission(entreprise_id=entreprise.id, status=status, **fields)
    db.add(mission)
    db.flush()
    for start, end in slots:
        db.add(Slot(entreprise_id=entreprise.id, mission_id=mission.id, start=start, end=end))
    db.commit()
    db.refresh(mission)
    return mission


@pytest.fixture
def owner(db_session):
    return create_profile(db_session, "owner-1", role="entreprise", first_name="Jean", last_name="Dupont")


@pytest.fixture
def entreprise(db_session, owner):
    return create_entreprise(db_session, owner, taux_horaire=30.0, devise="EUR", nom="Dupont", prenom="Jean")


@pytest.fixture
def client_profile(db_session):
    return create_profile(db_session, "client-1", role="client", first_name="Claire", last_name="Martin")


# =============================================================================
# STRIPE PAYLOADS
# =============================================================================


def subscription_object(
    subscription_id: str = "sub_1",
    status: str = "active",
    customer: str = "cus_1",
    price_id: str = "price_monthly",
    period_end: datetime = None,
    metadata: dict = None,
) -> dict:
    period_end = period_end or (datetime.utcnow() + timedelta(days=30))
    return {
        "id": subscription_id,
        "object": "subscription",
        "status": status,
        "customer": customer,
        "metadata": metadata or {},
        "items": {
            "data": [
                {
                    "price": {"id": price_id},
                    "current_period_end": int((period_end - datetime(1970, 1, 1)).total_seconds()),
                }
            ]
        },
    }


def stripe_event(event_type: str, obj: dict, event_id: str = "evt_1") -> bytes:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}}).encode()


def signed_headers(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> dict:
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256
    ).hexdigest()
    return {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}
