"""Billing domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

PLANS = ("monthly", "annual")
CHECKOUT_INTENTS = ("subscribe", "reactivate", "change")


class CheckoutRequest(BaseModel):
    """Schema for creating a subscription checkout session"""

    plan: str = "monthly"
    intent: str = "subscribe"
    referral_code: Optional[str] = None

    @field_validator("plan")
    @classmethod
    def validate_plan(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in PLANS:
            raise ValueError("plan must be 'monthly' or 'annual'")
        return v

    @field_validator("intent")
    @classmethod
    def validate_intent(cls, v: str) -> str:
        if v not in CHECKOUT_INTENTS:
            raise ValueError("intent must be one of: subscribe, reactivate, change")
        return v

    @field_validator("referral_code")
    @classmethod
    def clean_referral_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class CheckoutResponse(BaseModel):
    url: Optional[str] = None
    sessionId: str


class FactureCheckoutResponse(CheckoutResponse):
    paymentIntent: Optional[str] = None


class SubscriptionStatusResponse(BaseModel):
    """Subscription state consumed by the frontend subscription store"""

    status: str
    plan: Optional[str] = None
    periodEnd: Optional[datetime] = None
    isTrial: bool
    isActive: bool


class WebhookResponse(BaseModel):
    received: bool = True
