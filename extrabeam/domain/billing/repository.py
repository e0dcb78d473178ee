"""Billing repository - Database operations for subscriptions and invoice payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Entreprise, Mission
from ...models_invoice import Facture


class BillingRepository:
    """Repository for billing database operations"""

    @staticmethod
    def get_entreprise_by_id(db: Session, entreprise_id: int) -> Optional[Entreprise]:
        return db.query(Entreprise).filter(Entreprise.id == entreprise_id).first()

    @staticmethod
    def get_entreprise_by_stripe_customer_id(db: Session, customer_id: str) -> Optional[Entreprise]:
        """Get entreprise by Stripe customer ID"""
        return db.query(Entreprise).filter(Entreprise.stripe_customer_id == customer_id).first()

    @staticmethod
    def get_entreprise_by_referral_code(db: Session, code: str) -> Optional[Entreprise]:
        return db.query(Entreprise).filter(Entreprise.referral_code == code).first()

    @staticmethod
    def set_stripe_customer_id(db: Session, entreprise: Entreprise, customer_id: str) -> Entreprise:
        entreprise.stripe_customer_id = customer_id
        db.commit()
        db.refresh(entreprise)
        return entreprise

    @staticmethod
    def set_referred_by(db: Session, entreprise: Entreprise, code: str) -> Entreprise:
        entreprise.referred_by = code
        db.commit()
        db.refresh(entreprise)
        return entreprise

    @staticmethod
    def update_entreprise_subscription(
        db: Session,
        entreprise: Entreprise,
        status: Optional[str] = None,
        plan: Optional[str] = None,
        period_end: Optional[datetime] = None,
        stripe_customer_id: Optional[str] = None,
        stripe_subscription_id: Optional[str] = None,
    ) -> Entreprise:
        """Overwrite the cached subscription columns"""
        if status is not None:
            entreprise.subscription_status = status
        if plan is not None:
            entreprise.subscription_plan = plan
        entreprise.subscription_period_end = period_end
        if stripe_customer_id is not None:
            entreprise.stripe_customer_id = stripe_customer_id
        if stripe_subscription_id is not None:
            entreprise.stripe_subscription_id = stripe_subscription_id

        db.commit()
        db.refresh(entreprise)
        return entreprise

    @staticmethod
    def credit_referrer(db: Session, referred: Entreprise, referrer: Entreprise) -> None:
        """Add one pending reward to the referrer and mark the referred entreprise as credited"""
        referrer.referral_rewards_pending = (referrer.referral_rewards_pending or 0) + 1
        referred.referral_credited_at = datetime.utcnow()
        db.commit()

    @staticmethod
    def get_facture_by_id(db: Session, facture_id: int) -> Optional[Facture]:
        return db.query(Facture).filter(Facture.id == facture_id).first()

    @staticmethod
    def set_facture_checkout(
        db: Session,
        facture: Facture,
        session_id: str,
        payment_link: Optional[str],
        payment_intent: Optional[str],
    ) -> Facture:
        facture.stripe_session_id = session_id
        facture.payment_link = payment_link
        facture.stripe_payment_intent = payment_intent
        facture.status = "pending_payment"
        db.commit()
        db.refresh(facture)
        return facture

    @staticmethod
    def mark_facture_paid(
        db: Session,
        facture: Facture,
        session_id: Optional[str] = None,
        payment_intent: Optional[str] = None,
    ) -> Facture:
        """Mark an invoice paid; a linked mission becomes paid as well"""
        facture.status = "paid"
        if session_id:
            facture.stripe_session_id = session_id
        if payment_intent:
            facture.stripe_payment_intent = payment_intent
        if facture.mission_id:
            mission = db.query(Mission).filter(Mission.id == facture.mission_id).first()
            if mission:
                mission.status = "paid"
        db.commit()
        db.refresh(facture)
        return facture

    @staticmethod
    def mark_facture_canceled(db: Session, facture: Facture) -> Facture:
        facture.status = "canceled"
        db.commit()
        db.refresh(facture)
        return facture
