"""Payment service - Stripe checkout for invoices (factures)"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import assert_can_access_entreprise
from ...config import APP_URL
from ...models import ENTREPRISE_ROLES, Profile
from ...models_invoice import Facture
from ..notifications import NotificationService
from .repository import BillingRepository
from .stripe_service import StripeError, stripe_service

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for one-off invoice payments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()
        self.notifications = NotificationService(db)

    def _get_facture(self, facture_id: int) -> Facture:
        facture = self.repo.get_facture_by_id(self.db, facture_id)
        if not facture:
            raise HTTPException(status_code=404, detail="Facture introuvable")
        return facture

    async def create_payment_link(self, facture: Facture) -> dict:
        """Create a payment-mode checkout for the invoice total and store it on the invoice"""
        if not stripe_service.is_available():
            raise HTTPException(status_code=503, detail="Billing service temporarily unavailable")
        if not facture.montant_ttc or facture.montant_ttc <= 0:
            raise HTTPException(status_code=400, detail="Montant de la facture invalide")

        entreprise = facture.entreprise
        metadata = {
            "facture_id": str(facture.id),
            "entreprise_id": str(facture.entreprise_id),
            "mission_id": str(facture.mission_id) if facture.mission_id else None,
        }

        try:
            session = await stripe_service.create_payment_checkout(
                amount_cents=int(round(facture.montant_ttc * 100)),
                currency=(entreprise.devise or "eur").lower(),
                product_name=f"Facture {facture.numero}",
                success_url=f"{APP_URL}/factures/{facture.id}/paiement/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{APP_URL}/factures/{facture.id}/paiement/cancel",
                metadata=metadata,
                customer_email=facture.contact_email,
            )
        except StripeError as e:
            logger.error(f"Failed to create payment session for facture {facture.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create payment session") from e

        self.repo.set_facture_checkout(
            self.db,
            facture,
            session_id=session["id"],
            payment_link=session.get("url"),
            payment_intent=session.get("payment_intent"),
        )
        logger.info(f"✅ Payment session {session['id']} created for facture {facture.id}")
        return {
            "url": session.get("url"),
            "sessionId": session["id"],
            "paymentIntent": session.get("payment_intent"),
        }

    async def create_facture_checkout(self, facture_id: int, user: Profile) -> dict:
        """Entreprise-initiated payment session for one of its invoices, emailed to the client"""
        if user.role not in ENTREPRISE_ROLES:
            raise HTTPException(status_code=403, detail="Accès refusé")

        facture = self._get_facture(facture_id)
        assert_can_access_entreprise(user, facture.entreprise)

        result = await self.create_payment_link(facture)
        await self.notifications.send_facture_notification(facture)
        return result

    # ------------------------------------------------------------------
    # Webhook events
    # ------------------------------------------------------------------

    async def handle_checkout_paid(self, session: dict) -> dict:
        facture = self._get_facture(int(session["metadata"]["facture_id"]))
        already_paid = facture.status == "paid"

        self.repo.mark_facture_paid(
            self.db,
            facture,
            session_id=session.get("id"),
            payment_intent=session.get("payment_intent"),
        )
        logger.info(f"💰 Facture {facture.id} paid (session {session.get('id')})")

        if not already_paid:
            await self.notifications.notify_facture_paid(facture)
        return {"received": True}

    async def handle_payment_failed(self, payment_intent: dict) -> dict:
        facture = self._get_facture(int(payment_intent["metadata"]["facture_id"]))
        if facture.status == "paid":
            logger.warning(f"⚠️ Ignoring payment failure for already paid facture {facture.id}")
            return {"received": True}

        self.repo.mark_facture_canceled(self.db, facture)
        logger.info(f"❌ Facture {facture.id} payment failed, marked canceled")
        return {"received": True}
