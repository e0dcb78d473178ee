"""Facture service - Invoice issuing, computation from missions and delivery"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import (
    assert_active_subscription,
    assert_can_access_entreprise,
    can_access_entreprise,
    find_entreprise_for_user,
)
from ...models import ENTREPRISE_ROLES, Entreprise, Mission, Profile
from ...models_invoice import Facture
from ...shared.validators import null_fields
from ..billing.payment_service import PaymentService
from ..notifications import NotificationService
from .repository import FactureRepository
from .schemas import FactureCreate, FactureUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("numero", "montant_ht", "montant_ttc", "status")


def compute_from_mission(mission: Mission, entreprise: Entreprise) -> dict:
    """Hours from the mission slots, billed at the entreprise hourly rate"""
    hours = sum((slot.end - slot.start).total_seconds() for slot in mission.slots) / 3600
    rate = entreprise.taux_horaire or 0
    return {
        "hours": round(hours, 2),
        "rate": rate,
        "montant_ht": round(hours * rate, 2),
    }


def compute_ttc(montant_ht: float, tva: Optional[float], montant_ttc: Optional[float]) -> float:
    """Explicit TTC wins unless VAT is set, in which case TTC = HT + VAT"""
    if tva and tva > 0:
        return round(montant_ht + tva, 2)
    if montant_ttc is not None:
        return montant_ttc
    return montant_ht


class FactureService:
    """Service layer for invoices"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FactureRepository()
        self.notifications = NotificationService(db)
        self.payments = PaymentService(db)

    def _require_entreprise_role(self, user: Profile) -> None:
        if user.role not in ENTREPRISE_ROLES:
            raise HTTPException(status_code=403, detail="Accès refusé")

    def get_facture(self, facture_id: int, user: Profile) -> Facture:
        facture = self.repo.get_facture(self.db, facture_id)
        if not facture:
            raise HTTPException(status_code=404, detail="Facture introuvable")
        if can_access_entreprise(user, facture.entreprise):
            return facture
        if facture.mission and facture.mission.client_id == user.id:
            return facture
        raise HTTPException(status_code=403, detail="Accès refusé")

    def _owned_facture(self, facture_id: int, user: Profile) -> Facture:
        self._require_entreprise_role(user)
        facture = self.repo.get_facture(self.db, facture_id)
        if not facture:
            raise HTTPException(status_code=404, detail="Facture introuvable")
        assert_can_access_entreprise(user, facture.entreprise)
        return facture

    def list_factures(
        self, user: Profile, ref: Optional[str] = None, mission_id: Optional[int] = None
    ) -> list[Facture]:
        if user.role in ENTREPRISE_ROLES:
            entreprise = find_entreprise_for_user(self.db, user, ref)
            assert_can_access_entreprise(user, entreprise)
            return self.repo.list_for_entreprise(self.db, entreprise.id, mission_id)
        return self.repo.list_for_client(self.db, user.id, mission_id)

    async def create_facture(self, data: FactureCreate, user: Profile) -> Facture:
        self._require_entreprise_role(user)
        entreprise = find_entreprise_for_user(self.db, user, data.entrepriseRef)
        assert_can_access_entreprise(user, entreprise)
        assert_active_subscription(entreprise)

        if self.repo.get_by_numero(self.db, data.numero):
            raise HTTPException(status_code=400, detail="Numéro de facture déjà utilisé")

        fields = {
            "numero": data.numero,
            "description": data.description,
            "contact_email": data.contact_email,
            "tva": data.tva,
            "status": data.status,
            "mission_id": data.mission_id,
        }

        if data.mission_id is not None:
            mission = self.repo.get_mission(self.db, data.mission_id, entreprise.id)
            if not mission:
                raise HTTPException(status_code=400, detail="Mission invalide pour cette entreprise")
            fields.update(compute_from_mission(mission, entreprise))
            fields["contact_email"] = fields["contact_email"] or mission.contact_email
        elif data.montant_ht is not None:
            fields["montant_ht"] = data.montant_ht
        elif data.montant_ttc is not None:
            fields["montant_ht"] = data.montant_ttc
        else:
            raise HTTPException(status_code=400, detail="Montant ou mission requis")

        fields["montant_ttc"] = compute_ttc(fields["montant_ht"], data.tva, data.montant_ttc)

        facture = self.repo.create_facture(self.db, entreprise.id, **fields)
        logger.info(
            f"✅ Facture {facture.numero} created for entreprise {entreprise.id}: "
            f"{facture.montant_ttc} TTC"
        )

        if data.generate_payment_link:
            try:
                await self.payments.create_payment_link(facture)
            except HTTPException as e:
                logger.warning(f"⚠️ Payment link not generated for facture {facture.id}: {e.detail}")
            self.db.refresh(facture)

        await self.notifications.notify_facture_created(facture)
        return facture

    def update_facture(self, facture_id: int, data: FactureUpdate, user: Profile) -> Facture:
        facture = self._owned_facture(facture_id, user)
        updates = data.model_dump(exclude_unset=True)
        missing = null_fields(updates, REQUIRED_FIELDS)
        if missing:
            raise HTTPException(status_code=400, detail=f"Champs obligatoires: {', '.join(missing)}")

        if "numero" in updates and updates["numero"] != facture.numero:
            if not updates["numero"] or self.repo.get_by_numero(self.db, updates["numero"]):
                raise HTTPException(status_code=400, detail="Numéro de facture déjà utilisé")

        if ("montant_ht" in updates or "tva" in updates) and "montant_ttc" not in updates:
            updates["montant_ttc"] = compute_ttc(
                updates.get("montant_ht", facture.montant_ht), updates.get("tva", facture.tva), None
            )

        facture = self.repo.update_facture(self.db, facture, **updates)
        logger.info(f"Facture {facture.id} updated (status={facture.status})")
        return facture

    async def send_facture(self, facture_id: int, user: Profile) -> dict:
        """Email the invoice, with its payment link when one exists, to the client"""
        facture = self._owned_facture(facture_id, user)
        result = await self.notifications.send_facture_notification(facture)
        return {"success": result["client"], "notifications": result}
