"""Client service - Bookmarked entreprises and reusable mission templates"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import find_entreprise
from ...models import ClientContact, MissionTemplate, Profile
from ...shared.validators import null_fields
from ..notifications import NotificationService
from .repository import ClientRepository
from .schemas import ContactCreate, TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)

TEMPLATE_REQUIRED_FIELDS = ("nom", "etablissement")


class ClientService:
    """Service layer for client-side features"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def get_contacts(self, user: Profile) -> list[ClientContact]:
        return self.repo.get_contacts(self.db, user.id)

    async def add_contact(self, data: ContactCreate, user: Profile) -> dict:
        """Bookmark an entreprise; the entreprise is told on the first bookmark only"""
        entreprise = find_entreprise(self.db, data.entreprise_reference())

        if self.repo.get_contact(self.db, user.id, entreprise.id):
            return {"message": "Contact déjà enregistré"}

        contact = self.repo.create_contact(self.db, user.id, entreprise.id)
        logger.info(f"⭐ Client {user.id} bookmarked entreprise {entreprise.id}")

        await self.notifications.notify_entreprise_bookmarked(entreprise, user)
        return {"contact": contact}

    def delete_contact(self, contact_id: int, user: Profile) -> dict:
        if not self.repo.delete_contact(self.db, user.id, contact_id):
            raise HTTPException(status_code=404, detail="Contact introuvable")
        return {"success": True}

    # ------------------------------------------------------------------
    # Mission templates
    # ------------------------------------------------------------------

    def get_templates(self, user: Profile) -> list[MissionTemplate]:
        return self.repo.get_templates(self.db, user.id)

    def _get_template(self, template_id: int, user: Profile) -> MissionTemplate:
        template = self.repo.get_template(self.db, user.id, template_id)
        if not template:
            raise HTTPException(status_code=404, detail="Modèle introuvable")
        return template

    def create_template(self, data: TemplateCreate, user: Profile) -> MissionTemplate:
        template = self.repo.create_template(self.db, user.id, **data.model_dump())
        logger.info(f"✅ Mission template {template.id} created for client {user.id}")
        return template

    def update_template(self, template_id: int, data: TemplateUpdate, user: Profile) -> MissionTemplate:
        template = self._get_template(template_id, user)
        updates = data.model_dump(exclude_unset=True)
        missing = null_fields(updates, TEMPLATE_REQUIRED_FIELDS)
        if missing:
            raise HTTPException(status_code=400, detail=f"Champs obligatoires: {', '.join(missing)}")
        return self.repo.update_template(self.db, template, **updates)

    def delete_template(self, template_id: int, user: Profile) -> dict:
        template = self._get_template(template_id, user)
        self.repo.delete_template(self.db, template)
        return {"success": True}
