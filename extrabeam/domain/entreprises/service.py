"""Entreprise service - Public CV pages and owner edits"""

import logging
import secrets

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import assert_can_access_entreprise, find_entreprise
from ...models import ENTREPRISE_ROLES, Entreprise, Profile
from .repository import EntrepriseRepository
from .schemas import EntrepriseCreate, EntrepriseUpdate

logger = logging.getLogger(__name__)


class EntrepriseService:
    """Service layer for entreprise profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EntrepriseRepository()

    def get_public(self, ref: str) -> Entreprise:
        return find_entreprise(self.db, ref)

    def _new_referral_code(self) -> str:
        while True:
            code = secrets.token_hex(4).upper()
            if not self.repo.get_by_referral_code(self.db, code):
                return code

    def create(self, data: EntrepriseCreate, user: Profile) -> Entreprise:
        if user.role not in ENTREPRISE_ROLES:
            raise HTTPException(status_code=403, detail="Accès refusé")
        if self.repo.get_by_slug(self.db, data.slug):
            raise HTTPException(status_code=400, detail="Ce slug est déjà utilisé")

        fields = data.model_dump(exclude_none=True)
        fields.setdefault("email", user.email)
        entreprise = self.repo.create(
            self.db, user, referral_code=self._new_referral_code(), **fields
        )
        logger.info(f"✅ Created entreprise {entreprise.id} ({entreprise.slug}) for user {user.id}")
        return entreprise

    def update(self, ref: str, data: EntrepriseUpdate, user: Profile) -> Entreprise:
        entreprise = find_entreprise(self.db, ref)
        assert_can_access_entreprise(user, entreprise)
        return self.repo.update(self.db, entreprise, **data.model_dump(exclude_unset=True))
