"""Entreprise repository - Database operations for entreprise profiles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Entreprise, Profile


class EntrepriseRepository:
    """Repository for entreprise database operations"""

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Entreprise]:
        return db.query(Entreprise).filter(Entreprise.slug == slug).first()

    @staticmethod
    def get_by_referral_code(db: Session, code: str) -> Optional[Entreprise]:
        return db.query(Entreprise).filter(Entreprise.referral_code == code).first()

    @staticmethod
    def create(db: Session, owner: Profile, **fields) -> Entreprise:
        """Create an entreprise and link its slug on the owner profile"""
        entreprise = Entreprise(user_id=owner.id, **fields)
        db.add(entreprise)
        if not owner.slug:
            owner.slug = entreprise.slug
        db.commit()
        db.refresh(entreprise)
        return entreprise

    @staticmethod
    def update(db: Session, entreprise: Entreprise, **updates) -> Entreprise:
        for key, value in updates.items():
            if value is not None and hasattr(entreprise, key):
                setattr(entreprise, key, value)
        db.commit()
        db.refresh(entreprise)
        return entreprise
