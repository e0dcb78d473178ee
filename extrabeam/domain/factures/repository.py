"""Facture repository - Database operations for invoices"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Mission
from ...models_invoice import Facture


class FactureRepository:
    """Repository for invoice database operations"""

    @staticmethod
    def get_facture(db: Session, facture_id: int) -> Optional[Facture]:
        return db.query(Facture).filter(Facture.id == facture_id).first()

    @staticmethod
    def get_by_numero(db: Session, numero: str) -> Optional[Facture]:
        return db.query(Facture).filter(Facture.numero == numero).first()

    @staticmethod
    def get_mission(db: Session, mission_id: int, entreprise_id: int) -> Optional[Mission]:
        return (
            db.query(Mission)
            .filter(Mission.id == mission_id, Mission.entreprise_id == entreprise_id)
            .first()
        )

    @staticmethod
    def list_for_entreprise(
        db: Session, entreprise_id: int, mission_id: Optional[int] = None
    ) -> list[Facture]:
        query = db.query(Facture).filter(Facture.entreprise_id == entreprise_id)
        if mission_id is not None:
            query = query.filter(Facture.mission_id == mission_id)
        return query.order_by(Facture.date_emission.desc(), Facture.id.desc()).all()

    @staticmethod
    def list_for_client(db: Session, client_id: str, mission_id: Optional[int] = None) -> list[Facture]:
        """Invoices of the missions a client proposed"""
        query = db.query(Facture).join(Mission, Facture.mission_id == Mission.id).filter(
            Mission.client_id == client_id
        )
        if mission_id is not None:
            query = query.filter(Facture.mission_id == mission_id)
        return query.order_by(Facture.date_emission.desc(), Facture.id.desc()).all()

    @staticmethod
    def create_facture(db: Session, entreprise_id: int, **fields) -> Facture:
        facture = Facture(entreprise_id=entreprise_id, **fields)
        db.add(facture)
        db.flush()
        if facture.status == "paid" and facture.mission_id:
            FactureRepository._mark_mission_paid(db, facture.mission_id)
        db.commit()
        db.refresh(facture)
        return facture

    @staticmethod
    def update_facture(db: Session, facture: Facture, **updates) -> Facture:
        """Update fields; a paid invoice forces its mission to paid"""
        for key, value in updates.items():
            setattr(facture, key, value)
        if facture.status == "paid" and facture.mission_id:
            FactureRepository._mark_mission_paid(db, facture.mission_id)
        db.commit()
        db.refresh(facture)
        return facture

    @staticmethod
    def _mark_mission_paid(db: Session, mission_id: int) -> None:
        mission = db.query(Mission).filter(Mission.id == mission_id).first()
        if mission:
            mission.status = "paid"
