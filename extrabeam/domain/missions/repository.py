"""Mission repository - Database operations for missions and their slots"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Mission, Slot


class MissionRepository:
    """Repository for mission database operations"""

    @staticmethod
    def get_mission(db: Session, mission_id: int) -> Optional[Mission]:
        return (
            db.query(Mission)
            .options(selectinload(Mission.slots))
            .filter(Mission.id == mission_id)
            .first()
        )

    @staticmethod
    def list_for_entreprise(db: Session, entreprise_id: int, status: Optional[str] = None) -> list[Mission]:
        query = (
            db.query(Mission)
            .options(selectinload(Mission.slots))
            .filter(Mission.entreprise_id == entreprise_id)
        )
        if status:
            query = query.filter(Mission.status == status)
        return query.order_by(Mission.created_at.desc(), Mission.id.desc()).all()

    @staticmethod
    def list_for_client(db: Session, client_id: str, status: Optional[str] = None) -> list[Mission]:
        query = (
            db.query(Mission)
            .options(selectinload(Mission.slots))
            .filter(Mission.client_id == client_id)
        )
        if status:
            query = query.filter(Mission.status == status)
        return query.order_by(Mission.created_at.desc(), Mission.id.desc()).all()

    @staticmethod
    def create_mission(db: Session, entreprise_id: int, slots: list[dict], **fields) -> Mission:
        """Create a mission and its slots in one transaction"""
        mission = Mission(entreprise_id=entreprise_id, **fields)
        db.add(mission)
        db.flush()
        for slot in slots:
            db.add(Slot(entreprise_id=entreprise_id, mission_id=mission.id, **slot))
        db.commit()
        db.refresh(mission)
        return mission

    @staticmethod
    def update_mission(
        db: Session, mission: Mission, slots: Optional[list[dict]] = None, **updates
    ) -> Mission:
        """Update fields; when slots are given they replace the mission's current slots"""
        for key, value in updates.items():
            setattr(mission, key, value)
        if slots is not None:
            for slot in list(mission.slots):
                db.delete(slot)
            db.flush()
            for slot in slots:
                db.add(Slot(entreprise_id=mission.entreprise_id, mission_id=mission.id, **slot))
        db.commit()
        db.refresh(mission)
        return mission

    @staticmethod
    def delete_mission(db: Session, mission: Mission) -> None:
        for slot in list(mission.slots):
            db.delete(slot)
        db.delete(mission)
        db.commit()
