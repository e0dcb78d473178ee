"""Scheduling repository - Database operations for slots and unavailabilities"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Mission, Slot, Unavailability

PUBLIC_MISSION_STATUSES = ("validated", "paid", "completed")


class SchedulingRepository:
    """Repository for scheduling database operations"""

    @staticmethod
    def list_slots(
        db: Session,
        entreprise_id: int,
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        mission_id: Optional[int] = None,
        public_only: bool = False,
    ) -> list[Slot]:
        """Slots of an entreprise ordered by start; public listings hide unconfirmed missions"""
        query = (
            db.query(Slot)
            .options(joinedload(Slot.mission))
            .filter(Slot.entreprise_id == entreprise_id)
        )
        if start_from is not None:
            query = query.filter(Slot.start >= start_from)
        if end_to is not None:
            query = query.filter(Slot.end <= end_to)
        if mission_id is not None:
            query = query.filter(Slot.mission_id == mission_id)
        if public_only:
            query = query.outerjoin(Mission, Slot.mission_id == Mission.id).filter(
                or_(Slot.mission_id.is_(None), Mission.status.in_(PUBLIC_MISSION_STATUSES))
            )
        return query.order_by(Slot.start.asc()).all()

    @staticmethod
    def get_slot(db: Session, slot_id: int, entreprise_id: int) -> Optional[Slot]:
        return (
            db.query(Slot)
            .filter(Slot.id == slot_id, Slot.entreprise_id == entreprise_id)
            .first()
        )

    @staticmethod
    def get_mission(db: Session, mission_id: int, entreprise_id: int) -> Optional[Mission]:
        return (
            db.query(Mission)
            .filter(Mission.id == mission_id, Mission.entreprise_id == entreprise_id)
            .first()
        )

    @staticmethod
    def create_slot(db: Session, entreprise_id: int, **fields) -> Slot:
        slot = Slot(entreprise_id=entreprise_id, **fields)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def update_slot(db: Session, slot: Slot, **updates) -> Slot:
        for key, value in updates.items():
            setattr(slot, key, value)
        db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def delete_slot(db: Session, slot: Slot) -> None:
        db.delete(slot)
        db.commit()

    @staticmethod
    def list_unavailabilities(
        db: Session, entreprise_id: int, window_start: date, window_end: date
    ) -> list[Unavailability]:
        """Series that may have occurrences inside the window"""
        return (
            db.query(Unavailability)
            .filter(
                Unavailability.entreprise_id == entreprise_id,
                Unavailability.start_date <= window_end,
                or_(
                    Unavailability.recurrence_end.is_(None),
                    Unavailability.recurrence_end >= window_start,
                ),
            )
            .order_by(Unavailability.start_date.asc(), Unavailability.id.asc())
            .all()
        )

    @staticmethod
    def get_unavailability(
        db: Session, unavailability_id: int, entreprise_id: int
    ) -> Optional[Unavailability]:
        return (
            db.query(Unavailability)
            .filter(
                Unavailability.id == unavailability_id,
                Unavailability.entreprise_id == entreprise_id,
            )
            .first()
        )

    @staticmethod
    def create_unavailability(db: Session, entreprise_id: int, **fields) -> Unavailability:
        unavailability = Unavailability(entreprise_id=entreprise_id, **fields)
        db.add(unavailability)
        db.commit()
        db.refresh(unavailability)
        return unavailability

    @staticmethod
    def update_unavailability(db: Session, unavailability: Unavailability, **updates) -> Unavailability:
        for key, value in updates.items():
            setattr(unavailability, key, value)
        db.commit()
        db.refresh(unavailability)
        return unavailability

    @staticmethod
    def delete_unavailability(db: Session, unavailability: Unavailability) -> None:
        db.delete(unavailability)
        db.commit()
