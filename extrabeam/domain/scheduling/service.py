"""Scheduling service - Availability slots and recurring unavailabilities"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import (
    assert_active_subscription,
    can_access_entreprise,
    find_entreprise,
    get_owned_entreprise,
)
from ...models import Profile, Slot, Unavailability
from ...shared.validators import null_fields
from .recurrence import expand_recurrences, sunday_based_weekday
from .repository import SchedulingRepository
from .schemas import SlotCreate, SlotUpdate, UnavailabilityCreate, UnavailabilityUpdate

logger = logging.getLogger(__name__)

UNAVAILABILITY_REQUIRED_FIELDS = ("start_time", "end_time", "recurrence_type", "start_date")

PENDING_MISSION_STATUSES = ("proposed", "refused")


def slot_status(slot: Slot) -> str:
    """Owner-side slot badge: pending while its mission awaits an answer or was refused"""
    if slot.mission and slot.mission.status in PENDING_MISSION_STATUSES:
        return "pending"
    return "active"


def serialize_slot(slot: Slot, owner_view: bool) -> dict:
    data = {
        "id": slot.id,
        "entreprise_id": slot.entreprise_id,
        "mission_id": slot.mission_id,
        "start": slot.start,
        "end": slot.end,
        "title": slot.title,
    }
    if owner_view:
        data["status_slot"] = slot_status(slot)
        data["mission_status"] = slot.mission.status if slot.mission else None
    return data


def serialize_unavailability(unavailability: Unavailability) -> dict:
    return {
        "id": unavailability.id,
        "entreprise_id": unavailability.entreprise_id,
        "title": unavailability.title,
        "start_time": unavailability.start_time,
        "end_time": unavailability.end_time,
        "recurrence_type": unavailability.recurrence_type,
        "start_date": unavailability.start_date,
        "recurrence_end": unavailability.recurrence_end,
        "weekday": unavailability.weekday,
        "exceptions": list(unavailability.exceptions or []),
    }


class SlotService:
    """Service layer for availability slots"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def list_slots(
        self,
        ref: str,
        user: Optional[Profile],
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        mission_id: Optional[int] = None,
    ) -> list[dict]:
        """Public visitors see free and confirmed slots; owners see everything with a status badge"""
        entreprise = find_entreprise(self.db, ref)
        owner_view = can_access_entreprise(user, entreprise)
        if owner_view:
            assert_active_subscription(entreprise)

        slots = self.repo.list_slots(
            self.db,
            entreprise.id,
            start_from=start_from,
            end_to=end_to,
            mission_id=mission_id,
            public_only=not owner_view,
        )
        return [serialize_slot(slot, owner_view) for slot in slots]

    def _check_mission(self, mission_id: Optional[int], entreprise_id: int) -> None:
        if mission_id is None:
            return
        if not self.repo.get_mission(self.db, mission_id, entreprise_id):
            raise HTTPException(status_code=400, detail="Mission invalide pour cette entreprise")

    def create_slot(self, ref: str, data: SlotCreate, user: Profile) -> dict:
        entreprise = get_owned_entreprise(self.db, user, ref)
        self._check_mission(data.mission_id, entreprise.id)

        slot = self.repo.create_slot(self.db, entreprise.id, **data.model_dump())
        logger.info(f"✅ Slot {slot.id} created for entreprise {entreprise.id}")
        return serialize_slot(slot, owner_view=True)

    def update_slot(self, ref: str, slot_id: int, data: SlotUpdate, user: Profile) -> dict:
        entreprise = get_owned_entreprise(self.db, user, ref)
        slot = self.repo.get_slot(self.db, slot_id, entreprise.id)
        if not slot:
            raise HTTPException(status_code=404, detail="Créneau introuvable")

        updates = data.model_dump(exclude_unset=True)
        self._check_mission(updates.get("mission_id"), entreprise.id)

        start = updates.get("start", slot.start)
        end = updates.get("end", slot.end)
        if start is None or end is None or end <= start:
            raise HTTPException(status_code=400, detail="La fin doit être après le début")

        slot = self.repo.update_slot(self.db, slot, **updates)
        return serialize_slot(slot, owner_view=True)

    def delete_slot(self, ref: str, slot_id: int, user: Profile) -> dict:
        entreprise = get_owned_entreprise(self.db, user, ref)
        slot = self.repo.get_slot(self.db, slot_id, entreprise.id)
        if not slot:
            raise HTTPException(status_code=404, detail="Créneau introuvable")

        self.repo.delete_slot(self.db, slot)
        logger.info(f"🗑️ Slot {slot_id} deleted for entreprise {entreprise.id}")
        return {"success": True}


class UnavailabilityService:
    """Service layer for recurring unavailabilities"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def list_occurrences(
        self, ref: str, window_start: Optional[date], window_end: Optional[date]
    ) -> list[dict]:
        if window_start is None or window_end is None:
            raise HTTPException(status_code=400, detail="Les paramètres start et end sont requis")
        if window_end < window_start:
            raise HTTPException(status_code=400, detail="end doit être après start")

        entreprise = find_entreprise(self.db, ref)
        series = self.repo.list_unavailabilities(self.db, entreprise.id, window_start, window_end)
        return expand_recurrences(
            [serialize_unavailability(item) for item in series], window_start, window_end
        )

    def _get(self, unavailability_id: int, entreprise_id: int) -> Unavailability:
        unavailability = self.repo.get_unavailability(self.db, unavailability_id, entreprise_id)
        if not unavailability:
            raise HTTPException(status_code=404, detail="Indisponibilité introuvable")
        return unavailability

    def create(self, ref: str, data: UnavailabilityCreate, user: Profile) -> dict:
        entreprise = get_owned_entreprise(self.db, user, ref)

        fields = data.model_dump()
        if fields["weekday"] is None:
            fields["weekday"] = sunday_based_weekday(data.start_date)
        fields["exceptions"] = sorted({d.isoformat() for d in data.exceptions})

        unavailability = self.repo.create_unavailability(self.db, entreprise.id, **fields)
        logger.info(
            f"✅ Unavailability {unavailability.id} ({unavailability.recurrence_type}) "
            f"created for entreprise {entreprise.id}"
        )
        return serialize_unavailability(unavailability)

    def update(
        self, ref: str, unavailability_id: int, data: UnavailabilityUpdate, user: Profile
    ) -> dict:
        entreprise = get_owned_entreprise(self.db, user, ref)
        unavailability = self._get(unavailability_id, entreprise.id)

        updates = data.model_dump(exclude_unset=True)
        missing = null_fields(updates, UNAVAILABILITY_REQUIRED_FIELDS)
        if missing:
            raise HTTPException(status_code=400, detail=f"Champs obligatoires: {', '.join(missing)}")
        if updates.get("exceptions") is not None:
            updates["exceptions"] = sorted({d.isoformat() for d in updates["exceptions"]})
        if "start_date" in updates and "weekday" not in updates and updates["start_date"]:
            updates["weekday"] = sunday_based_weekday(updates["start_date"])

        unavailability = self.repo.update_unavailability(self.db, unavailability, **updates)
        return serialize_unavailability(unavailability)

    def delete(
        self, ref: str, unavailability_id: int, user: Profile, occurrence: Optional[date] = None
    ) -> dict:
        """Delete a whole series, or only one occurrence by recording it as an exception"""
        entreprise = get_owned_entreprise(self.db, user, ref)
        unavailability = self._get(unavailability_id, entreprise.id)

        if occurrence is not None:
            exceptions = set(unavailability.exceptions or [])
            exceptions.add(occurrence.isoformat())
            self.repo.update_unavailability(self.db, unavailability, exceptions=sorted(exceptions))
            logger.info(f"Unavailability {unavailability_id}: occurrence {occurrence} excluded")
            return {"success": True, "partial": True}

        self.repo.delete_unavailability(self.db, unavailability)
        logger.info(f"🗑️ Unavailability {unavailability_id} deleted for entreprise {entreprise.id}")
        return {"success": True}
