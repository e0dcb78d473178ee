"""Mission service - Proposals, owner management and mission notifications"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...access import (
    assert_can_access_entreprise,
    can_access_entreprise,
    find_entreprise,
    find_entreprise_for_user,
    get_owned_entreprise,
)
from ...models import ENTREPRISE_ROLES, Mission, Profile
from ...shared.validators import null_fields
from ..notifications import NotificationService
from .repository import MissionRepository
from .schemas import MissionCreate, MissionUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("contact_email", "contact_phone", "etablissement", "status")


class MissionService:
    """Service layer for missions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MissionRepository()
        self.notifications = NotificationService(db)

    def get_mission(self, mission_id: int, user: Profile) -> Mission:
        """Mission visible to the entreprise owner, an admin or the mission's client"""
        mission = self.repo.get_mission(self.db, mission_id)
        if not mission:
            raise HTTPException(status_code=404, detail="Mission introuvable")
        if mission.client_id == user.id or can_access_entreprise(user, mission.entreprise):
            return mission
        raise HTTPException(status_code=403, detail="Accès refusé")

    def _owned_mission(self, mission_id: int, user: Profile, require_subscription: bool = True) -> Mission:
        mission = self.repo.get_mission(self.db, mission_id)
        if not mission:
            raise HTTPException(status_code=404, detail="Mission introuvable")
        get_owned_entreprise(self.db, user, str(mission.entreprise_id), require_subscription)
        return mission

    async def create_mission(self, data: MissionCreate, user: Optional[Profile]) -> Mission:
        """
        Create a mission with its slots on the referenced entreprise.

        Visitors and clients can only propose; the entreprise owner may set
        an initial status directly.
        """
        ref = data.entreprise_reference()
        if ref:
            entreprise = find_entreprise(self.db, ref)
        elif user is not None and user.role in ENTREPRISE_ROLES:
            entreprise = find_entreprise_for_user(self.db, user)
        else:
            raise HTTPException(status_code=400, detail="Référence entreprise manquante")

        is_owner = can_access_entreprise(user, entreprise)
        if is_owner:
            get_owned_entreprise(self.db, user, str(entreprise.id))

        fields = data.model_dump(exclude={"entrepriseRef", "entreprise_id", "slots", "status"})
        fields["status"] = (data.status or "proposed") if is_owner else "proposed"
        fields["client_id"] = user.id if user is not None and user.role == "client" else None

        mission = self.repo.create_mission(
            self.db,
            entreprise.id,
            slots=[slot.model_dump() for slot in data.slots],
            **fields,
        )
        logger.info(
            f"✅ Mission {mission.id} created for entreprise {entreprise.id} "
            f"({len(data.slots)} slots, by {'visitor' if user is None else user.id})"
        )

        if not is_owner:
            await self.notifications.notify_mission_created(mission, by_visitor=user is None)
        return mission

    def list_missions(
        self, user: Profile, ref: Optional[str] = None, status: Optional[str] = None
    ) -> list[Mission]:
        if user.role in ENTREPRISE_ROLES:
            entreprise = find_entreprise_for_user(self.db, user, ref)
            assert_can_access_entreprise(user, entreprise)
            return self.repo.list_for_entreprise(self.db, entreprise.id, status)
        return self.repo.list_for_client(self.db, user.id, status)

    async def update_mission(self, mission_id: int, data: MissionUpdate, user: Profile) -> Mission:
        mission = self._owned_mission(mission_id, user)
        previous_status = mission.status

        updates = data.model_dump(exclude_unset=True, exclude={"slots"})
        missing = null_fields(updates, REQUIRED_FIELDS)
        if missing:
            raise HTTPException(status_code=400, detail=f"Champs obligatoires: {', '.join(missing)}")
        slots = [slot.model_dump() for slot in data.slots] if data.slots is not None else None
        mission = self.repo.update_mission(self.db, mission, slots=slots, **updates)

        if mission.status != previous_status:
            logger.info(f"Mission {mission.id} status {previous_status} -> {mission.status}")
            if mission.status == "validated":
                await self.notifications.notify_mission_accepted(mission)
        return mission

    def delete_mission(self, mission_id: int, user: Profile) -> dict:
        mission = self._owned_mission(mission_id, user)
        self.repo.delete_mission(self.db, mission)
        logger.info(f"🗑️ Mission {mission_id} deleted")
        return {"success": True}

    async def send_mission(self, mission_id: int, user: Profile) -> dict:
        """Email the mission details and status to its client"""
        mission = self._owned_mission(mission_id, user, require_subscription=False)
        result = await self.notifications.send_mission_notification(mission)
        return {"success": result["client"]}
