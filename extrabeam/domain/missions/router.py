"""Mission router - FastAPI endpoints for missions"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import Profile
from .schemas import MissionCreate, MissionResponse, MissionUpdate
from .service import MissionService

router = APIRouter(prefix="/missions", tags=["Missions"])


def get_mission_service(db: Session = Depends(get_db)) -> MissionService:
    """Dependency injection for MissionService"""
    return MissionService(db)


@router.post("/public", response_model=MissionResponse)
async def create_public_mission(
    data: MissionCreate,
    user: Optional[Profile] = Depends(get_optional_user),
    service: MissionService = Depends(get_mission_service),
):
    """Mission proposal from a visitor of a public entreprise page"""
    return await service.create_mission(data, user)


@router.post("", response_model=MissionResponse)
async def create_mission(
    data: MissionCreate,
    user: Profile = Depends(get_current_user),
    service: MissionService = Depends(get_mission_service),
):
    return await service.create_mission(data, user)


@router.get("", response_model=list[MissionResponse])
async def list_missions(
    ref: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    user: Profile = Depends(get_current_user),
    service: MissionService = Depends(get_mission_service),
):
    """Missions of the caller's entreprise, or the caller's own proposals for clients"""
    return service.list_missions(user, ref, status)


@router.get("/{mission_id}", response_model=MissionResponse)
async def get_mission(
    mission_id: int,
    user: Profile = Depends(get_current_user),
    service: MissionService = Depends(get_mission_service),
):
    return service.get_mission(mission_id, user)


@router.put("/{mission_id}", response_model=MissionResponse)
async def update_mission(
    mission_id: int,
    data: MissionUpdate,
    user: Profile = Depends(get_current_user),
    service: MissionService = Depends(get_mission_service),
):
    return await service.update_mission(mission_id, data, user)


@router.delete("/{mission_id}")
async def delete_mission(
    mission_id: int,
    user: Profile = Depends(get_current_user),
    service: MissionService = Depends(get_mission_service),
):
    return service.delete_mission(mission_id, user)


@router.post("/{mission_id}/send")
async def send_mission(
    mission_id: int,
    user: Profile = Depends(get_current_user),
    service: MissionService = Depends(get_mission_service),
):
    """Resend the mission summary to its client"""
    return await service.send_mission(mission_id, user)
