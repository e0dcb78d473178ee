"""Scheduling router - Slots and unavailabilities of an entreprise"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import Profile
from ...shared.validators import to_naive_utc
from .schemas import (
    SlotCreate,
    SlotResponse,
    SlotUpdate,
    UnavailabilityCreate,
    UnavailabilityOccurrence,
    UnavailabilityResponse,
    UnavailabilityUpdate,
)
from .service import SlotService, UnavailabilityService

router = APIRouter(prefix="/entreprises/{ref}", tags=["Scheduling"])


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    """Dependency injection for SlotService"""
    return SlotService(db)


def get_unavailability_service(db: Session = Depends(get_db)) -> UnavailabilityService:
    """Dependency injection for UnavailabilityService"""
    return UnavailabilityService(db)


# ============================================================================
# SLOTS
# ============================================================================


@router.get("/slots", response_model=list[SlotResponse], response_model_exclude_none=True)
async def list_slots(
    ref: str,
    start_from: Optional[datetime] = Query(None, alias="from"),
    end_to: Optional[datetime] = Query(None, alias="to"),
    mission_id: Optional[int] = Query(None),
    user: Optional[Profile] = Depends(get_optional_user),
    service: SlotService = Depends(get_slot_service),
):
    """Calendar slots (public view, or full owner view with a valid token)"""
    return service.list_slots(ref, user, to_naive_utc(start_from), to_naive_utc(end_to), mission_id)


@router.post("/slots", response_model=SlotResponse)
async def create_slot(
    ref: str,
    data: SlotCreate,
    user: Profile = Depends(get_current_user),
    service: SlotService = Depends(get_slot_service),
):
    return service.create_slot(ref, data, user)


@router.put("/slots/{slot_id}", response_model=SlotResponse)
async def update_slot(
    ref: str,
    slot_id: int,
    data: SlotUpdate,
    user: Profile = Depends(get_current_user),
    service: SlotService = Depends(get_slot_service),
):
    return service.update_slot(ref, slot_id, data, user)


@router.delete("/slots/{slot_id}")
async def delete_slot(
    ref: str,
    slot_id: int,
    user: Profile = Depends(get_current_user),
    service: SlotService = Depends(get_slot_service),
):
    return service.delete_slot(ref, slot_id, user)


# ============================================================================
# UNAVAILABILITIES
# ============================================================================


@router.get("/unavailabilities", response_model=list[UnavailabilityOccurrence])
async def list_unavailabilities(
    ref: str,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    service: UnavailabilityService = Depends(get_unavailability_service),
):
    """Unavailability occurrences between start and end (inclusive), recurrences expanded"""
    return service.list_occurrences(ref, start, end)


@router.post("/unavailabilities", response_model=UnavailabilityResponse)
async def create_unavailability(
    ref: str,
    data: UnavailabilityCreate,
    user: Profile = Depends(get_current_user),
    service: UnavailabilityService = Depends(get_unavailability_service),
):
    return service.create(ref, data, user)


@router.put("/unavailabilities/{unavailability_id}", response_model=UnavailabilityResponse)
async def update_unavailability(
    ref: str,
    unavailability_id: int,
    data: UnavailabilityUpdate,
    user: Profile = Depends(get_current_user),
    service: UnavailabilityService = Depends(get_unavailability_service),
):
    return service.update(ref, unavailability_id, data, user)


@router.delete("/unavailabilities/{unavailability_id}")
async def delete_unavailability(
    ref: str,
    unavailability_id: int,
    occurrence: Optional[date] = Query(None, alias="date"),
    user: Profile = Depends(get_current_user),
    service: UnavailabilityService = Depends(get_unavailability_service),
):
    """Delete the series, or only the occurrence on `date`"""
    return service.delete(ref, unavailability_id, user, occurrence)
