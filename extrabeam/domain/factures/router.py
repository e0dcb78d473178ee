"""Facture router - FastAPI endpoints for invoices"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import FactureCreate, FactureResponse, FactureUpdate
from .service import FactureService

router = APIRouter(prefix="/factures", tags=["Factures"])


def get_facture_service(db: Session = Depends(get_db)) -> FactureService:
    """Dependency injection for FactureService"""
    return FactureService(db)


@router.get("", response_model=list[FactureResponse])
async def list_factures(
    ref: Optional[str] = Query(None),
    mission_id: Optional[int] = Query(None),
    user: Profile = Depends(get_current_user),
    service: FactureService = Depends(get_facture_service),
):
    """Invoices of the caller's entreprise, or of the caller's missions for clients"""
    return service.list_factures(user, ref, mission_id)


@router.get("/{facture_id}", response_model=FactureResponse)
async def get_facture(
    facture_id: int,
    user: Profile = Depends(get_current_user),
    service: FactureService = Depends(get_facture_service),
):
    return service.get_facture(facture_id, user)


@router.post("", response_model=FactureResponse)
async def create_facture(
    data: FactureCreate,
    user: Profile = Depends(get_current_user),
    service: FactureService = Depends(get_facture_service),
):
    return await service.create_facture(data, user)


@router.put("/{facture_id}", response_model=FactureResponse)
async def update_facture(
    facture_id: int,
    data: FactureUpdate,
    user: Profile = Depends(get_current_user),
    service: FactureService = Depends(get_facture_service),
):
    return service.update_facture(facture_id, data, user)


@router.post("/{facture_id}/send")
async def send_facture(
    facture_id: int,
    user: Profile = Depends(get_current_user),
    service: FactureService = Depends(get_facture_service),
):
    return await service.send_facture(facture_id, user)
