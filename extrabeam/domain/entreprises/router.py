"""Entreprise router - Public profile pages and owner edits"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from .schemas import EntrepriseCreate, EntrepriseOwnerResponse, EntrepriseResponse, EntrepriseUpdate
from .service import EntrepriseService

router = APIRouter(prefix="/entreprises", tags=["Entreprises"])


def get_entreprise_service(db: Session = Depends(get_db)) -> EntrepriseService:
    """Dependency injection for EntrepriseService"""
    return EntrepriseService(db)


@router.post("", response_model=EntrepriseOwnerResponse)
async def create_entreprise(
    data: EntrepriseCreate,
    user: Profile = Depends(get_current_user),
    service: EntrepriseService = Depends(get_entreprise_service),
):
    """Create the caller's entreprise page"""
    return service.create(data, user)


@router.get("/{ref}", response_model=EntrepriseResponse)
async def get_entreprise(ref: str, service: EntrepriseService = Depends(get_entreprise_service)):
    """Public profile by slug or id"""
    return service.get_public(ref)


@router.put("/{ref}", response_model=EntrepriseOwnerResponse)
async def update_entreprise(
    ref: str,
    data: EntrepriseUpdate,
    user: Profile = Depends(get_current_user),
    service: EntrepriseService = Depends(get_entreprise_service),
):
    """Edit profile fields (owner or admin)"""
    return service.update(ref, data, user)
