"""Client router - Endpoints reserved to client profiles"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_client_user
from ...database import get_db
from ...models import Profile
from .schemas import (
    ContactCreate,
    ContactResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from .service import ClientService

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


# ============================================================================
# CONTACTS
# ============================================================================


@router.get("/contacts", response_model=list[ContactResponse])
async def get_contacts(
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    """Entreprises bookmarked by the client"""
    return service.get_contacts(user)


@router.post("/contacts")
async def add_contact(
    data: ContactCreate,
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    result = await service.add_contact(data, user)
    if "contact" in result:
        return {"contact": ContactResponse.model_validate(result["contact"])}
    return result


@router.delete("/contacts/{contact_id}")
async def delete_contact(
    contact_id: int,
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    return service.delete_contact(contact_id, user)


# ============================================================================
# MISSION TEMPLATES
# ============================================================================


@router.get("/templates", response_model=list[TemplateResponse])
async def get_templates(
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    return service.get_templates(user)


@router.post("/templates", response_model=TemplateResponse)
async def create_template(
    data: TemplateCreate,
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    return service.create_template(data, user)


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    data: TemplateUpdate,
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    return service.update_template(template_id, data, user)


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: int,
    user: Profile = Depends(get_client_user),
    service: ClientService = Depends(get_client_service),
):
    return service.delete_template(template_id, user)
