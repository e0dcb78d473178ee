"""Client domain schemas - Bookmarked entreprises and mission templates"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from ...models import MISSION_MODES
from ..entreprises.schemas import EntrepriseResponse


class ContactCreate(BaseModel):
    entrepriseRef: Optional[str] = None
    entreprise_id: Optional[Union[int, str]] = None

    def entreprise_reference(self) -> Optional[str]:
        if self.entrepriseRef and self.entrepriseRef.strip():
            return self.entrepriseRef.strip()
        if self.entreprise_id not in (None, ""):
            return str(self.entreprise_id)
        return None


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entreprise_id: int
    created_at: Optional[datetime] = None
    entreprise: EntrepriseResponse


class TemplateFields(BaseModel):
    contact_name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    instructions: Optional[str] = None
    etablissement_adresse_ligne1: Optional[str] = None
    etablissement_adresse_ligne2: Optional[str] = None
    etablissement_code_postal: Optional[str] = None
    etablissement_ville: Optional[str] = None
    etablissement_pays: Optional[str] = None
    mode: Optional[str] = None

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in MISSION_MODES:
            raise ValueError("mode must be 'freelance' or 'salarié'")
        return v


class TemplateCreate(TemplateFields):
    nom: str
    etablissement: str

    @field_validator("nom", "etablissement")
    @classmethod
    def required_text(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("field is required")
        return v.strip()


class TemplateUpdate(TemplateFields):
    nom: Optional[str] = None
    etablissement: Optional[str] = None

    @field_validator("nom", "etablissement")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("field cannot be empty")
        return v.strip() if v is not None else v


class TemplateResponse(TemplateFields):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nom: str
    etablissement: str
    contact_email: Optional[str] = None
    created_at: Optional[datetime] = None
