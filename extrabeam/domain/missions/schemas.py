"""Mission domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator

from ...models import MISSION_MODES, MISSION_STATUSES
from ...shared.validators import to_naive_utc


class MissionSlotInput(BaseModel):
    start: datetime
    end: datetime
    title: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_datetime(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.end <= self.start:
            raise ValueError("slot end must be after start")
        return self


class MissionFields(BaseModel):
    contact_name: Optional[str] = None
    etablissement_adresse_ligne1: Optional[str] = None
    etablissement_adresse_ligne2: Optional[str] = None
    etablissement_code_postal: Optional[str] = None
    etablissement_ville: Optional[str] = None
    etablissement_pays: Optional[str] = None
    instructions: Optional[str] = None
    devis_url: Optional[str] = None
    freelance_id: Optional[str] = None

    @field_validator("mode", check_fields=False)
    @classmethod
    def validate_mode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in MISSION_MODES:
            raise ValueError("mode must be 'freelance' or 'salarié'")
        return v

    @field_validator("status", check_fields=False)
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in MISSION_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(MISSION_STATUSES)}")
        return v


class MissionCreate(MissionFields):
    """Schema for creating a mission with its slots"""

    entrepriseRef: Optional[str] = None
    entreprise_id: Optional[Union[int, str]] = None
    contact_email: EmailStr
    contact_phone: str
    etablissement: str
    mode: str = "freelance"
    status: Optional[str] = None
    slots: list[MissionSlotInput] = []

    @field_validator("contact_phone", "etablissement")
    @classmethod
    def required_text(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("field is required")
        return v.strip()

    def entreprise_reference(self) -> Optional[str]:
        if self.entrepriseRef and self.entrepriseRef.strip():
            return self.entrepriseRef.strip()
        if self.entreprise_id not in (None, ""):
            return str(self.entreprise_id)
        return None


class MissionUpdate(MissionFields):
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    etablissement: Optional[str] = None
    mode: Optional[str] = None
    status: Optional[str] = None
    slots: Optional[list[MissionSlotInput]] = None


class MissionSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start: datetime
    end: datetime
    title: Optional[str] = None


class MissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entreprise_id: int
    client_id: Optional[str] = None
    freelance_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: str
    contact_phone: str
    etablissement: str
    etablissement_adresse_ligne1: Optional[str] = None
    etablissement_adresse_ligne2: Optional[str] = None
    etablissement_code_postal: Optional[str] = None
    etablissement_ville: Optional[str] = None
    etablissement_pays: Optional[str] = None
    instructions: Optional[str] = None
    devis_url: Optional[str] = None
    mode: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    slots: list[MissionSlotResponse] = []
