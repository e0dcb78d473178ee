"""Entreprise domain schemas - Pydantic models for validation"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class EntrepriseProfileFields(BaseModel):
    nom: Optional[str] = None
    prenom: Optional[str] = None
    email: Optional[EmailStr] = None
    telephone: Optional[str] = None
    metier: Optional[str] = None
    description: Optional[str] = None
    ville: Optional[str] = None
    taux_horaire: Optional[float] = None
    devise: Optional[str] = None

    @field_validator("taux_horaire")
    @classmethod
    def validate_rate(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("taux_horaire must be positive")
        return v

    @field_validator("devise")
    @classmethod
    def validate_devise(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if not re.fullmatch(r"[A-Z]{3}", v):
            raise ValueError("devise must be a 3-letter currency code")
        return v


class EntrepriseCreate(EntrepriseProfileFields):
    slug: str

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not SLUG_PATTERN.match(v) or v.isdigit():
            raise ValueError("slug must contain lowercase letters, digits and dashes")
        return v


class EntrepriseUpdate(EntrepriseProfileFields):
    """Editable profile fields; subscription and referral columns are not accepted"""

    model_config = ConfigDict(extra="ignore")


class EntrepriseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    nom: Optional[str] = None
    prenom: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    metier: Optional[str] = None
    description: Optional[str] = None
    ville: Optional[str] = None
    taux_horaire: Optional[float] = None
    devise: Optional[str] = None


class EntrepriseOwnerResponse(EntrepriseResponse):
    referral_code: Optional[str] = None
    referral_rewards_pending: int = 0
    subscription_status: Optional[str] = None
    subscription_plan: Optional[str] = None
