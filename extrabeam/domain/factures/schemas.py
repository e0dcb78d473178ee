"""Facture domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from ...models_invoice import FACTURE_STATUSES


def _check_status(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in FACTURE_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(FACTURE_STATUSES)}")
    return v


def _check_amount(v: Optional[float]) -> Optional[float]:
    if v is not None and v < 0:
        raise ValueError("amounts must be positive")
    return v


class FactureCreate(BaseModel):
    """Schema for creating an invoice; amounts are derived from the mission when one is linked"""

    entrepriseRef: Optional[str] = None
    mission_id: Optional[int] = None
    numero: str
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    montant_ht: Optional[float] = None
    tva: float = 0
    montant_ttc: Optional[float] = None
    status: str = "draft"
    generate_payment_link: bool = False

    @field_validator("numero")
    @classmethod
    def validate_numero(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("numero is required")
        return v.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_status(v)

    @field_validator("montant_ht", "tva", "montant_ttc")
    @classmethod
    def validate_amount(cls, v: Optional[float]) -> Optional[float]:
        return _check_amount(v)


class FactureUpdate(BaseModel):
    numero: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    montant_ht: Optional[float] = None
    tva: Optional[float] = None
    montant_ttc: Optional[float] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _check_status(v)

    @field_validator("montant_ht", "tva", "montant_ttc")
    @classmethod
    def validate_amount(cls, v: Optional[float]) -> Optional[float]:
        return _check_amount(v)


class FactureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entreprise_id: int
    mission_id: Optional[int] = None
    numero: str
    description: Optional[str] = None
    contact_email: Optional[str] = None
    date_emission: Optional[datetime] = None
    hours: Optional[float] = None
    rate: Optional[float] = None
    montant_ht: float
    tva: Optional[float] = None
    montant_ttc: float
    status: str
    payment_link: Optional[str] = None
