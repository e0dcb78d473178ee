"""Scheduling domain schemas - Slots and unavailabilities"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ...shared.validators import to_naive_utc, validate_time_of_day
from .recurrence import RECURRENCE_TYPES

# ============================================================================
# SLOTS
# ============================================================================


class SlotCreate(BaseModel):
    start: datetime
    end: datetime
    title: Optional[str] = None
    mission_id: Optional[int] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_datetime(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class SlotUpdate(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    title: Optional[str] = None
    mission_id: Optional[int] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entreprise_id: int
    mission_id: Optional[int] = None
    start: datetime
    end: datetime
    title: Optional[str] = None
    status_slot: Optional[str] = None  # Owner view only: pending / active
    mission_status: Optional[str] = None


# ============================================================================
# UNAVAILABILITIES
# ============================================================================


class UnavailabilityBase(BaseModel):
    @field_validator("start_time", "end_time", check_fields=False)
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return validate_time_of_day(v)

    @field_validator("recurrence_type", check_fields=False)
    @classmethod
    def validate_recurrence(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in RECURRENCE_TYPES:
            raise ValueError("recurrence_type must be one of: none, daily, weekly, monthly")
        return v

    @field_validator("weekday", check_fields=False)
    @classmethod
    def validate_weekday(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 0 <= v <= 6:
            raise ValueError("weekday must be between 0 (Sunday) and 6 (Saturday)")
        return v


class UnavailabilityCreate(UnavailabilityBase):
    title: str = "Unavailability"
    start_time: str
    end_time: str
    start_date: date
    recurrence_type: str = "none"
    recurrence_end: Optional[date] = None
    weekday: Optional[int] = None
    exceptions: list[date] = []


class UnavailabilityUpdate(UnavailabilityBase):
    title: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    start_date: Optional[date] = None
    recurrence_type: Optional[str] = None
    recurrence_end: Optional[date] = None
    weekday: Optional[int] = None
    exceptions: Optional[list[date]] = None


class UnavailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entreprise_id: int
    title: Optional[str] = None
    start_time: str
    end_time: str
    recurrence_type: str
    start_date: date
    recurrence_end: Optional[date] = None
    weekday: Optional[int] = None
    exceptions: list[str] = []


class UnavailabilityOccurrence(UnavailabilityResponse):
    series_start_date: date
