"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def validate_time_of_day(value: Optional[str]) -> Optional[str]:
    """Validate an HH:MM (or HH:MM:SS) wall-clock time and return it as HH:MM"""
    if value is None:
        return value
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must use the HH:MM format")
    return value[:5]


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC; aware values are converted first"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def null_fields(updates: dict, required: tuple) -> list:
    """Names of required columns that a partial update tries to set to null"""
    return [name for name in required if name in updates and updates[name] is None]
