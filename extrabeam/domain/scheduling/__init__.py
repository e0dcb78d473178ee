"""Scheduling domain - Availability slots and recurring unavailabilities"""

from .router import router

__all__ = ["router"]
