"""Notifications domain - Transactional emails for domain events"""

from .service import NotificationService

__all__ = ["NotificationService"]
