"""Service layer: business rules and transaction boundaries."""

from .admin_verification_service import AdminVerificationService
from .appointment_service import AppointmentService
from .base import BaseService
from .document_storage_service import DocumentStorageService
from .profile_service import ProfileService
from .slot_service import SlotService

__all__ = [
    "AdminVerificationService",
    "AppointmentService",
    "BaseService",
    "DocumentStorageService",
    "ProfileService",
    "SlotService",
]
