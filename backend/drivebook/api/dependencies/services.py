# backend/drivebook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.admin_verification_service import AdminVerificationService
from ...services.appointment_service import AppointmentService
from ...services.document_storage_service import DocumentStorageService
from ...services.profile_service import ProfileService
from ...services.slot_service import SlotService
from .database import get_db


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    return SlotService(db)


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


def get_admin_verification_service(db: Session = Depends(get_db)) -> AdminVerificationService:
    return AdminVerificationService(db)


@lru_cache(maxsize=1)
def get_document_storage_service() -> DocumentStorageService:
    """Single storage service per process; it holds no request state."""
    return DocumentStorageService()
