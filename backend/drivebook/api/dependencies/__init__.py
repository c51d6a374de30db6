# backend/drivebook/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_caller, get_identity, require_role
from .database import get_db
from .services import (
    get_admin_verification_service,
    get_appointment_service,
    get_document_storage_service,
    get_profile_service,
    get_slot_service,
)

__all__ = [
    # Auth
    "get_current_caller",
    "get_identity",
    "require_role",
    # Database
    "get_db",
    # Services
    "get_admin_verification_service",
    "get_appointment_service",
    "get_document_storage_service",
    "get_profile_service",
    "get_slot_service",
]
