# backend/drivebook/repositories/factory.py
"""
Repository Factory for the DriveBook platform.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .appointment_repository import AppointmentRepository
    from .instructor_asset_repository import InstructorAssetRepository
    from .profile_repository import ProfileRepository
    from .slot_repository import SlotRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_profile_repository(db: Session) -> "ProfileRepository":
        from .profile_repository import ProfileRepository

        return ProfileRepository(db)

    @staticmethod
    def create_instructor_asset_repository(db: Session) -> "InstructorAssetRepository":
        from .instructor_asset_repository import InstructorAssetRepository

        return InstructorAssetRepository(db)

    @staticmethod
    def create_slot_repository(db: Session) -> "SlotRepository":
        """Create repository for slot ledger operations."""
        from .slot_repository import SlotRepository

        return SlotRepository(db)

    @staticmethod
    def create_appointment_repository(db: Session) -> "AppointmentRepository":
        """Create repository for appointment operations."""
        from .appointment_repository import AppointmentRepository

        return AppointmentRepository(db)
