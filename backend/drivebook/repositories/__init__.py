"""
Repository layer for the DriveBook platform.

Repositories encapsulate data access; services own transactions.
"""

from .appointment_repository import AppointmentRepository
from .base_repository import BaseRepository, IRepository
from .factory import RepositoryFactory
from .instructor_asset_repository import InstructorAssetRepository
from .profile_repository import ProfileRepository
from .slot_repository import SlotRepository

__all__ = [
    "AppointmentRepository",
    "BaseRepository",
    "IRepository",
    "InstructorAssetRepository",
    "ProfileRepository",
    "RepositoryFactory",
    "SlotRepository",
]
