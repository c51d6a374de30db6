"""
SQLAlchemy models for the DriveBook platform.

Importing this package registers every table on ``Base.metadata``.
"""

from .appointment import ALLOWED_TRANSITIONS, Appointment, AppointmentStatus
from .instructor_asset import InstructorAsset
from .profile import Profile
from .slot import Slot

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Appointment",
    "AppointmentStatus",
    "InstructorAsset",
    "Profile",
    "Slot",
]
