"""
Core enums for the DriveBook platform.

Shared enumeration types used by models, schemas and services.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Roles a profile can hold.

    The role is fixed when the profile is created and is never read from
    client-supplied data.
    """

    STUDENT = "STUDENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"


class VerificationStatus(str, Enum):
    """Admin review state of an instructor's vehicle/document evidence."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LicenseCategory(str, Enum):
    """Driving license categories taught on the platform."""

    A = "A"
    B = "B"
    AB = "AB"
    ACC = "ACC"


class DocumentKind(str, Enum):
    """Kinds of files accepted by the document store."""

    LICENSE_PHOTO = "license_photo"
    CREDENTIAL_PHOTO = "credential_photo"
    AVATAR = "avatar"


class TimelineKind(str, Enum):
    """Classification of an appointment on a timeline view."""

    COMPLETED = "completed"
    CURRENT = "current"
    NEXT = "next"
    UPCOMING = "upcoming"
    CANCELLED = "cancelled"
