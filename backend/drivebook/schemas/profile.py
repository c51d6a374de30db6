# backend/drivebook/schemas/profile.py
"""
Profile and instructor directory schemas.

Request models whitelist what a caller may change about themselves; ``role``
and ``document_verified`` never appear in an update model.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from ..core.constants import MAX_BIO_LENGTH, MAX_NAME_LENGTH
from ..core.enums import LicenseCategory, VerificationStatus
from .base import Money, RequestModel, ResponseModel
from .slot import SlotResponse

PROFILE_UPDATE_FIELDS = frozenset(
    {"full_name", "phone", "bio", "avatar_url", "national_id", "license_number"}
)
ASSET_UPDATE_FIELDS = frozenset(
    {
        "vehicle_model",
        "license_plate",
        "license_category",
        "license_photo_url",
        "credential_photo_url",
    }
)


class ProfileCreate(RequestModel):
    """First call after signup. ADMIN is never self-assigned."""

    role: Literal["STUDENT", "INSTRUCTOR"]
    full_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = Field(
        None, description="Used only when the access token carries no email claim"
    )


class ProfileUpdate(RequestModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    phone: Optional[str] = Field(None, max_length=20)
    bio: Optional[str] = Field(None, max_length=MAX_BIO_LENGTH)
    avatar_url: Optional[str] = Field(None, max_length=1024)
    national_id: Optional[str] = Field(None, max_length=32)
    license_number: Optional[str] = Field(None, max_length=32)


class InstructorAssetUpdate(RequestModel):
    vehicle_model: Optional[str] = Field(None, max_length=120)
    license_plate: Optional[str] = Field(None, max_length=16)
    license_category: Optional[LicenseCategory] = None
    license_photo_url: Optional[str] = Field(None, max_length=1024)
    credential_photo_url: Optional[str] = Field(None, max_length=1024)


class InstructorDataUpdate(RequestModel):
    """Profile fields plus vehicle/document fields, saved together."""

    profile: ProfileUpdate = Field(default_factory=ProfileUpdate)
    asset: InstructorAssetUpdate = Field(default_factory=InstructorAssetUpdate)


class InstructorAssetResponse(ResponseModel):
    id: str
    instructor_id: str
    vehicle_model: Optional[str] = None
    license_plate: Optional[str] = None
    license_category: Optional[LicenseCategory] = None
    license_photo_url: Optional[str] = None
    credential_photo_url: Optional[str] = None
    verification_status: VerificationStatus
    reviewed_at: Optional[datetime] = None
    reviewed_by_id: Optional[str] = None
    updated_at: datetime


class ProfileResponse(ResponseModel):
    id: str
    role: str
    full_name: str
    email: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    document_verified: bool
    national_id: Optional[str] = None
    license_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    instructor_asset: Optional[InstructorAssetResponse] = None


class ProfileSummary(ResponseModel):
    """Counterparty details shown next to an appointment."""

    id: str
    full_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class InstructorPublicProfile(ResponseModel):
    """What students see: no email, national id or document photos."""

    id: str
    full_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    document_verified: bool
    vehicle_model: Optional[str] = None
    license_category: Optional[LicenseCategory] = None
    available_slots: List[SlotResponse] = Field(default_factory=list)


class InstructorSearchResult(ResponseModel):
    id: str
    full_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    vehicle_model: Optional[str] = None
    license_category: Optional[LicenseCategory] = None
    lowest_price: Optional[Money] = None
