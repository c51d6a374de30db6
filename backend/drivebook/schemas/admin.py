# backend/drivebook/schemas/admin.py
"""Admin verification schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import RequestModel, ResponseModel
from .profile import InstructorAssetResponse


class VerificationDecisionRequest(RequestModel):
    # Checked by the service; anything but approved/rejected is a 400
    decision: str = Field(..., min_length=1, max_length=32)


class InstructorReviewItem(ResponseModel):
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    national_id: Optional[str] = None
    license_number: Optional[str] = None
    document_verified: bool
    created_at: datetime
    asset: InstructorAssetResponse


class VerificationDecisionResponse(ResponseModel):
    instructor_id: str
    document_verified: bool
    asset: InstructorAssetResponse
