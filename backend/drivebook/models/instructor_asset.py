# backend/drivebook/models/instructor_asset.py
"""
Instructor asset model: the vehicle and document evidence an admin reviews.

Invariant: ``verification_status == approved`` if and only if the owning
profile's ``document_verified`` flag is set.
"""

from typing import Any

from sqlalchemy import CheckConstraint, Column, ForeignKey, String
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import VerificationStatus
from ..database import Base
from .types import UTCDateTime, utcnow


class InstructorAsset(Base):
    """Zero or one per instructor; upserted by the instructor, reviewed by an admin."""

    __tablename__ = "instructor_assets"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    instructor_id = Column(
        String(26), ForeignKey("profiles.id"), nullable=False, unique=True, index=True
    )
    vehicle_model = Column(String(120), nullable=True)
    license_plate = Column(String(16), nullable=True)
    license_category = Column(String(8), nullable=True)
    license_photo_url = Column(String(1024), nullable=True)
    credential_photo_url = Column(String(1024), nullable=True)
    verification_status = Column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value, index=True
    )
    reviewed_at = Column(UTCDateTime, nullable=True)
    reviewed_by_id = Column(String(26), ForeignKey("profiles.id"), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    instructor = relationship(
        "Profile", back_populates="instructor_asset", foreign_keys=[instructor_id]
    )
    reviewed_by = relationship("Profile", foreign_keys=[reviewed_by_id])

    __table_args__ = (
        CheckConstraint(
            "verification_status IN ('pending', 'approved', 'rejected')",
            name="ck_instructor_assets_verification_status",
        ),
        CheckConstraint(
            "license_category IS NULL OR license_category IN ('A', 'B', 'AB', 'ACC')",
            name="ck_instructor_assets_license_category",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.verification_status:
            self.verification_status = VerificationStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<InstructorAsset {self.id}: instructor={self.instructor_id}, "
            f"status={self.verification_status}>"
        )
