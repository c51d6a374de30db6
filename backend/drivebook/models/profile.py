# backend/drivebook/models/profile.py
"""
Profile model for the DriveBook platform.

One row per identity issued by the identity provider. Students, instructors
and admins share the table and are told apart by ``role``, which is fixed at
registration. ``document_verified`` is owned by the admin verification
workflow; self-service updates never write it.
"""

import logging
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow

logger = logging.getLogger(__name__)


class Profile(Base):
    """
    Canonical record of a person on the platform.

    Attributes:
        id: ULID, equal to the identity provider subject
        role: STUDENT, INSTRUCTOR or ADMIN
        document_verified: True only while the instructor's asset is approved

    Relationships:
        instructor_asset: Vehicle/document metadata (instructors only)
        slots: Published availability (instructors only)
    """

    __tablename__ = "profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    role = Column(String(20), nullable=False, index=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    bio = Column(Text, nullable=True)
    document_verified = Column(Boolean, nullable=False, default=False)

    # Instructor identity fields
    national_id = Column(String(32), nullable=True)
    license_number = Column(String(32), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    instructor_asset = relationship(
        "InstructorAsset",
        back_populates="instructor",
        uselist=False,
        foreign_keys="InstructorAsset.instructor_id",
    )
    slots = relationship("Slot", back_populates="instructor", order_by="Slot.start_time")

    __table_args__ = (
        CheckConstraint(
            "role IN ('STUDENT', 'INSTRUCTOR', 'ADMIN')",
            name="ck_profiles_role",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.document_verified is None:
            self.document_verified = False

    def __repr__(self) -> str:
        return f"<Profile {self.id}: {self.email} ({self.role})>"
