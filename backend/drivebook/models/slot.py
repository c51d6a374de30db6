# backend/drivebook/models/slot.py
"""
Slot model: an instructor-owned, priced, bookable time range.

``is_booked`` mirrors whether exactly one non-cancelled appointment references
the slot. It is only flipped through conditional updates in the slot
repository so that concurrent bookings cannot both win.
"""

from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow


class Slot(Base):
    """Published availability of one instructor."""

    __tablename__ = "slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    instructor_id = Column(String(26), ForeignKey("profiles.id"), nullable=False, index=True)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    location_address = Column(String(255), nullable=False)
    license_category = Column(String(8), nullable=True)
    is_booked = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    instructor = relationship("Profile", back_populates="slots")
    appointments = relationship("Appointment", back_populates="slot")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_slots_time_order"),
        CheckConstraint("price >= 0", name="ck_slots_price_non_negative"),
        CheckConstraint(
            "license_category IS NULL OR license_category IN ('A', 'B', 'AB', 'ACC')",
            name="ck_slots_license_category",
        ),
        Index("ix_slots_instructor_start", "instructor_id", "start_time"),
        Index("ix_slots_available", "instructor_id", "is_booked", "start_time"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.is_booked is None:
            self.is_booked = False

    def __repr__(self) -> str:
        return (
            f"<Slot {self.id}: instructor={self.instructor_id}, "
            f"{self.start_time}-{self.end_time}, booked={self.is_booked}>"
        )

    def time_range(self) -> str:
        """Human readable ``start - end`` string used in conflict messages."""
        return f"{self.start_time.isoformat()} - {self.end_time.isoformat()}"
