# backend/drivebook/models/appointment.py
"""
Appointment model for the DriveBook platform.

An appointment binds one student to one slot. Its status follows a small state
machine (``ALLOWED_TRANSITIONS``); appointments are never deleted, cancelled
ones stay as history.
"""

from enum import Enum
import logging
from typing import Any, Dict, FrozenSet

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow

logger = logging.getLogger(__name__)


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Statuses only the appointment's instructor may set
INSTRUCTOR_ONLY_STATUSES = frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED})


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """True when ``current -> new`` is in the transition table."""
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


class Appointment(Base):
    """
    A student's booking of an instructor slot.

    ``instructor_id`` is copied from the slot at creation so history views do
    not need the slot join to answer "whose appointment is this".
    """

    __tablename__ = "appointments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    slot_id = Column(String(26), ForeignKey("slots.id"), nullable=False, index=True)
    student_id = Column(String(26), ForeignKey("profiles.id"), nullable=False, index=True)
    instructor_id = Column(String(26), ForeignKey("profiles.id"), nullable=False, index=True)
    status = Column(
        String(20), nullable=False, default=AppointmentStatus.PENDING.value, index=True
    )
    notes = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
    confirmed_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("profiles.id"), nullable=True)

    slot = relationship("Slot", back_populates="appointments")
    student = relationship("Profile", foreign_keys=[student_id])
    instructor = relationship("Profile", foreign_keys=[instructor_id])
    cancelled_by = relationship("Profile", foreign_keys=[cancelled_by_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
        # At most one live appointment per slot
        Index(
            "uq_appointments_active_slot",
            "slot_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_appointments_student_created", "student_id", "created_at"),
        Index("ix_appointments_instructor_created", "instructor_id", "created_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = AppointmentStatus.PENDING.value
        logger.info(
            "Creating appointment for student %s on slot %s", self.student_id, self.slot_id
        )

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id}: student={self.student_id}, "
            f"instructor={self.instructor_id}, slot={self.slot_id}, status={self.status}>"
        )

    @property
    def status_enum(self) -> AppointmentStatus:
        return AppointmentStatus(self.status)

    def is_party(self, profile_id: str) -> bool:
        return profile_id in (self.student_id, self.instructor_id)

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED.value
