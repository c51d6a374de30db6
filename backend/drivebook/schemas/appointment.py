# backend/drivebook/schemas/appointment.py
"""Appointment, timeline and instructor statistics schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH, ULID_PATH_PATTERN
from ..core.enums import TimelineKind
from ..models.appointment import AppointmentStatus
from .base import Money, RequestModel, ResponseModel
from .profile import ProfileSummary
from .slot import SlotResponse


class AppointmentCreate(RequestModel):
    slot_id: str = Field(..., pattern=ULID_PATH_PATTERN)
    instructor_id: str = Field(..., pattern=ULID_PATH_PATTERN)
    notes: Optional[str] = Field(None, description="Optional note from the student")

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        """Strip and cap the note; blank notes become None."""
        if v is None:
            return None
        v = v.strip()
        return v[:MAX_NOTES_LENGTH] or None


class AppointmentStatusUpdate(RequestModel):
    # Free-form so that unsupported values reach the service as a 400
    status: str = Field(..., min_length=1, max_length=32)


class AppointmentResponse(ResponseModel):
    id: str
    slot_id: str
    student_id: str
    instructor_id: str
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    slot: Optional[SlotResponse] = None
    student: Optional[ProfileSummary] = None
    instructor: Optional[ProfileSummary] = None


class TimelineItem(ResponseModel):
    appointment_id: str
    kind: TimelineKind
    status: AppointmentStatus
    start_time: datetime
    end_time: datetime
    price: Money
    location_address: str
    license_category: Optional[str] = None
    notes: Optional[str] = None
    counterparty: Optional[ProfileSummary] = None


class TimelineResponse(ResponseModel):
    items: List[TimelineItem]
    generated_at: datetime


class InstructorStatsResponse(ResponseModel):
    today: int
    week: int
    month_earnings: Money
