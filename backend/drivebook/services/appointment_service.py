# backend/drivebook/services/appointment_service.py
"""
Appointment Service for the DriveBook platform.

Owns the booking workflow:
- Creating an appointment claims the slot with a compare-and-set update and
  inserts the appointment in the same transaction
- Status changes follow ``ALLOWED_TRANSITIONS`` and are guarded by the
  current status, so concurrent changes cannot both apply
- Cancelling releases the slot in the same transaction
- History, timeline and statistics views for both parties
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import Settings, settings
from ..core.constants import STUDENT_TIMELINE_LIMIT
from ..core.enums import RoleName
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    SlotUnavailableException,
    ValidationException,
)
from ..models.appointment import (
    INSTRUCTOR_ONLY_STATUSES,
    Appointment,
    AppointmentStatus,
    can_transition,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import CallerContext
from ..repositories.factory import RepositoryFactory
from ..schemas.appointment import (
    AppointmentCreate,
    InstructorStatsResponse,
    TimelineItem,
    TimelineResponse,
)
from ..schemas.profile import ProfileSummary
from .base import BaseService
from .timeline import TimelineEntry, build_timeline, condense_instructor_timeline

logger = logging.getLogger(__name__)

REQUESTABLE_STATUSES = frozenset(
    {AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
)


class AppointmentService(BaseService):
    """Service layer for the appointment workflow."""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db)
        self.config = config or settings
        self.repository = RepositoryFactory.create_appointment_repository(db)
        self.slot_repository = RepositoryFactory.create_slot_repository(db)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)

    # Booking

    def _slot_unavailable(self, reason: str, slot_id: str) -> SlotUnavailableException:
        prometheus_metrics.inc_slot_booking_conflict(reason)
        return SlotUnavailableException(details={"slot_id": slot_id, "reason": reason})

    @BaseService.measure_operation("create_appointment")
    def create_appointment(
        self, caller: CallerContext, data: AppointmentCreate, now: Optional[datetime] = None
    ) -> Appointment:
        """
        Book a slot for the calling student.

        Args:
            caller: Authenticated student
            data: Slot, instructor and optional notes
            now: Reference time (defaults to the current UTC time)

        Returns:
            The pending appointment with slot and parties loaded

        Raises:
            ForbiddenException: Caller is not a student, or the instructor is not verified
            SlotUnavailableException: Slot missing, foreign, past, booked or lost to a
                concurrent booking
        """
        self.require_role(caller, RoleName.STUDENT)
        now = now or datetime.now(timezone.utc)
        self.log_operation(
            "create_appointment",
            student_id=caller.id,
            instructor_id=data.instructor_id,
            slot_id=data.slot_id,
        )

        with self.transaction():
            slot = self.slot_repository.get_by_id(data.slot_id, load_relationships=False)
            if slot is None or slot.instructor_id != data.instructor_id or slot.start_time <= now:
                raise self._slot_unavailable("invalid", data.slot_id)

            if self.config.require_verified_instructor_for_booking:
                instructor = self.profile_repository.get_instructor(data.instructor_id)
                if instructor is None or not instructor.document_verified:
                    raise ForbiddenException(
                        "This instructor is not accepting bookings yet",
                        code="INSTRUCTOR_NOT_VERIFIED",
                    )

            if slot.is_booked:
                raise self._slot_unavailable("already_booked", data.slot_id)

            # Compare-and-set: exactly one concurrent request flips the flag
            if not self.slot_repository.mark_booked(data.slot_id):
                raise self._slot_unavailable("race", data.slot_id)

            try:
                appointment = self.repository.create(
                    slot_id=data.slot_id,
                    student_id=caller.id,
                    instructor_id=data.instructor_id,
                    status=AppointmentStatus.PENDING.value,
                    notes=data.notes,
                )
            except IntegrityError as exc:
                logger.warning("Active appointment already exists for slot %s: %s", data.slot_id, exc)
                raise self._slot_unavailable("race", data.slot_id) from exc

        prometheus_metrics.inc_appointment_created()
        logger.info(
            "Student %s booked slot %s (appointment %s)", caller.id, data.slot_id, appointment.id
        )
        return self._reload(appointment.id)

    # Status workflow

    @staticmethod
    def _parse_requested_status(value: object) -> AppointmentStatus:
        raw = value.value if isinstance(value, AppointmentStatus) else str(value).strip().lower()
        try:
            status = AppointmentStatus(raw)
        except ValueError:
            status = None
        if status not in REQUESTABLE_STATUSES:
            raise ValidationException(
                f"Unsupported appointment status: {value}",
                code="INVALID_STATUS",
                details={"allowed": sorted(s.value for s in REQUESTABLE_STATUSES)},
            )
        return status

    @BaseService.measure_operation("update_appointment_status")
    def update_appointment_status(
        self,
        caller: CallerContext,
        appointment_id: str,
        new_status: object,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """
        Move an appointment along the status workflow.

        Only the instructor confirms or completes; either party cancels.
        Cancelling an already cancelled appointment is a no-op.

        Raises:
            ValidationException: Status other than confirmed/completed/cancelled
            NotFoundException: Unknown appointment
            ForbiddenException: Caller is not a party, or lacks the party role required
            InvalidStatusTransitionException: Transition not allowed from the current status
            ConflictException: The status changed concurrently
        """
        requested = self._parse_requested_status(new_status)
        now = now or datetime.now(timezone.utc)
        self.log_operation(
            "update_appointment_status",
            appointment_id=appointment_id,
            caller_id=caller.id,
            requested_status=requested.value,
        )

        with self.transaction():
            appointment = self.repository.get_by_id(appointment_id, load_relationships=False)
            if appointment is None:
                raise NotFoundException("Appointment not found", code="APPOINTMENT_NOT_FOUND")
            if not appointment.is_party(caller.id):
                raise ForbiddenException(
                    "You are not a party to this appointment", code="NOT_APPOINTMENT_PARTY"
                )
            if requested in INSTRUCTOR_ONLY_STATUSES and caller.id != appointment.instructor_id:
                raise ForbiddenException(
                    f"Only the instructor can mark an appointment as {requested.value}",
                    code="INSTRUCTOR_ONLY_TRANSITION",
                )

            current = appointment.status_enum
            if current == AppointmentStatus.CANCELLED and requested == AppointmentStatus.CANCELLED:
                return self._reload(appointment_id)
            if not can_transition(current, requested):
                raise InvalidStatusTransitionException(current.value, requested.value)

            stamps = {}
            if requested == AppointmentStatus.CONFIRMED:
                stamps["confirmed_at"] = now
            elif requested == AppointmentStatus.COMPLETED:
                stamps["completed_at"] = now
            else:
                stamps["cancelled_at"] = now
                stamps["cancelled_by_id"] = caller.id

            if not self.repository.update_status_if(appointment_id, current, requested, **stamps):
                raise ConflictException(
                    "The appointment was changed by someone else, please reload",
                    code="STATUS_CHANGED",
                    details={"expected_status": current.value},
                )

            if requested == AppointmentStatus.CANCELLED:
                if not self.slot_repository.release(appointment.slot_id):
                    logger.warning(
                        "Slot %s was not marked booked while cancelling %s",
                        appointment.slot_id,
                        appointment_id,
                    )

        prometheus_metrics.inc_appointment_transition(current.value, requested.value)
        logger.info(
            "Appointment %s: %s -> %s by %s", appointment_id, current.value, requested.value, caller.id
        )
        return self._reload(appointment_id)

    # Views

    @BaseService.measure_operation("list_for_student")
    def list_for_student(
        self, caller: CallerContext, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        self.require_role(caller, RoleName.STUDENT)
        return self.repository.list_for_student(caller.id, status)

    @BaseService.measure_operation("list_for_instructor")
    def list_for_instructor(
        self, caller: CallerContext, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        self.require_role(caller, RoleName.INSTRUCTOR)
        return self.repository.list_for_instructor(caller.id, status)

    @BaseService.measure_operation("student_timeline")
    def student_timeline(
        self, caller: CallerContext, now: Optional[datetime] = None
    ) -> TimelineResponse:
        """The student's most recent non-cancelled lessons, in lesson order."""
        self.require_role(caller, RoleName.STUDENT)
        now = now or datetime.now(timezone.utc)
        appointments = self.repository.list_student_timeline(caller.id, STUDENT_TIMELINE_LIMIT)
        entries = build_timeline(appointments, now)
        return TimelineResponse(
            items=[self._timeline_item(entry, counterpart="instructor") for entry in entries],
            generated_at=now,
        )

    @BaseService.measure_operation("instructor_timeline")
    def instructor_timeline(
        self, caller: CallerContext, now: Optional[datetime] = None
    ) -> TimelineResponse:
        """Condensed view of the instructor's lessons from the lookback window onward."""
        self.require_role(caller, RoleName.INSTRUCTOR)
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=self.config.timeline_lookback_days)
        appointments = self.repository.list_instructor_timeline(caller.id, since)
        entries = condense_instructor_timeline(build_timeline(appointments, now), now)
        return TimelineResponse(
            items=[self._timeline_item(entry, counterpart="student") for entry in entries],
            generated_at=now,
        )

    @BaseService.measure_operation("instructor_stats")
    def instructor_stats(
        self, caller: CallerContext, now: Optional[datetime] = None
    ) -> InstructorStatsResponse:
        """
        Lesson counts for today and this week, and this month's completed earnings.

        Calendar boundaries are UTC; weeks start on Sunday.
        """
        self.require_role(caller, RoleName.INSTRUCTOR)
        now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow = today + timedelta(days=1)
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        week_end = week_start + timedelta(days=7)
        month_start = today.replace(day=1)
        if month_start.month == 12:
            next_month = month_start.replace(year=month_start.year + 1, month=1)
        else:
            next_month = month_start.replace(month=month_start.month + 1)

        return InstructorStatsResponse(
            today=self.repository.count_active_between(caller.id, today, tomorrow),
            week=self.repository.count_active_between(caller.id, week_start, week_end),
            month_earnings=self.repository.sum_completed_earnings_between(
                caller.id, month_start, next_month
            ),
        )

    # Helpers

    def _reload(self, appointment_id: str) -> Appointment:
        appointment = self.repository.get_with_details(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found", code="APPOINTMENT_NOT_FOUND")
        return appointment

    @staticmethod
    def _timeline_item(entry: TimelineEntry, counterpart: str) -> TimelineItem:
        appointment, kind = entry
        slot = appointment.slot
        other = getattr(appointment, counterpart)
        return TimelineItem(
            appointment_id=appointment.id,
            kind=kind,
            status=appointment.status,
            start_time=slot.start_time,
            end_time=slot.end_time,
            price=slot.price,
            location_address=slot.location_address,
            license_category=slot.license_category,
            notes=appointment.notes,
            counterparty=ProfileSummary.model_validate(other) if other is not None else None,
        )
