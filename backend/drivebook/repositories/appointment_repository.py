# backend/drivebook/repositories/appointment_repository.py
"""
Appointment Repository for the DriveBook platform.

This repository handles:
- Appointment creation (integrity errors surface for conflict handling)
- Student/instructor history and timeline queries with eager loading
- Status changes guarded by the expected current status
- Instructor statistics
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.appointment import Appointment, AppointmentStatus
from ..models.slot import Slot
from .base_repository import BaseRepository


class AppointmentRepository(BaseRepository[Appointment]):
    """Repository for appointment data access."""

    def __init__(self, db: Session):
        super().__init__(db, Appointment)

    def create(self, **kwargs: Any) -> Appointment:
        """Create an appointment, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_with_details(self, appointment_id: str) -> Optional[Appointment]:
        """Appointment with slot and both parties loaded."""
        with self._guard(f"get appointment {appointment_id}"):
            return (
                self._apply_eager_loading(self._query())
                .filter(Appointment.id == appointment_id)
                .first()
            )

    def get_active_for_slot(self, slot_id: str) -> Optional[Appointment]:
        """The non-cancelled appointment holding the slot, if any."""
        with self._guard(f"get active appointment of slot {slot_id}"):
            return (
                self._query()
                .filter(
                    Appointment.slot_id == slot_id,
                    Appointment.status != AppointmentStatus.CANCELLED.value,
                )
                .first()
            )

    def list_for_student(
        self, student_id: str, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        """Student's appointments, most recently created first."""
        query = self._apply_eager_loading(self._query()).filter(
            Appointment.student_id == student_id
        )
        if status is not None:
            query = query.filter(Appointment.status == status.value)
        return self._execute_query(
            query.order_by(Appointment.created_at.desc(), Appointment.id.desc())
        )

    def list_for_instructor(
        self, instructor_id: str, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        """Instructor's appointments, most recently created first."""
        query = self._apply_eager_loading(self._query()).filter(
            Appointment.instructor_id == instructor_id
        )
        if status is not None:
            query = query.filter(Appointment.status == status.value)
        return self._execute_query(
            query.order_by(Appointment.created_at.desc(), Appointment.id.desc())
        )

    def list_student_timeline(self, student_id: str, limit: int) -> List[Appointment]:
        """
        The ``limit`` non-cancelled appointments with the latest slot starts.

        Returned newest first; callers re-sort for display.
        """
        query = (
            self._apply_eager_loading(self._query())
            .join(Slot, Slot.id == Appointment.slot_id)
            .filter(
                Appointment.student_id == student_id,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
            .order_by(Slot.start_time.desc(), Appointment.id.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def list_instructor_timeline(self, instructor_id: str, since: datetime) -> List[Appointment]:
        """Instructor's appointments whose slot starts at or after ``since``, ascending."""
        query = (
            self._apply_eager_loading(self._query())
            .join(Slot, Slot.id == Appointment.slot_id)
            .filter(
                Appointment.instructor_id == instructor_id,
                Slot.start_time >= since,
            )
            .order_by(Slot.start_time.asc(), Appointment.id.asc())
        )
        return self._execute_query(query)

    def update_status_if(
        self,
        appointment_id: str,
        expected_status: AppointmentStatus,
        new_status: AppointmentStatus,
        **stamps: Any,
    ) -> bool:
        """
        Compare-and-set the status.

        Returns False when the row no longer has ``expected_status``, meaning a
        concurrent request changed it first.
        """
        values: dict = {Appointment.status: new_status.value}
        for key, value in stamps.items():
            values[getattr(Appointment, key)] = value
        with self._guard(f"update status of appointment {appointment_id}"):
            affected = (
                self._query()
                .filter(
                    Appointment.id == appointment_id,
                    Appointment.status == expected_status.value,
                )
                .update(values, synchronize_session="fetch")
            )
            return affected == 1

    # Statistics

    def count_active_between(self, instructor_id: str, start: datetime, end: datetime) -> int:
        """Non-cancelled appointments whose slot starts in ``[start, end)``."""
        query = (
            self.db.query(func.count(Appointment.id))
            .select_from(Appointment)
            .join(Slot, Slot.id == Appointment.slot_id)
            .filter(
                Appointment.instructor_id == instructor_id,
                Appointment.status != AppointmentStatus.CANCELLED.value,
                Slot.start_time >= start,
                Slot.start_time < end,
            )
        )
        return int(self._execute_scalar(query) or 0)

    def sum_completed_earnings_between(
        self, instructor_id: str, start: datetime, end: datetime
    ) -> Decimal:
        """Sum of slot prices for completed appointments whose slot starts in ``[start, end)``."""
        query = (
            self.db.query(func.coalesce(func.sum(Slot.price), 0))
            .select_from(Slot)
            .join(Appointment, Appointment.slot_id == Slot.id)
            .filter(
                Appointment.instructor_id == instructor_id,
                Appointment.status == AppointmentStatus.COMPLETED.value,
                Slot.start_time >= start,
                Slot.start_time < end,
            )
        )
        total = self._execute_scalar(query)
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

    # Helper method overrides

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Appointment.slot),
            joinedload(Appointment.student),
            joinedload(Appointment.instructor),
        )
