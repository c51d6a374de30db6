# backend/drivebook/repositories/slot_repository.py
"""
Slot Repository for the DriveBook platform.

Besides the usual reads, this repository owns the compare-and-set writes on
``slots.is_booked``. Every flip of the flag is a conditional UPDATE whose
affected row count tells the caller whether it won.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.appointment import Appointment
from ..models.slot import Slot
from ..models.types import utcnow
from .base_repository import BaseRepository


class SlotRepository(BaseRepository[Slot]):
    """Repository for instructor slots."""

    def __init__(self, db: Session):
        super().__init__(db, Slot)

    def find_overlapping(
        self, instructor_id: str, start_time: datetime, end_time: datetime
    ) -> Optional[Slot]:
        """
        First slot of the instructor overlapping ``[start_time, end_time)``.

        Half-open intervals: a slot ending exactly when the new one starts
        does not overlap.
        """
        with self._guard("check slot overlap"):
            return (
                self._query()
                .filter(
                    Slot.instructor_id == instructor_id,
                    Slot.start_time < end_time,
                    Slot.end_time > start_time,
                )
                .order_by(Slot.start_time.asc())
                .first()
            )

    def list_available(self, instructor_id: str, now: datetime, limit: int) -> List[Slot]:
        """Unbooked slots starting at or after ``now``, soonest first."""
        with self._guard("list available slots"):
            return (
                self._query()
                .filter(
                    Slot.instructor_id == instructor_id,
                    Slot.is_booked.is_(False),
                    Slot.start_time >= now,
                )
                .order_by(Slot.start_time.asc())
                .limit(limit)
                .all()
            )

    def list_for_instructor(self, instructor_id: str) -> List[Slot]:
        with self._guard("list instructor slots"):
            return (
                self._query()
                .filter(Slot.instructor_id == instructor_id)
                .order_by(Slot.start_time.asc())
                .all()
            )

    def mark_booked(self, slot_id: str) -> bool:
        """
        Atomically claim an unbooked slot.

        Returns:
            True when this call flipped ``is_booked`` from false to true,
            False when the slot is missing or someone else already holds it.
        """
        return self._flip_booked(slot_id, booked=True)

    def release(self, slot_id: str) -> bool:
        """Clear ``is_booked``; returns False if the slot was not booked."""
        return self._flip_booked(slot_id, booked=False)

    def _flip_booked(self, slot_id: str, booked: bool) -> bool:
        with self._guard(f"{'book' if booked else 'release'} slot {slot_id}"):
            affected = (
                self._query()
                .filter(Slot.id == slot_id, Slot.is_booked.is_(not booked))
                .update(
                    {Slot.is_booked: booked, Slot.updated_at: utcnow()},
                    synchronize_session="fetch",
                )
            )
            return affected == 1

    def has_appointments(self, slot_id: str) -> bool:
        """True if any appointment, cancelled or not, references the slot."""
        with self._guard(f"check appointments of slot {slot_id}"):
            hit = self.db.query(Appointment.id).filter(Appointment.slot_id == slot_id).first()
            return hit is not None

    def delete_unbooked(self, slot_id: str, instructor_id: str) -> bool:
        """Delete the slot only if it is still unbooked and owned by ``instructor_id``."""
        with self._guard(f"delete slot {slot_id}"):
            affected = (
                self._query()
                .filter(
                    Slot.id == slot_id,
                    Slot.instructor_id == instructor_id,
                    Slot.is_booked.is_(False),
                )
                .delete(synchronize_session="fetch")
            )
            return affected == 1
