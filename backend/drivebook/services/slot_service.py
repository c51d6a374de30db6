# backend/drivebook/services/slot_service.py
"""
Slot Service for the DriveBook platform.

Instructors publish and remove priced time slots; anyone can list an
instructor's open slots. Slots of one instructor never overlap on
half-open ``[start, end)`` intervals.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings
from ..core.enums import RoleName
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    SlotOverlapException,
    ValidationException,
)
from ..models.slot import Slot
from ..principal import CallerContext
from ..repositories.factory import RepositoryFactory
from ..schemas.slot import SlotCreate
from .base import BaseService

logger = logging.getLogger(__name__)


def _require_aware(value: datetime, field: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationException(
            f"{field} must include a timezone offset",
            code="NAIVE_DATETIME",
            details={"field": field},
        )


class SlotService(BaseService):
    """Service layer for the slot ledger."""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db)
        self.config = config or settings
        self.repository = RepositoryFactory.create_slot_repository(db)

    def _validate_new_slot(self, data: SlotCreate, now: datetime) -> None:
        _require_aware(data.start_time, "start_time")
        _require_aware(data.end_time, "end_time")
        if data.end_time <= data.start_time:
            raise ValidationException(
                "Slot must end after it starts",
                code="INVALID_TIME_RANGE",
                details={
                    "start_time": data.start_time.isoformat(),
                    "end_time": data.end_time.isoformat(),
                },
            )
        if data.start_time <= now:
            raise ValidationException("Slot must start in the future", code="SLOT_IN_PAST")
        if Decimal(data.price) < 0:
            raise ValidationException("Price cannot be negative", code="NEGATIVE_PRICE")

    @BaseService.measure_operation("create_slot")
    def create_slot(
        self, caller: CallerContext, data: SlotCreate, now: Optional[datetime] = None
    ) -> Slot:
        """
        Publish a new slot for the calling instructor.

        Raises:
            ForbiddenException: Caller is not an instructor
            ValidationException: Bad time range, past start or negative price
            SlotOverlapException: Overlaps one of the caller's slots
        """
        self.require_role(caller, RoleName.INSTRUCTOR)
        now = now or datetime.now(timezone.utc)
        self._validate_new_slot(data, now)

        self.log_operation(
            "create_slot",
            instructor_id=caller.id,
            start_time=data.start_time.isoformat(),
            end_time=data.end_time.isoformat(),
        )

        start_time = data.start_time.astimezone(timezone.utc)
        end_time = data.end_time.astimezone(timezone.utc)

        with self.transaction():
            conflict = self.repository.find_overlapping(caller.id, start_time, end_time)
            if conflict is not None:
                raise SlotOverlapException(
                    new_range=f"{start_time.isoformat()} - {end_time.isoformat()}",
                    conflicting_range=conflict.time_range(),
                    conflicting_slot_id=conflict.id,
                )
            slot = self.repository.create(
                instructor_id=caller.id,
                start_time=start_time,
                end_time=end_time,
                price=Decimal(data.price).quantize(Decimal("0.01")),
                location_address=data.location_address,
                license_category=data.license_category.value if data.license_category else None,
                is_booked=False,
            )

        logger.info("Instructor %s published slot %s", caller.id, slot.id)
        return slot

    @BaseService.measure_operation("delete_slot")
    def delete_slot(self, caller: CallerContext, slot_id: str) -> None:
        """
        Remove one of the caller's unbooked slots.

        Slots with any appointment history are kept so past appointments keep
        their time and price.

        Raises:
            NotFoundException: Unknown slot
            ForbiddenException: Slot belongs to someone else
            ConflictException: Slot is booked (``SLOT_BOOKED``)
        """
        self.log_operation("delete_slot", instructor_id=caller.id, slot_id=slot_id)

        with self.transaction():
            slot = self.repository.get_by_id(slot_id, load_relationships=False)
            if slot is None:
                raise NotFoundException("Slot not found", code="SLOT_NOT_FOUND")
            if slot.instructor_id != caller.id:
                raise ForbiddenException("You can only delete your own slots", code="NOT_SLOT_OWNER")
            if slot.is_booked or self.repository.has_appointments(slot_id):
                raise ConflictException(
                    "Booked slots cannot be deleted", code="SLOT_BOOKED", details={"slot_id": slot_id}
                )
            # Conditional delete: a booking that lands after the checks above wins
            if not self.repository.delete_unbooked(slot_id, caller.id):
                raise ConflictException(
                    "Booked slots cannot be deleted", code="SLOT_BOOKED", details={"slot_id": slot_id}
                )

        logger.info("Instructor %s deleted slot %s", caller.id, slot_id)

    @BaseService.measure_operation("list_available")
    def list_available(self, instructor_id: str, now: Optional[datetime] = None) -> List[Slot]:
        """Open future slots of an instructor, soonest first, one page."""
        now = now or datetime.now(timezone.utc)
        return self.repository.list_available(
            instructor_id, now, self.config.available_slots_page_size
        )

    @BaseService.measure_operation("list_own_slots")
    def list_own_slots(self, caller: CallerContext) -> List[Slot]:
        self.require_role(caller, RoleName.INSTRUCTOR)
        return self.repository.list_for_instructor(caller.id)
