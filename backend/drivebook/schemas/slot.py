# backend/drivebook/schemas/slot.py
"""Slot schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..core.constants import MAX_ADDRESS_LENGTH
from ..core.enums import LicenseCategory
from .base import Money, RequestModel, ResponseModel


class SlotCreate(RequestModel):
    """
    New availability for the calling instructor.

    Time order, price sign and "starts in the future" are business rules
    checked by ``SlotService`` so they surface as 400 validation errors.
    """

    start_time: datetime
    end_time: datetime
    price: Money
    location_address: str = Field(..., min_length=1, max_length=MAX_ADDRESS_LENGTH)
    license_category: Optional[LicenseCategory] = None


class SlotResponse(ResponseModel):
    id: str
    instructor_id: str
    start_time: datetime
    end_time: datetime
    price: Money
    location_address: str
    license_category: Optional[LicenseCategory] = None
    is_booked: bool
