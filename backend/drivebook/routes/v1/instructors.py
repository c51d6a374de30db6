# backend/drivebook/routes/v1/instructors.py
"""
Public instructor directory - API v1

Endpoints:
    GET /instructors - Verified instructors with open slots, optional category filter
    GET /instructors/{instructor_id} - Public profile with next available slots
    GET /instructors/{instructor_id}/slots - Available future slots
"""

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_current_caller, get_profile_service, get_slot_service
from ...core.constants import ULID_PATH_PATTERN
from ...core.enums import LicenseCategory
from ...core.exceptions import DomainException
from ...principal import CallerContext
from ...schemas.profile import InstructorPublicProfile, InstructorSearchResult
from ...schemas.slot import SlotResponse
from ...services.profile_service import ProfileService
from ...services.slot_service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["instructors-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()


@router.get("", response_model=List[InstructorSearchResult])
def search_instructors(
    category: Optional[LicenseCategory] = Query(
        None, description="License category taught (AB instructors match A and B)"
    ),
    _caller: CallerContext = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
) -> List[InstructorSearchResult]:
    try:
        return profile_service.search_verified_instructors(category)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{instructor_id}",
    response_model=InstructorPublicProfile,
    responses={404: {"description": "Instructor not found"}},
)
def get_instructor(
    instructor_id: str = Path(..., description="Instructor ULID", pattern=ULID_PATH_PATTERN),
    _caller: CallerContext = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
) -> InstructorPublicProfile:
    try:
        return profile_service.get_instructor_public_profile(instructor_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{instructor_id}/slots", response_model=List[SlotResponse])
def list_instructor_slots(
    instructor_id: str = Path(..., description="Instructor ULID", pattern=ULID_PATH_PATTERN),
    _caller: CallerContext = Depends(get_current_caller),
    slot_service: SlotService = Depends(get_slot_service),
) -> List[SlotResponse]:
    """Unbooked slots starting in the future, soonest first."""
    try:
        slots = slot_service.list_available(instructor_id)
        return [SlotResponse.model_validate(slot) for slot in slots]
    except DomainException as e:
        handle_domain_exception(e)
