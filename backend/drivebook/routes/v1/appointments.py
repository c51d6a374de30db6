# backend/drivebook/routes/v1/appointments.py
"""
Appointment routes - API v1

All business logic delegated to AppointmentService.

Endpoints:
    POST /appointments - Book a slot (students)
    GET /appointments/student - The student's appointments
    GET /appointments/instructor - The instructor's appointments
    GET /appointments/student/timeline - Student lesson timeline
    GET /appointments/instructor/timeline - Instructor "today" timeline
    GET /appointments/instructor/stats - Lesson counts and monthly earnings
    PATCH /appointments/{appointment_id}/status - Confirm, complete or cancel
"""

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import get_appointment_service, get_current_caller
from ...core.constants import ULID_PATH_PATTERN
from ...core.exceptions import DomainException
from ...models.appointment import AppointmentStatus
from ...principal import CallerContext
from ...schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    InstructorStatsResponse,
    TimelineResponse,
)
from ...services.appointment_service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Caller is not a student or the instructor is not verified"},
        409: {"description": "Time slot not available"},
    },
)
def create_appointment(
    payload: AppointmentCreate = Body(...),
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """
    Book a slot.

    Exactly one of several concurrent requests for the same slot succeeds;
    the others get 409 SLOT_UNAVAILABLE.
    """
    try:
        appointment = appointment_service.create_appointment(caller, payload)
        return AppointmentResponse.model_validate(appointment)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/student", response_model=List[AppointmentResponse])
def list_student_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> List[AppointmentResponse]:
    try:
        appointments = appointment_service.list_for_student(caller, status_filter)
        return [AppointmentResponse.model_validate(a) for a in appointments]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/instructor", response_model=List[AppointmentResponse])
def list_instructor_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> List[AppointmentResponse]:
    try:
        appointments = appointment_service.list_for_instructor(caller, status_filter)
        return [AppointmentResponse.model_validate(a) for a in appointments]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/student/timeline", response_model=TimelineResponse)
def get_student_timeline(
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> TimelineResponse:
    try:
        return appointment_service.student_timeline(caller)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/instructor/timeline", response_model=TimelineResponse)
def get_instructor_timeline(
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> TimelineResponse:
    try:
        return appointment_service.instructor_timeline(caller)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/instructor/stats", response_model=InstructorStatsResponse)
def get_instructor_stats(
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> InstructorStatsResponse:
    try:
        return appointment_service.instructor_stats(caller)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    responses={
        400: {"description": "Unknown status value"},
        403: {"description": "Caller is not a party, or the change is instructor-only"},
        404: {"description": "Appointment not found"},
        409: {"description": "Transition not allowed from the current status"},
    },
)
def update_appointment_status(
    appointment_id: str = Path(..., description="Appointment ULID", pattern=ULID_PATH_PATTERN),
    payload: AppointmentStatusUpdate = Body(...),
    caller: CallerContext = Depends(get_current_caller),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    try:
        appointment = appointment_service.update_appointment_status(
            caller, appointment_id, payload.status
        )
        return AppointmentResponse.model_validate(appointment)
    except DomainException as e:
        handle_domain_exception(e)
