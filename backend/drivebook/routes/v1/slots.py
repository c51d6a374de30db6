# backend/drivebook/routes/v1/slots.py
"""
Instructor slot routes - API v1

Endpoints:
    POST /slots - Publish a slot
    GET /slots/mine - All of the caller's slots
    DELETE /slots/{slot_id} - Remove an unbooked slot
"""

import logging
from typing import List, NoReturn

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.params import Path

from ...api.dependencies import get_current_caller, get_slot_service
from ...core.constants import ULID_PATH_PATTERN
from ...core.exceptions import DomainException
from ...principal import CallerContext
from ...schemas.slot import SlotCreate, SlotResponse
from ...services.slot_service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["slots-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()


@router.post(
    "",
    response_model=SlotResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid time range, past start or negative price"},
        403: {"description": "Caller is not an instructor"},
        409: {"description": "Overlaps an existing slot"},
    },
)
def create_slot(
    payload: SlotCreate = Body(...),
    caller: CallerContext = Depends(get_current_caller),
    slot_service: SlotService = Depends(get_slot_service),
) -> SlotResponse:
    try:
        return SlotResponse.model_validate(slot_service.create_slot(caller, payload))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/mine", response_model=List[SlotResponse])
def list_my_slots(
    caller: CallerContext = Depends(get_current_caller),
    slot_service: SlotService = Depends(get_slot_service),
) -> List[SlotResponse]:
    try:
        return [SlotResponse.model_validate(slot) for slot in slot_service.list_own_slots(caller)]
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{slot_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        404: {"description": "Slot not found"},
        409: {"description": "Slot is booked or has appointment history"},
    },
)
def delete_slot(
    slot_id: str = Path(..., description="Slot ULID", pattern=ULID_PATH_PATTERN),
    caller: CallerContext = Depends(get_current_caller),
    slot_service: SlotService = Depends(get_slot_service),
) -> Response:
    try:
        slot_service.delete_slot(caller, slot_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
