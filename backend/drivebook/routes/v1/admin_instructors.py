# backend/drivebook/routes/v1/admin_instructors.py
"""Admin review of instructor vehicle and document evidence."""

import logging
from typing import List, NoReturn

from fastapi import APIRouter, Body, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_admin_verification_service, require_role
from ...core.constants import ULID_PATH_PATTERN
from ...core.enums import RoleName, VerificationStatus
from ...core.exceptions import DomainException
from ...models.instructor_asset import InstructorAsset
from ...models.profile import Profile
from ...principal import CallerContext
from ...schemas.admin import (
    InstructorReviewItem,
    VerificationDecisionRequest,
    VerificationDecisionResponse,
)
from ...schemas.profile import InstructorAssetResponse
from ...services.admin_verification_service import AdminVerificationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-instructors-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    raise exc.to_http_exception()


def _review_item(profile: Profile, asset: InstructorAsset) -> InstructorReviewItem:
    return InstructorReviewItem(
        id=profile.id,
        full_name=profile.full_name,
        email=profile.email,
        phone=profile.phone,
        national_id=profile.national_id,
        license_number=profile.license_number,
        document_verified=bool(profile.document_verified),
        created_at=profile.created_at,
        asset=InstructorAssetResponse.model_validate(asset),
    )


@router.get("", response_model=List[InstructorReviewItem])
def list_instructors_for_review(
    status_filter: VerificationStatus = Query(VerificationStatus.PENDING, alias="status"),
    caller: CallerContext = Depends(require_role(RoleName.ADMIN)),
    service: AdminVerificationService = Depends(get_admin_verification_service),
) -> List[InstructorReviewItem]:
    """Instructors whose asset is in ``status`` (pending by default), oldest first."""
    try:
        rows = service.list_instructors(caller, status_filter)
        return [_review_item(profile, asset) for profile, asset in rows]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{instructor_id}/decision",
    response_model=VerificationDecisionResponse,
    responses={
        400: {"description": "Decision must be approved or rejected"},
        404: {"description": "Instructor or asset not found"},
    },
)
def decide_instructor_verification(
    instructor_id: str = Path(..., description="Instructor ULID", pattern=ULID_PATH_PATTERN),
    payload: VerificationDecisionRequest = Body(...),
    caller: CallerContext = Depends(require_role(RoleName.ADMIN)),
    service: AdminVerificationService = Depends(get_admin_verification_service),
) -> VerificationDecisionResponse:
    try:
        profile, asset = service.decide(caller, instructor_id, payload.decision)
        return VerificationDecisionResponse(
            instructor_id=profile.id,
            document_verified=bool(profile.document_verified),
            asset=InstructorAssetResponse.model_validate(asset),
        )
    except DomainException as e:
        handle_domain_exception(e)
