# backend/drivebook/routes/v1/profiles.py
"""
Profile routes - API v1

Endpoints:
    POST /profiles - Register the caller's profile (student or instructor)
    GET /profiles/me - The caller's own profile
    PATCH /profiles/me - Update whitelisted profile fields
    PUT /profiles/me/instructor - Update instructor profile fields and vehicle/document data
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_current_caller, get_identity, get_profile_service
from ...core.exceptions import DomainException
from ...principal import CallerContext, Identity
from ...schemas.profile import (
    InstructorDataUpdate,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
)
from ...services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()


@router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Role cannot be self-assigned"},
        409: {"description": "Profile or email already registered"},
    },
)
def register_profile(
    payload: ProfileCreate = Body(...),
    identity: Identity = Depends(get_identity),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Create the profile for the signed-in identity.

    Only STUDENT and INSTRUCTOR can be chosen; admins are provisioned out of band.
    """
    try:
        profile = profile_service.register_profile(identity, payload)
        return ProfileResponse.model_validate(profile)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    caller: CallerContext = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    try:
        return ProfileResponse.model_validate(profile_service.get_own_profile(caller))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(
    payload: ProfileUpdate = Body(...),
    caller: CallerContext = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Update the caller's profile. Role and verification flags are never writable."""
    try:
        profile = profile_service.update_profile(caller, payload)
        return ProfileResponse.model_validate(profile)
    except DomainException as e:
        handle_domain_exception(e)


@router.put(
    "/me/instructor",
    response_model=ProfileResponse,
    responses={403: {"description": "Caller is not an instructor"}},
)
def update_my_instructor_data(
    payload: InstructorDataUpdate = Body(...),
    caller: CallerContext = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Update instructor profile fields and upsert the vehicle/document record.

    Editing an already reviewed record sends it back for admin review.
    """
    try:
        profile, _asset = profile_service.update_instructor_data(caller, payload)
        return ProfileResponse.model_validate(profile)
    except DomainException as e:
        handle_domain_exception(e)
