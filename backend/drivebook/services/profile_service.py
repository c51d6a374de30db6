# backend/drivebook/services/profile_service.py
"""
Profile Service for the DriveBook platform.

Handles self-service profile registration and updates, instructor
vehicle/document data, and the public instructor directory.

Self-service writes go through field whitelists: ``role`` is fixed at
registration and ``document_verified`` belongs to the admin workflow.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import Settings, settings
from ..core.enums import LicenseCategory, RoleName, VerificationStatus
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..models.instructor_asset import InstructorAsset
from ..models.profile import Profile
from ..principal import CallerContext, Identity
from ..repositories.factory import RepositoryFactory
from ..schemas.profile import (
    ASSET_UPDATE_FIELDS,
    PROFILE_UPDATE_FIELDS,
    InstructorDataUpdate,
    InstructorPublicProfile,
    InstructorSearchResult,
    ProfileCreate,
    ProfileUpdate,
)
from ..schemas.slot import SlotResponse
from .base import BaseService

logger = logging.getLogger(__name__)

SELF_ASSIGNABLE_ROLES = frozenset({RoleName.STUDENT, RoleName.INSTRUCTOR})


def _whitelisted(
    data: Union[ProfileUpdate, Mapping[str, Any], None], allowed: frozenset
) -> Dict[str, Any]:
    """Fields the caller explicitly set, restricted to ``allowed``."""
    if data is None:
        return {}
    if hasattr(data, "model_dump"):
        raw = data.model_dump(exclude_unset=True, mode="python")
    else:
        raw = dict(data)
    cleaned: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in allowed:
            continue
        if hasattr(value, "value"):
            value = value.value
        cleaned[key] = value
    return cleaned


class ProfileService(BaseService):
    """Service layer for the profile directory."""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db)
        self.config = config or settings
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.asset_repository = RepositoryFactory.create_instructor_asset_repository(db)
        self.slot_repository = RepositoryFactory.create_slot_repository(db)

    @BaseService.measure_operation("register_profile")
    def register_profile(self, identity: Identity, data: ProfileCreate) -> Profile:
        """
        Create the caller's profile on first sign-in.

        Raises:
            ForbiddenException: Requested role cannot be self-assigned
            ValidationException: No email in the token or the request
            ConflictException: Profile or email already registered
        """
        role = RoleName(data.role)
        if role not in SELF_ASSIGNABLE_ROLES:
            raise ForbiddenException("This role cannot be self-assigned", code="ROLE_NOT_ALLOWED")

        email = (identity.email or (str(data.email) if data.email else "")).strip().lower()
        if not email:
            raise ValidationException("An email address is required", code="EMAIL_REQUIRED")

        self.log_operation("register_profile", profile_id=identity.id, role=role.value)

        if self.profile_repository.get_by_id(identity.id, load_relationships=False):
            raise ConflictException("Profile already exists", code="PROFILE_EXISTS")
        if self.profile_repository.get_by_email(email):
            raise ConflictException("Email is already registered", code="EMAIL_TAKEN")

        with self.transaction():
            try:
                profile = self.profile_repository.create(
                    id=identity.id,
                    role=role.value,
                    full_name=data.full_name,
                    email=email,
                    phone=data.phone,
                    document_verified=False,
                )
            except RepositoryException as exc:
                if isinstance(exc.__cause__, IntegrityError):
                    raise ConflictException("Profile already exists", code="PROFILE_EXISTS")
                raise

        logger.info("Registered %s profile %s", role.value, profile.id)
        return profile

    @BaseService.measure_operation("get_profile")
    def get_profile(self, profile_id: str) -> Profile:
        profile = self.profile_repository.get_by_id(profile_id)
        if not profile:
            raise NotFoundException("Profile not found", code="PROFILE_NOT_FOUND")
        return profile

    def get_own_profile(self, caller: CallerContext) -> Profile:
        return self.get_profile(caller.id)

    @BaseService.measure_operation("update_profile")
    def update_profile(
        self, caller: CallerContext, data: Union[ProfileUpdate, Mapping[str, Any]]
    ) -> Profile:
        """Apply whitelisted self-service changes; other keys are ignored."""
        changes = _whitelisted(data, PROFILE_UPDATE_FIELDS)
        self.log_operation("update_profile", profile_id=caller.id, fields=sorted(changes))

        with self.transaction():
            profile = self.profile_repository.get_by_id(caller.id, load_relationships=False)
            if not profile:
                raise NotFoundException("Profile not found", code="PROFILE_NOT_FOUND")
            for key, value in changes.items():
                setattr(profile, key, value)
            self.profile_repository.flush()

        return self.get_profile(caller.id)

    @BaseService.measure_operation("update_instructor_data")
    def update_instructor_data(
        self, caller: CallerContext, data: InstructorDataUpdate
    ) -> Tuple[Profile, InstructorAsset]:
        """
        Update the instructor's profile fields and upsert their asset.

        A new asset starts as pending. When ``reset_verification_on_asset_update``
        is on, any real change to an already reviewed asset sends it back to
        pending and hides the instructor until an admin reviews it again.
        """
        self.require_role(caller, RoleName.INSTRUCTOR)

        profile_changes = _whitelisted(data.profile, PROFILE_UPDATE_FIELDS)
        asset_changes = _whitelisted(data.asset, ASSET_UPDATE_FIELDS)
        self.log_operation(
            "update_instructor_data",
            instructor_id=caller.id,
            profile_fields=sorted(profile_changes),
            asset_fields=sorted(asset_changes),
        )

        with self.transaction():
            profile = self.profile_repository.get_by_id(caller.id, load_relationships=False)
            if not profile:
                raise NotFoundException("Profile not found", code="PROFILE_NOT_FOUND")
            for key, value in profile_changes.items():
                setattr(profile, key, value)

            asset = self.asset_repository.get_by_instructor(caller.id)
            if asset is None:
                asset = self.asset_repository.create(
                    instructor_id=caller.id,
                    verification_status=VerificationStatus.PENDING.value,
                    **asset_changes,
                )
            else:
                changed = {
                    key: value
                    for key, value in asset_changes.items()
                    if getattr(asset, key) != value
                }
                for key, value in changed.items():
                    setattr(asset, key, value)
                if (
                    changed
                    and self.config.reset_verification_on_asset_update
                    and asset.verification_status != VerificationStatus.PENDING.value
                ):
                    logger.info(
                        "Asset of instructor %s changed after review; back to pending", caller.id
                    )
                    asset.verification_status = VerificationStatus.PENDING.value
                    asset.reviewed_at = None
                    asset.reviewed_by_id = None
                    profile.document_verified = False
            self.asset_repository.flush()

        return self.get_profile(caller.id), asset

    @BaseService.measure_operation("get_instructor_public_profile")
    def get_instructor_public_profile(
        self, instructor_id: str, now: Optional[datetime] = None
    ) -> InstructorPublicProfile:
        """Public projection of an instructor with their next available slots."""
        instructor = self.profile_repository.get_instructor(instructor_id)
        if not instructor:
            raise NotFoundException("Instructor not found", code="INSTRUCTOR_NOT_FOUND")

        now = now or datetime.now(timezone.utc)
        slots = self.slot_repository.list_available(
            instructor_id, now, self.config.available_slots_page_size
        )
        asset = instructor.instructor_asset
        return InstructorPublicProfile(
            id=instructor.id,
            full_name=instructor.full_name,
            phone=instructor.phone,
            avatar_url=instructor.avatar_url,
            bio=instructor.bio,
            document_verified=bool(instructor.document_verified),
            vehicle_model=asset.vehicle_model if asset else None,
            license_category=asset.license_category if asset else None,
            available_slots=[SlotResponse.model_validate(slot) for slot in slots],
        )

    @BaseService.measure_operation("search_verified_instructors")
    def search_verified_instructors(
        self,
        category: Optional[LicenseCategory] = None,
        now: Optional[datetime] = None,
    ) -> List[InstructorSearchResult]:
        """Verified instructors, optionally by license category, with their lowest open price."""
        now = now or datetime.now(timezone.utc)
        rows = self.profile_repository.search_verified_instructors(now, category)
        return [
            InstructorSearchResult(
                id=profile.id,
                full_name=profile.full_name,
                avatar_url=profile.avatar_url,
                bio=profile.bio,
                vehicle_model=asset.vehicle_model,
                license_category=asset.license_category,
                lowest_price=lowest_price,
            )
            for profile, asset, lowest_price in rows
        ]
