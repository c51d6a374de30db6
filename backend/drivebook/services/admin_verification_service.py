# backend/drivebook/services/admin_verification_service.py
"""
Admin Verification Service for the DriveBook platform.

Admins review instructor vehicle/document evidence. A decision updates the
asset's review fields and the instructor's ``document_verified`` flag in one
transaction, keeping "approved if and only if verified" true at every commit.
"""

from datetime import datetime, timezone
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import RoleName, VerificationStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..models.instructor_asset import InstructorAsset
from ..models.profile import Profile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import CallerContext
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

DECISIONS = frozenset({VerificationStatus.APPROVED, VerificationStatus.REJECTED})


class AdminVerificationService(BaseService):
    """Review queue and decisions for instructor verification."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.asset_repository = RepositoryFactory.create_instructor_asset_repository(db)

    @BaseService.measure_operation("list_instructors")
    def list_instructors(
        self, caller: CallerContext, status: VerificationStatus = VerificationStatus.PENDING
    ) -> List[Tuple[Profile, InstructorAsset]]:
        """Instructors with their asset in the given verification status."""
        self.require_role(caller, RoleName.ADMIN)
        return self.profile_repository.list_instructors_by_verification(status)

    def list_pending_instructors(
        self, caller: CallerContext
    ) -> List[Tuple[Profile, InstructorAsset]]:
        return self.list_instructors(caller, VerificationStatus.PENDING)

    @staticmethod
    def _parse_decision(value: object) -> VerificationStatus:
        raw = value.value if isinstance(value, VerificationStatus) else str(value).strip().lower()
        if raw not in {d.value for d in DECISIONS}:
            raise ValidationException(
                f"Unsupported decision: {value}",
                code="INVALID_DECISION",
                details={"allowed": sorted(d.value for d in DECISIONS)},
            )
        return VerificationStatus(raw)

    @BaseService.measure_operation("decide")
    def decide(
        self,
        caller: CallerContext,
        instructor_id: str,
        decision: object,
        now: Optional[datetime] = None,
    ) -> Tuple[Profile, InstructorAsset]:
        """
        Approve or reject an instructor's submitted asset.

        Raises:
            ForbiddenException: Caller is not an admin
            ValidationException: Decision other than approved/rejected
            NotFoundException: Unknown or non-instructor id, or nothing submitted yet
        """
        self.require_role(caller, RoleName.ADMIN)
        verdict = self._parse_decision(decision)
        now = now or datetime.now(timezone.utc)
        self.log_operation(
            "decide", admin_id=caller.id, instructor_id=instructor_id, decision=verdict.value
        )

        with self.transaction():
            instructor = self.profile_repository.get_instructor(instructor_id)
            if instructor is None:
                raise NotFoundException("Instructor not found", code="INSTRUCTOR_NOT_FOUND")
            asset = self.asset_repository.get_by_instructor(instructor_id)
            if asset is None:
                raise NotFoundException(
                    "Instructor has not submitted documents yet", code="ASSET_NOT_FOUND"
                )

            asset.verification_status = verdict.value
            asset.reviewed_at = now
            asset.reviewed_by_id = caller.id
            instructor.document_verified = verdict == VerificationStatus.APPROVED
            self.asset_repository.flush()

        prometheus_metrics.inc_verification_decision(verdict.value)
        logger.info("Admin %s %s instructor %s", caller.id, verdict.value, instructor_id)
        return instructor, asset
