# backend/drivebook/repositories/profile_repository.py
"""
Profile Repository for the DriveBook platform.

Data access for profiles, including the instructor directory queries used
by the public search and the admin review queue.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import LicenseCategory, RoleName, VerificationStatus
from ..models.instructor_asset import InstructorAsset
from ..models.profile import Profile
from ..models.slot import Slot
from .base_repository import BaseRepository

# Categories an "AB" instructor also covers
_COMBINED_CATEGORY_MEMBERS = {LicenseCategory.A.value, LicenseCategory.B.value}


class ProfileRepository(BaseRepository[Profile]):
    """Repository for profile data access."""

    def __init__(self, db: Session):
        super().__init__(db, Profile)

    def get_by_email(self, email: str) -> Optional[Profile]:
        """Case-insensitive lookup by email."""
        with self._guard("get profile by email"):
            return (
                self._query()
                .filter(func.lower(Profile.email) == email.strip().lower())
                .first()
            )

    def get_instructor(self, instructor_id: str) -> Optional[Profile]:
        """Instructor profile with its asset loaded, or None for other roles."""
        with self._guard(f"get instructor {instructor_id}"):
            return (
                self._query()
                .options(joinedload(Profile.instructor_asset))
                .filter(
                    Profile.id == instructor_id,
                    Profile.role == RoleName.INSTRUCTOR.value,
                )
                .first()
            )

    def list_instructors_by_verification(
        self, status: VerificationStatus
    ) -> List[Tuple[Profile, InstructorAsset]]:
        """
        Instructor profiles whose asset has the given verification status.

        Oldest submissions first so the review queue is worked in order.
        """
        with self._guard("list instructors by verification"):
            rows = (
                self.db.query(Profile, InstructorAsset)
                .join(InstructorAsset, InstructorAsset.instructor_id == Profile.id)
                .filter(
                    Profile.role == RoleName.INSTRUCTOR.value,
                    InstructorAsset.verification_status == status.value,
                )
                .order_by(InstructorAsset.updated_at.asc(), Profile.id.asc())
                .all()
            )
            return [(profile, asset) for profile, asset in rows]

    def search_verified_instructors(
        self,
        now: datetime,
        category: Optional[LicenseCategory] = None,
        limit: int = 50,
    ) -> List[Tuple[Profile, InstructorAsset, Optional[Decimal]]]:
        """
        Verified instructors with their lowest future unbooked slot price.

        Instructors without open slots are still listed with a ``None`` price.
        """
        with self._guard("search verified instructors"):
            min_price = (
                self.db.query(
                    Slot.instructor_id.label("instructor_id"),
                    func.min(Slot.price).label("min_price"),
                )
                .filter(Slot.is_booked.is_(False), Slot.start_time >= now)
                .group_by(Slot.instructor_id)
                .subquery()
            )

            query: Query = (
                self.db.query(Profile, InstructorAsset, min_price.c.min_price)
                .join(InstructorAsset, InstructorAsset.instructor_id == Profile.id)
                .outerjoin(min_price, min_price.c.instructor_id == Profile.id)
                .filter(
                    Profile.role == RoleName.INSTRUCTOR.value,
                    Profile.document_verified.is_(True),
                    InstructorAsset.verification_status == VerificationStatus.APPROVED.value,
                )
            )

            if category is not None:
                if category.value in _COMBINED_CATEGORY_MEMBERS:
                    query = query.filter(
                        or_(
                            InstructorAsset.license_category == category.value,
                            InstructorAsset.license_category == LicenseCategory.AB.value,
                        )
                    )
                else:
                    query = query.filter(InstructorAsset.license_category == category.value)

            rows = query.order_by(Profile.full_name.asc(), Profile.id.asc()).limit(limit).all()
            return [
                (profile, asset, _to_money(price))
                for profile, asset, price in rows
            ]

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Profile.instructor_asset))


def _to_money(value: object) -> Optional[Decimal]:
    # SQLite hands aggregates back as floats
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))
