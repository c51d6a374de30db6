# backend/drivebook/repositories/instructor_asset_repository.py
"""Vehicle and credential metadata, one row per instructor."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.instructor_asset import InstructorAsset
from .base_repository import BaseRepository


class InstructorAssetRepository(BaseRepository[InstructorAsset]):
    def __init__(self, db: Session):
        super().__init__(db, InstructorAsset)

    def get_by_instructor(self, instructor_id: str) -> Optional[InstructorAsset]:
        with self._guard(f"get asset of instructor {instructor_id}"):
            return self._query().filter(InstructorAsset.instructor_id == instructor_id).first()
