# backend/tests/conftest.py
"""
Pytest configuration for the DriveBook backend.

Every test gets a fresh in-memory SQLite database. The engine uses a
StaticPool so the TestClient's worker threads and the test body share the
same connection, and therefore the same data.
"""

import os

# Set testing mode BEFORE any drivebook imports
os.environ["ENVIRONMENT"] = "test"
os.environ["IS_TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ.setdefault("JWT_SECRET", "test-secret-for-the-drivebook-suite-0123456789")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from drivebook import models  # noqa: F401
from drivebook.api.dependencies.database import get_db
from drivebook.api.dependencies.services import get_document_storage_service
from drivebook.auth import create_access_token
from drivebook.core.enums import LicenseCategory, RoleName, VerificationStatus
from drivebook.database import Base, create_db_engine
from drivebook.main import app
from drivebook.models.appointment import Appointment, AppointmentStatus
from drivebook.models.instructor_asset import InstructorAsset
from drivebook.models.profile import Profile
from drivebook.models.slot import Slot
from drivebook.services.document_storage_service import DocumentStorageService
from drivebook.services.storage_null_client import NullStorageClient

from .helpers import new_id


# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def test_engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Session:
    """Session bound to the per-test database; services commit through it."""
    TestSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
    )
    session = TestSessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_profile(db: Session) -> Callable[..., Profile]:
    counter = {"n": 0}

    def _make(
        role: RoleName = RoleName.STUDENT,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        document_verified: bool = False,
    ) -> Profile:
        counter["n"] += 1
        profile = Profile(
            id=new_id(),
            role=role.value,
            full_name=full_name or f"{role.value.title()} {counter['n']}",
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            document_verified=document_verified,
        )
        db.add(profile)
        db.commit()
        return profile

    return _make


@pytest.fixture
def make_instructor(db: Session, make_profile) -> Callable[..., Profile]:
    """Instructor with an asset; approved and verified unless told otherwise."""

    def _make(
        status: VerificationStatus = VerificationStatus.APPROVED,
        category: LicenseCategory = LicenseCategory.B,
        full_name: Optional[str] = None,
    ) -> Profile:
        instructor = make_profile(
            RoleName.INSTRUCTOR,
            full_name=full_name,
            document_verified=status == VerificationStatus.APPROVED,
        )
        db.add(
            InstructorAsset(
                instructor_id=instructor.id,
                vehicle_model="Toyota Yaris",
                license_plate="AB-123-CD",
                license_category=category.value,
                verification_status=status.value,
            )
        )
        db.commit()
        return instructor

    return _make


@pytest.fixture
def make_slot(db: Session, now: datetime) -> Callable[..., Slot]:
    """Slot inserted directly, so past slots can be created for history tests."""

    def _make(
        instructor: Profile,
        start: Optional[datetime] = None,
        hours_from_now: float = 24,
        duration_minutes: int = 60,
        price: str = "45.00",
        is_booked: bool = False,
    ) -> Slot:
        start_time = start or now + timedelta(hours=hours_from_now)
        slot = Slot(
            instructor_id=instructor.id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration_minutes),
            price=Decimal(price),
            location_address="12 Test Street",
            license_category=LicenseCategory.B.value,
            is_booked=is_booked,
        )
        db.add(slot)
        db.commit()
        return slot

    return _make


@pytest.fixture
def make_appointment(db: Session) -> Callable[..., Appointment]:
    """Appointment inserted directly; keeps the slot's booked flag consistent."""

    def _make(
        slot: Slot,
        student: Profile,
        status: AppointmentStatus = AppointmentStatus.PENDING,
    ) -> Appointment:
        appointment = Appointment(
            slot_id=slot.id,
            student_id=student.id,
            instructor_id=slot.instructor_id,
            status=status.value,
        )
        slot.is_booked = status != AppointmentStatus.CANCELLED
        db.add(appointment)
        db.commit()
        return appointment

    return _make


@pytest.fixture
def student(make_profile) -> Profile:
    return make_profile(RoleName.STUDENT, full_name="Test Student")


@pytest.fixture
def instructor(make_instructor) -> Profile:
    return make_instructor(full_name="Test Instructor")


@pytest.fixture
def admin(make_profile) -> Profile:
    return make_profile(RoleName.ADMIN, full_name="Test Admin")


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def storage_client() -> NullStorageClient:
    return NullStorageClient()


@pytest.fixture
def client(db: Session, storage_client: NullStorageClient):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage_service] = lambda: DocumentStorageService(
        storage=storage_client
    )

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def auth_headers() -> Callable[[Profile], Dict[str, str]]:
    def _headers(profile: Profile) -> Dict[str, str]:
        token = create_access_token(profile.id, email=profile.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
