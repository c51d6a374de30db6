"""
Double-booking protection across sessions.

Uses a file-backed SQLite database so two sessions see each other's commits
the way two API workers would.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from drivebook.core.enums import LicenseCategory, RoleName, VerificationStatus
from drivebook.core.exceptions import SlotUnavailableException
from drivebook.database import Base, create_db_engine
from drivebook.models.appointment import Appointment, AppointmentStatus
from drivebook.models.instructor_asset import InstructorAsset
from drivebook.models.profile import Profile
from drivebook.models.slot import Slot
from drivebook.repositories.factory import RepositoryFactory
from drivebook.schemas.appointment import AppointmentCreate
from drivebook.services.appointment_service import AppointmentService

from ..helpers import caller_for, new_id


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def seeded(session_factory):
    """An approved instructor, two students and one open slot."""
    session = session_factory()
    instructor = Profile(
        id=new_id(),
        role=RoleName.INSTRUCTOR.value,
        full_name="Ida Instructor",
        email="ida@example.com",
        document_verified=True,
    )
    first = Profile(id=new_id(), role=RoleName.STUDENT.value, full_name="First", email="first@example.com")
    second = Profile(id=new_id(), role=RoleName.STUDENT.value, full_name="Second", email="second@example.com")
    session.add_all([instructor, first, second])
    session.flush()
    session.add(
        InstructorAsset(
            instructor_id=instructor.id,
            license_category=LicenseCategory.B.value,
            verification_status=VerificationStatus.APPROVED.value,
        )
    )
    start = datetime.now(timezone.utc) + timedelta(days=1)
    slot = Slot(
        instructor_id=instructor.id,
        start_time=start,
        end_time=start + timedelta(hours=1),
        price=Decimal("40.00"),
        location_address="Depot",
    )
    session.add(slot)
    session.commit()
    session.close()
    return {"instructor": instructor, "first": first, "second": second, "slot": slot}


def _booking(seeded):
    return AppointmentCreate(slot_id=seeded["slot"].id, instructor_id=seeded["instructor"].id)


def _open_copy(slot: Slot) -> Slot:
    """Detached snapshot of the slot as it looked before anyone booked it."""
    return Slot(
        id=slot.id,
        instructor_id=slot.instructor_id,
        start_time=slot.start_time,
        end_time=slot.end_time,
        price=slot.price,
        location_address=slot.location_address,
        is_booked=False,
    )


def test_stale_reader_loses_the_compare_and_set(session_factory, seeded, monkeypatch):
    winner_session = session_factory()
    loser_session = session_factory()
    try:
        loser = AppointmentService(loser_session)
        # The loser read the slot while it was still open
        stale = _open_copy(seeded["slot"])
        monkeypatch.setattr(loser.slot_repository, "get_by_id", lambda *args, **kwargs: stale)

        AppointmentService(winner_session).create_appointment(
            caller_for(seeded["first"]), _booking(seeded)
        )

        with pytest.raises(SlotUnavailableException) as exc_info:
            loser.create_appointment(caller_for(seeded["second"]), _booking(seeded))
        assert exc_info.value.details["reason"] == "race"
    finally:
        winner_session.close()
        loser_session.close()

    check = session_factory()
    try:
        active = RepositoryFactory.create_appointment_repository(check).get_active_for_slot(
            seeded["slot"].id
        )
        assert active.student_id == seeded["first"].id
        assert check.query(Appointment).count() == 1
        assert check.get(Slot, seeded["slot"].id).is_booked is True
    finally:
        check.close()


def test_unique_index_backstops_an_inconsistent_flag(session_factory, seeded):
    """An active appointment with the flag cleared still blocks a second booking."""
    session = session_factory()
    try:
        session.add(
            Appointment(
                slot_id=seeded["slot"].id,
                student_id=seeded["first"].id,
                instructor_id=seeded["instructor"].id,
                status=AppointmentStatus.CONFIRMED.value,
            )
        )
        session.commit()

        with pytest.raises(SlotUnavailableException) as exc_info:
            AppointmentService(session).create_appointment(
                caller_for(seeded["second"]), _booking(seeded)
            )
        assert exc_info.value.details["reason"] == "race"

        # The claim on the slot was rolled back with the failed insert
        session.expire_all()
        assert session.get(Slot, seeded["slot"].id).is_booked is False
        assert session.query(Appointment).count() == 1
    finally:
        session.close()


def test_cancel_then_rebook_across_sessions(session_factory, seeded):
    student_session = session_factory()
    other_session = session_factory()
    try:
        booked = AppointmentService(student_session).create_appointment(
            caller_for(seeded["first"]), _booking(seeded)
        )
        AppointmentService(student_session).update_appointment_status(
            caller_for(seeded["first"]), booked.id, "cancelled"
        )

        rebooked = AppointmentService(other_session).create_appointment(
            caller_for(seeded["second"]), _booking(seeded)
        )
        assert rebooked.student_id == seeded["second"].id
        assert rebooked.slot.is_booked is True

        history = AppointmentService(student_session).list_for_student(caller_for(seeded["first"]))
        assert [(a.id, a.status) for a in history] == [(booked.id, "cancelled")]
    finally:
        student_session.close()
        other_session.close()
