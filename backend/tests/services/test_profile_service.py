"""ProfileService registration, whitelisted updates and the instructor directory."""

from decimal import Decimal

import pytest

from drivebook.core.config import Settings
from drivebook.core.enums import LicenseCategory, RoleName, VerificationStatus
from drivebook.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from drivebook.principal import Identity
from drivebook.schemas.profile import (
    InstructorAssetUpdate,
    InstructorDataUpdate,
    ProfileCreate,
    ProfileUpdate,
)
from drivebook.services.profile_service import ProfileService

from ..helpers import caller_for, new_id


@pytest.fixture
def service(db):
    return ProfileService(db)


class TestRegisterProfile:
    def test_registers_student_unverified(self, service):
        identity = Identity(id=new_id(), email="New.Student@Example.com")
        profile = service.register_profile(
            identity, ProfileCreate(role="STUDENT", full_name="New Student")
        )
        assert profile.id == identity.id
        assert profile.role == "STUDENT"
        assert profile.email == "new.student@example.com"
        assert profile.document_verified is False

    def test_email_from_body_when_token_has_none(self, service):
        profile = service.register_profile(
            Identity(id=new_id()),
            ProfileCreate(role="INSTRUCTOR", full_name="Ines", email="ines@example.com"),
        )
        assert profile.email == "ines@example.com"
        assert profile.role == "INSTRUCTOR"

    def test_email_required(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.register_profile(Identity(id=new_id()), ProfileCreate(role="STUDENT", full_name="X"))
        assert exc_info.value.code == "EMAIL_REQUIRED"

    def test_admin_is_never_self_assigned(self, service):
        data = ProfileCreate.model_construct(role="ADMIN", full_name="Root", phone=None, email=None)
        with pytest.raises(ForbiddenException) as exc_info:
            service.register_profile(Identity(id=new_id(), email="root@example.com"), data)
        assert exc_info.value.code == "ROLE_NOT_ALLOWED"

    def test_second_registration_conflicts(self, service, student):
        with pytest.raises(ConflictException) as exc_info:
            service.register_profile(
                Identity(id=student.id, email="other@example.com"),
                ProfileCreate(role="STUDENT", full_name="Again"),
            )
        assert exc_info.value.code == "PROFILE_EXISTS"

    def test_email_taken(self, service, student):
        with pytest.raises(ConflictException) as exc_info:
            service.register_profile(
                Identity(id=new_id(), email=student.email.upper()),
                ProfileCreate(role="STUDENT", full_name="Copy"),
            )
        assert exc_info.value.code == "EMAIL_TAKEN"


class TestUpdateProfile:
    def test_applies_whitelisted_fields(self, service, student):
        updated = service.update_profile(
            caller_for(student), ProfileUpdate(full_name="Renamed", bio="Learning fast")
        )
        assert updated.full_name == "Renamed"
        assert updated.bio == "Learning fast"

    def test_ignores_protected_fields(self, service, student):
        updated = service.update_profile(
            caller_for(student),
            {"role": "ADMIN", "document_verified": True, "phone": "+33 6 00 00 00 00"},
        )
        assert updated.role == "STUDENT"
        assert updated.document_verified is False
        assert updated.phone == "+33 6 00 00 00 00"

    def test_unset_fields_are_left_alone(self, service, student):
        service.update_profile(caller_for(student), ProfileUpdate(bio="kept"))
        updated = service.update_profile(caller_for(student), ProfileUpdate(full_name="Only name"))
        assert updated.bio == "kept"

    def test_missing_profile(self, service, student):
        caller = caller_for(student)
        ghost = caller.__class__(id=new_id(), role=caller.role, email="ghost@example.com")
        with pytest.raises(NotFoundException):
            service.update_profile(ghost, ProfileUpdate(full_name="Ghost"))


class TestUpdateInstructorData:
    def test_creates_pending_asset(self, service, make_profile):
        instructor = make_profile(RoleName.INSTRUCTOR)
        profile, asset = service.update_instructor_data(
            caller_for(instructor),
            InstructorDataUpdate(
                profile=ProfileUpdate(license_number="L-1"),
                asset=InstructorAssetUpdate(
                    vehicle_model="Clio", license_category=LicenseCategory.AB
                ),
            ),
        )
        assert profile.license_number == "L-1"
        assert asset.vehicle_model == "Clio"
        assert asset.license_category == "AB"
        assert asset.verification_status == "pending"
        assert profile.document_verified is False

    def test_change_after_approval_resets_review(self, service, instructor):
        profile, asset = service.update_instructor_data(
            caller_for(instructor),
            InstructorDataUpdate(asset=InstructorAssetUpdate(license_plate="ZZ-999-ZZ")),
        )
        assert asset.license_plate == "ZZ-999-ZZ"
        assert asset.verification_status == "pending"
        assert asset.reviewed_by_id is None
        assert profile.document_verified is False

    def test_unchanged_values_keep_approval(self, service, instructor):
        profile, asset = service.update_instructor_data(
            caller_for(instructor),
            InstructorDataUpdate(asset=InstructorAssetUpdate(vehicle_model="Toyota Yaris")),
        )
        assert asset.verification_status == "approved"
        assert profile.document_verified is True

    def test_reset_can_be_disabled(self, db, instructor):
        service = ProfileService(db, config=Settings(reset_verification_on_asset_update=False))
        profile, asset = service.update_instructor_data(
            caller_for(instructor),
            InstructorDataUpdate(asset=InstructorAssetUpdate(vehicle_model="Peugeot 208")),
        )
        assert asset.verification_status == "approved"
        assert profile.document_verified is True

    def test_students_have_no_instructor_data(self, service, student):
        with pytest.raises(ForbiddenException):
            service.update_instructor_data(caller_for(student), InstructorDataUpdate())


class TestDirectory:
    def test_public_profile_hides_private_fields(self, service, instructor, make_slot, now):
        open_slot = make_slot(instructor, hours_from_now=5)
        make_slot(instructor, hours_from_now=8, is_booked=True)

        public = service.get_instructor_public_profile(instructor.id, now=now)

        assert public.id == instructor.id
        assert public.vehicle_model == "Toyota Yaris"
        assert [s.id for s in public.available_slots] == [open_slot.id]
        dumped = public.model_dump()
        assert "email" not in dumped
        assert "national_id" not in dumped

    def test_public_profile_of_student_is_not_found(self, service, student):
        with pytest.raises(NotFoundException):
            service.get_instructor_public_profile(student.id)

    def test_search_lists_only_verified(self, service, make_instructor, make_slot, now):
        verified = make_instructor(full_name="Alice")
        make_instructor(full_name="Bob", status=VerificationStatus.PENDING)
        make_slot(verified, hours_from_now=5, price="50.00")
        make_slot(verified, hours_from_now=9, price="42.00")
        make_slot(verified, hours_from_now=12, price="30.00", is_booked=True)

        results = service.search_verified_instructors(now=now)

        assert [r.id for r in results] == [verified.id]
        assert results[0].lowest_price == Decimal("42.00")

    def test_search_without_open_slots_has_no_price(self, service, instructor, now):
        results = service.search_verified_instructors(now=now)
        assert results[0].lowest_price is None

    def test_combined_category_matches_a_and_b(self, service, make_instructor, now):
        car = make_instructor(full_name="Car", category=LicenseCategory.B)
        both = make_instructor(full_name="Both", category=LicenseCategory.AB)
        bike = make_instructor(full_name="Bike", category=LicenseCategory.A)

        for_b = {r.id for r in service.search_verified_instructors(LicenseCategory.B, now=now)}
        for_a = {r.id for r in service.search_verified_instructors(LicenseCategory.A, now=now)}
        for_ab = {r.id for r in service.search_verified_instructors(LicenseCategory.AB, now=now)}

        assert for_b == {car.id, both.id}
        assert for_a == {bike.id, both.id}
        assert for_ab == {both.id}
