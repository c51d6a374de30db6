"""Appointment status state machine."""

import pytest

from drivebook.models.appointment import (
    ALLOWED_TRANSITIONS,
    INSTRUCTOR_ONLY_STATUSES,
    Appointment,
    AppointmentStatus,
    can_transition,
)

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED


class TestAllowedTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            (PENDING, CONFIRMED),
            (PENDING, CANCELLED),
            (CONFIRMED, COMPLETED),
            (CONFIRMED, CANCELLED),
        ],
    )
    def test_legal_transitions(self, current, new):
        assert can_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (PENDING, COMPLETED),
            (PENDING, PENDING),
            (CONFIRMED, PENDING),
            (COMPLETED, CANCELLED),
            (COMPLETED, CONFIRMED),
            (CANCELLED, CONFIRMED),
            (CANCELLED, PENDING),
        ],
    )
    def test_illegal_transitions(self, current, new):
        assert not can_transition(current, new)

    def test_terminal_states_have_no_exits(self):
        assert ALLOWED_TRANSITIONS[COMPLETED] == frozenset()
        assert ALLOWED_TRANSITIONS[CANCELLED] == frozenset()

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)

    def test_confirm_and_complete_are_instructor_only(self):
        assert INSTRUCTOR_ONLY_STATUSES == {CONFIRMED, COMPLETED}


class TestAppointmentModel:
    def test_defaults_to_pending(self):
        appointment = Appointment(slot_id="s", student_id="st", instructor_id="in")
        assert appointment.status == "pending"
        assert appointment.status_enum is PENDING
        assert appointment.is_active

    def test_is_party(self):
        appointment = Appointment(slot_id="s", student_id="st", instructor_id="in")
        assert appointment.is_party("st")
        assert appointment.is_party("in")
        assert not appointment.is_party("someone-else")

    def test_cancelled_is_not_active(self):
        appointment = Appointment(
            slot_id="s", student_id="st", instructor_id="in", status=CANCELLED.value
        )
        assert not appointment.is_active
