"""Appointment endpoints."""

from drivebook.models.appointment import AppointmentStatus

from ..helpers import new_id

APPOINTMENTS = "/api/v1/appointments"


def _book(client, headers, slot):
    return client.post(
        APPOINTMENTS,
        json={"slot_id": slot.id, "instructor_id": slot.instructor_id, "notes": "Parking practice"},
        headers=headers,
    )


class TestBooking:
    def test_book_slot(self, client, student, instructor, make_slot, auth_headers):
        slot = make_slot(instructor)
        response = _book(client, auth_headers(student), slot)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["slot"]["is_booked"] is True
        assert body["instructor"]["id"] == instructor.id
        assert body["notes"] == "Parking practice"

    def test_second_booking_conflicts(self, client, student, make_profile, instructor, make_slot, auth_headers):
        slot = make_slot(instructor)
        assert _book(client, auth_headers(student), slot).status_code == 201

        response = _book(client, auth_headers(make_profile()), slot)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "SLOT_UNAVAILABLE"
        assert body["errors"]["reason"] == "already_booked"

    def test_instructor_cannot_book(self, client, instructor, make_instructor, make_slot, auth_headers):
        slot = make_slot(make_instructor())
        assert _book(client, auth_headers(instructor), slot).status_code == 403

    def test_malformed_ids(self, client, student, auth_headers):
        response = client.post(
            APPOINTMENTS,
            json={"slot_id": "nope", "instructor_id": "nope"},
            headers=auth_headers(student),
        )
        assert response.status_code == 422


class TestStatus:
    def test_confirm_then_complete(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        appointment = make_appointment(make_slot(instructor), student)
        url = f"{APPOINTMENTS}/{appointment.id}/status"

        confirmed = client.patch(url, json={"status": "confirmed"}, headers=auth_headers(instructor))
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"
        assert confirmed.json()["confirmed_at"] is not None

        completed = client.patch(url, json={"status": "completed"}, headers=auth_headers(instructor))
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"

    def test_student_cancels_and_frees_slot(
        self, client, student, instructor, make_slot, make_appointment, auth_headers
    ):
        appointment = make_appointment(make_slot(instructor), student)
        response = client.patch(
            f"{APPOINTMENTS}/{appointment.id}/status",
            json={"status": "cancelled"},
            headers=auth_headers(student),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["cancelled_by_id"] == student.id
        assert body["slot"]["is_booked"] is False

    def test_student_cannot_confirm(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        appointment = make_appointment(make_slot(instructor), student)
        response = client.patch(
            f"{APPOINTMENTS}/{appointment.id}/status",
            json={"status": "confirmed"},
            headers=auth_headers(student),
        )
        assert response.status_code == 403
        assert response.json()["code"] == "INSTRUCTOR_ONLY_TRANSITION"

    def test_invalid_transition(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        appointment = make_appointment(make_slot(instructor), student, AppointmentStatus.COMPLETED)
        response = client.patch(
            f"{APPOINTMENTS}/{appointment.id}/status",
            json={"status": "cancelled"},
            headers=auth_headers(student),
        )
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_unknown_status_value(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        appointment = make_appointment(make_slot(instructor), student)
        response = client.patch(
            f"{APPOINTMENTS}/{appointment.id}/status",
            json={"status": "postponed"},
            headers=auth_headers(instructor),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS"

    def test_unknown_appointment(self, client, student, auth_headers):
        response = client.patch(
            f"{APPOINTMENTS}/{new_id()}/status",
            json={"status": "cancelled"},
            headers=auth_headers(student),
        )
        assert response.status_code == 404


class TestViews:
    def test_student_history_with_status_filter(
        self, client, student, instructor, make_slot, make_appointment, auth_headers
    ):
        pending = make_appointment(make_slot(instructor, hours_from_now=10), student)
        make_appointment(
            make_slot(instructor, hours_from_now=20), student, AppointmentStatus.CANCELLED
        )

        response = client.get(
            f"{APPOINTMENTS}/student", params={"status": "pending"}, headers=auth_headers(student)
        )

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [pending.id]

    def test_instructor_history(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        appointment = make_appointment(make_slot(instructor), student)
        response = client.get(f"{APPOINTMENTS}/instructor", headers=auth_headers(instructor))
        assert [a["id"] for a in response.json()] == [appointment.id]
        assert response.json()[0]["student"]["full_name"] == "Test Student"

    def test_history_is_role_scoped(self, client, student, auth_headers):
        response = client.get(f"{APPOINTMENTS}/instructor", headers=auth_headers(student))
        assert response.status_code == 403

    def test_timelines(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        appointment = make_appointment(make_slot(instructor, hours_from_now=4), student)

        student_view = client.get(f"{APPOINTMENTS}/student/timeline", headers=auth_headers(student))
        instructor_view = client.get(
            f"{APPOINTMENTS}/instructor/timeline", headers=auth_headers(instructor)
        )

        assert student_view.status_code == 200
        assert instructor_view.status_code == 200
        assert student_view.json()["items"][0]["appointment_id"] == appointment.id
        assert student_view.json()["items"][0]["kind"] == "next"
        assert instructor_view.json()["items"][0]["counterparty"]["id"] == student.id

    def test_stats(self, client, student, instructor, make_slot, make_appointment, auth_headers):
        response = client.get(f"{APPOINTMENTS}/instructor/stats", headers=auth_headers(instructor))
        assert response.status_code == 200
        assert set(response.json()) == {"today", "week", "month_earnings"}
