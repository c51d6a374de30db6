"""Instructor slot management endpoints."""

from datetime import timedelta

from ..helpers import new_id

SLOTS = "/api/v1/slots"


def _payload(start, minutes=60, **overrides):
    payload = {
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(minutes=minutes)).isoformat(),
        "price": "55.00",
        "location_address": "Place de la Gare",
        "license_category": "B",
    }
    payload.update(overrides)
    return payload


def test_create_slot(client, instructor, auth_headers, now):
    response = client.post(
        SLOTS, json=_payload(now + timedelta(days=2)), headers=auth_headers(instructor)
    )
    assert response.status_code == 201
    body = response.json()
    assert body["instructor_id"] == instructor.id
    assert body["is_booked"] is False
    assert body["price"] == 55.0


def test_naive_datetime_is_a_bad_request(client, instructor, auth_headers, now):
    start = (now + timedelta(days=2)).replace(tzinfo=None)
    response = client.post(SLOTS, json=_payload(start), headers=auth_headers(instructor))
    assert response.status_code == 400
    assert response.json()["code"] == "NAIVE_DATETIME"


def test_overlap_is_a_conflict(client, instructor, make_slot, auth_headers):
    existing = make_slot(instructor)
    response = client.post(
        SLOTS,
        json=_payload(existing.start_time + timedelta(minutes=15)),
        headers=auth_headers(instructor),
    )
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "SLOT_OVERLAP"
    assert body["errors"]["conflicting_slot_id"] == existing.id


def test_students_cannot_create(client, student, auth_headers, now):
    response = client.post(SLOTS, json=_payload(now + timedelta(days=2)), headers=auth_headers(student))
    assert response.status_code == 403


def test_list_mine(client, instructor, make_slot, auth_headers):
    slot = make_slot(instructor)
    response = client.get(f"{SLOTS}/mine", headers=auth_headers(instructor))
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [slot.id]


def test_delete_slot(client, instructor, make_slot, auth_headers):
    slot = make_slot(instructor)
    response = client.delete(f"{SLOTS}/{slot.id}", headers=auth_headers(instructor))
    assert response.status_code == 204
    assert response.content == b""


def test_delete_booked_slot(client, instructor, student, make_slot, make_appointment, auth_headers):
    slot = make_slot(instructor)
    make_appointment(slot, student)
    response = client.delete(f"{SLOTS}/{slot.id}", headers=auth_headers(instructor))
    assert response.status_code == 409
    assert response.json()["code"] == "SLOT_BOOKED"


def test_delete_unknown_slot(client, instructor, auth_headers):
    response = client.delete(f"{SLOTS}/{new_id()}", headers=auth_headers(instructor))
    assert response.status_code == 404
