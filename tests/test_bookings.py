import pytest
from datetime import date, datetime, timedelta
from tutorconnect.controllers import booking_controller
from tutorconnect.database.database import User, Booking, BookingStatus

@pytest.fixture
def make_booking(client, auth_header, student_and_tutor, request_terms):
    """Send a request from the student and accept it as the tutor. Returns the booking."""
    student_token, _, tutor_token, tutor = student_and_tutor

    def make(**terms):
        response = client.post("/requests", json=request_terms(tutor["id"], **terms), headers=auth_header(student_token))
        assert response.status_code == 201, response.text
        request_id = response.json()["data"]["request"]["id"]
        response = client.put(f"/requests/{request_id}/accept", headers=auth_header(tutor_token))
        assert response.status_code == 200, response.text
        return response.json()["data"]["booking"]
    return make

def future_start():
    return (date.today() + timedelta(days=10)).isoformat()

def test_list_bookings_for_both_parties(client, auth_header, student_and_tutor, register_user, make_booking):
    student_token, student, tutor_token, tutor = student_and_tutor
    booking = make_booking(start_date=future_start())

    for token in (student_token, tutor_token):
        response = client.get("/bookings", headers=auth_header(token))
        assert response.status_code == 200
        body = response.json()
        assert body["results"] == 1
        listed = body["data"]["bookings"][0]
        assert listed["id"] == booking["id"]
        assert listed["status"] == "active"
        assert listed["student"]["id"] == student["id"]
        assert listed["tutor"]["id"] == tutor["id"]
        assert listed["tuition_request"]["id"] == booking["tuition_request_id"]
        assert listed["tuition_request"]["status"] == "accepted"
        assert listed["tuition_request"]["grade_level"] == "Grade 9"

    outsider_token, _ = register_user("Other Student", "other@example.com")
    response = client.get("/bookings", headers=auth_header(outsider_token))
    assert response.json()["results"] == 0

def test_expired_bookings_complete_on_read(client, auth_header, student_and_tutor, make_booking, db):
    student_token, _, _, _ = student_and_tutor
    booking = make_booking(start_date="2024-01-01", duration=3)
    assert booking["status"] == "active"

    response = client.get("/bookings", headers=auth_header(student_token))
    assert response.json()["data"]["bookings"][0]["status"] == "completed"

    stored = db.query(Booking).filter(Booking.id == booking["id"]).first()
    assert stored.status == BookingStatus.COMPLETED

def test_completion_happens_on_end_date(student_and_tutor, make_booking, db):
    _, student, _, _ = student_and_tutor
    make_booking(start_date="2024-01-01", duration=3)
    account = db.query(User).filter(User.id == student["id"]).first()

    bookings = booking_controller.list_bookings(db, account, now=datetime(2024, 3, 31, 23, 59))
    assert bookings[0].status == BookingStatus.ACTIVE

    bookings = booking_controller.list_bookings(db, account, now=datetime(2024, 4, 1, 0, 1))
    assert bookings[0].status == BookingStatus.COMPLETED

def test_sweep_completes_every_expired_booking(student_and_tutor, make_booking, db):
    make_booking(start_date="2024-01-01", duration=1)
    make_booking(start_date="2024-01-01", duration=6)
    make_booking(start_date=future_start())

    changed = booking_controller.complete_expired_bookings(db, now=datetime(2024, 3, 1))
    assert changed == 1
    assert db.query(Booking).filter(Booking.status == BookingStatus.COMPLETED).count() == 1
    assert db.query(Booking).filter(Booking.status == BookingStatus.ACTIVE).count() == 2

def test_extend_twice_keeps_history(client, auth_header, student_and_tutor, make_booking):
    student_token, _, _, _ = student_and_tutor
    booking = make_booking(start_date=future_start(), duration=1)
    first_end = booking["end_date"]

    client.post("/requests/extend", json={"booking_id": booking["id"], "additional_months": 1}, headers=auth_header(student_token))
    response = client.post("/requests/extend", json={"booking_id": booking["id"], "additional_months": 2}, headers=auth_header(student_token))
    assert response.status_code == 200

    extended = response.json()["data"]["booking"]
    history = extended["extension_history"]
    assert len(history) == 2
    assert history[0]["previous_end_date"] == first_end
    assert history[1]["previous_end_date"] == history[0]["new_end_date"]
    assert history[1]["new_end_date"] == extended["end_date"]
    assert extended["start_date"] == booking["start_date"]

def test_extend_permissions(client, auth_header, student_and_tutor, register_user, make_booking):
    _, _, tutor_token, _ = student_and_tutor
    other_token, _ = register_user("Other Student", "other@example.com")
    booking = make_booking(start_date=future_start())
    body = {"booking_id": booking["id"], "additional_months": 1}

    response = client.post("/requests/extend", json=body, headers=auth_header(tutor_token))
    assert response.status_code == 403

    response = client.post("/requests/extend", json=body, headers=auth_header(other_token))
    assert response.status_code == 403

    response = client.post("/requests/extend", json={"booking_id": "missing-id", "additional_months": 1}, headers=auth_header(other_token))
    assert response.status_code == 404

def test_extend_validation(client, auth_header, student_and_tutor, make_booking):
    student_token, _, _, _ = student_and_tutor
    booking = make_booking(start_date=future_start())
    response = client.post("/requests/extend", json={"booking_id": booking["id"], "additional_months": 0}, headers=auth_header(student_token))
    assert response.status_code == 400

def test_only_active_bookings_extend(client, auth_header, student_and_tutor, make_booking):
    student_token, _, _, _ = student_and_tutor
    booking = make_booking(start_date=future_start())
    client.put(f"/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=auth_header(student_token))

    response = client.post("/requests/extend", json={"booking_id": booking["id"], "additional_months": 1}, headers=auth_header(student_token))
    assert response.status_code == 409
    assert response.json()["message"] == "Only active bookings can be extended"

def test_tutor_completes_booking(client, auth_header, student_and_tutor, make_booking):
    _, _, tutor_token, _ = student_and_tutor
    booking = make_booking(start_date=future_start())
    response = client.put(f"/bookings/{booking['id']}/status", json={"status": "completed"}, headers=auth_header(tutor_token))
    assert response.status_code == 200
    assert response.json()["data"]["booking"]["status"] == "completed"

def test_student_cannot_complete_booking(client, auth_header, student_and_tutor, make_booking):
    student_token, _, _, _ = student_and_tutor
    booking = make_booking(start_date=future_start())
    response = client.put(f"/bookings/{booking['id']}/status", json={"status": "completed"}, headers=auth_header(student_token))
    assert response.status_code == 403

@pytest.mark.parametrize("canceller", ["student", "tutor"])
def test_either_party_cancels(client, auth_header, student_and_tutor, make_booking, canceller):
    student_token, _, tutor_token, _ = student_and_tutor
    token = student_token if canceller == "student" else tutor_token
    booking = make_booking(start_date=future_start())
    response = client.put(f"/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=auth_header(token))
    assert response.status_code == 200
    assert response.json()["data"]["booking"]["status"] == "cancelled"

@pytest.mark.parametrize("target", ["active", "completed", "cancelled"])
def test_terminal_bookings_do_not_change(client, auth_header, student_and_tutor, make_booking, target):
    _, _, tutor_token, _ = student_and_tutor
    booking = make_booking(start_date=future_start())
    client.put(f"/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=auth_header(tutor_token))

    response = client.put(f"/bookings/{booking['id']}/status", json={"status": target}, headers=auth_header(tutor_token))
    assert response.status_code == 409

def test_active_to_active_is_a_conflict(client, auth_header, student_and_tutor, make_booking):
    _, _, tutor_token, _ = student_and_tutor
    booking = make_booking(start_date=future_start())
    response = client.put(f"/bookings/{booking['id']}/status", json={"status": "active"}, headers=auth_header(tutor_token))
    assert response.status_code == 409

def test_status_update_errors(client, auth_header, student_and_tutor, register_user, make_booking, admin_token):
    _, _, tutor_token, _ = student_and_tutor
    outsider_token, _ = register_user("Other Tutor", "other.tutor@example.com", role="tutor")
    booking = make_booking(start_date=future_start())
    url = f"/bookings/{booking['id']}/status"

    assert client.put(url, json={"status": "paused"}, headers=auth_header(tutor_token)).status_code == 400
    assert client.put(url, json={"status": "cancelled"}, headers=auth_header(outsider_token)).status_code == 403
    assert client.put(url, json={"status": "cancelled"}, headers=auth_header(admin_token)).status_code == 403
    assert client.put("/bookings/missing-id/status", json={"status": "cancelled"}, headers=auth_header(tutor_token)).status_code == 404
