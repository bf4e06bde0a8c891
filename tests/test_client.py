import pytest
from tutorconnect.client import TutorConnectClient, SessionStore, ApiError

@pytest.fixture
def api(client, tmp_path):
    return TutorConnectClient(http=client, store=SessionStore(tmp_path / "session.json"))

def test_register_logs_in(api):
    user = api.register("Sam Student", "sam@example.com", "password123")
    assert user["role"] == "student"
    assert api.store.is_authenticated
    assert api.store.user["email"] == "sam@example.com"
    assert api.me()["id"] == user["id"]

def test_session_survives_restart(api, client, tmp_path):
    api.register("Sam Student", "sam@example.com", "password123")

    restored = TutorConnectClient(http=client, store=SessionStore(tmp_path / "session.json"))
    assert restored.store.load()
    assert restored.store.user["email"] == "sam@example.com"
    assert restored.me()["email"] == "sam@example.com"

def test_logout_clears_session(api, tmp_path):
    api.register("Sam Student", "sam@example.com", "password123")
    refresh_token = api.store.refresh_token
    api.logout()

    assert not api.store.is_authenticated
    assert api.store.user is None
    assert not (tmp_path / "session.json").exists()

    # The server forgot the refresh token too
    api.store.refresh_token = refresh_token
    with pytest.raises(ApiError) as error:
        api.refresh()
    assert error.value.status_code == 401

def test_refresh(api):
    api.register("Sam Student", "sam@example.com", "password123")
    refresh_token = api.store.refresh_token
    new_token = api.refresh()
    assert new_token
    assert api.store.token == new_token
    assert api.store.refresh_token == refresh_token
    assert api.me()["email"] == "sam@example.com"

def test_errors_raise_api_error(api):
    with pytest.raises(ApiError) as error:
        api.login("nobody@example.com", "password123")
    assert error.value.status_code == 401
    assert error.value.message == "Incorrect email or password"

    with pytest.raises(ApiError) as error:
        api.me()
    assert error.value.status_code == 401

def test_booking_flow(api, client, tmp_path):
    tutor_api = TutorConnectClient(http=client, store=SessionStore())
    tutor = tutor_api.register("Tia Tutor", "tia@example.com", "password123", role="tutor", address={"city": "Lahore"})
    tutor_api.update_tutor_profile(tutor["id"], subjects=["Mathematics"], experience=4)

    api.register("Sam Student", "sam@example.com", "password123")
    found = api.list_tutors(subject="math", location="lahore")
    assert [t["id"] for t in found] == [tutor["id"]]
    assert api.get_tutor(tutor["id"])["tutor_profile"]["experience"] == 4

    request = api.create_request(
        tutor["id"],
        subject="Mathematics",
        grade_level="Grade 9",
        preferred_days=["Tuesday"],
        preferred_time="16:00-17:00",
        duration=3,
        start_date="2024-01-01",
        monthly_fee=90
    )
    assert [r["id"] for r in tutor_api.list_requests()] == [request["id"]]

    accepted = tutor_api.accept_request(request["id"])
    assert accepted["request"]["status"] == "accepted"

    booking = api.extend_booking(accepted["booking"]["id"], 2)
    assert booking["end_date"] == "2024-06-01"

    profile = api.rate_tutor(tutor["id"], 5)
    assert profile["rating"] == 5

    # Expired by now, completed on read
    assert api.list_bookings()[0]["status"] == "completed"

    with pytest.raises(ApiError) as error:
        tutor_api.reject_request(request["id"])
    assert error.value.status_code == 409

def test_admin_calls(api, client):
    admin_token = client.get("/auth/generate-admin-token").json()["token"]
    student = api.register("Sam Student", "sam@example.com", "password123")

    admin_api = TutorConnectClient(http=client, store=SessionStore())
    admin_api.store.save(admin_token, {"role": "admin"})
    assert admin_api.admin_users()["counts"]["students"] == 1
    assert admin_api.admin_requests()["counts"]["total"] == 0
    assert admin_api.toggle_block(student["id"])["is_blocked"] is True

    with pytest.raises(ApiError):
        api.me()
