import pytest
from fastapi.testclient import TestClient
from tutorconnect import main
from tutorconnect.config import Settings
from tutorconnect.controllers import tutor_controller
from tutorconnect.errors import TutorConnectError, ValidationError, AuthError, ForbiddenError, NotFoundError, ConflictError

@pytest.fixture
def broken_listing(monkeypatch):
    def explode(db, **filters):
        raise RuntimeError("database exploded")
    monkeypatch.setattr(tutor_controller, "list_tutors", explode)

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "success"

def test_error_status_codes():
    assert ValidationError("x").status_code == 400
    assert AuthError("x").status_code == 401
    assert ForbiddenError("x").status_code == 403
    assert NotFoundError("x").status_code == 404
    assert ConflictError("x").status_code == 409
    assert isinstance(ConflictError("x"), TutorConnectError)

def test_unknown_route_is_a_fail_envelope(client):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json()["status"] == "fail"

def test_unhandled_error_shows_details_locally(broken_listing):
    client = TestClient(main.app, raise_server_exceptions=False)
    response = client.get("/tutors")
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "database exploded"}

def test_unhandled_error_hides_details_in_production(broken_listing, monkeypatch):
    monkeypatch.setattr(main, "get_settings", lambda: Settings(secret_key="test-secret-key", local=False))
    client = TestClient(main.app, raise_server_exceptions=False)
    response = client.get("/tutors")
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Internal Server Error"}
