import os
import tempfile

# Settings are read once at import time, so the test environment must be in place first
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DB_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["USE_REDIS"] = "false"
os.environ["LOCAL"] = "true"
os.environ["LOGS_DIR"] = tempfile.mkdtemp(prefix="tutorconnect-logs-")

import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from tutorconnect.main import app
from tutorconnect.database.database import Base, get_db

# Create a test database shared by the app and the test session
engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(bind=engine)

# Override the get_db dependency to use the test database
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def client():
    return TestClient(app)

def auth(token):
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def auth_header():
    return auth

@pytest.fixture
def register_user(client):
    """Register an account through the API and return (token, user)"""
    def register(name, email, role="student", password="password123", **extra):
        response = client.post("/auth/register", json={"name": name, "email": email, "password": password, "role": role, **extra})
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["data"]["user"]
    return register

@pytest.fixture
def admin_token(client):
    return client.get("/auth/generate-admin-token").json()["token"]

@pytest.fixture
def request_terms():
    """Build the body of a tuition request"""
    def terms(tutor_id, **overrides):
        body = {
            "tutor_id": tutor_id,
            "subject": "Mathematics",
            "grade_level": "Grade 9",
            "preferred_days": ["Monday", "Wednesday"],
            "preferred_time": "17:00-18:00",
            "duration": 3,
            "start_date": (date.today() + timedelta(days=30)).isoformat(),
            "monthly_fee": 120.0,
            "notes": "Algebra focus",
        }
        body.update(overrides)
        return body
    return terms

@pytest.fixture
def student_and_tutor(register_user):
    """A registered student and tutor: (student_token, student, tutor_token, tutor)"""
    student_token, student = register_user("Sam Student", "sam@example.com")
    tutor_token, tutor = register_user("Tia Tutor", "tia@example.com", role="tutor")
    return student_token, student, tutor_token, tutor
