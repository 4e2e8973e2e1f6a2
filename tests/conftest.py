import os
from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite://"

from telehealth.main import app
from telehealth.api.routes.video import get_video_provider
from telehealth.core.database import get_db, get_redis, Base
from telehealth.core.security import UserRole, get_password_hash, create_user_token
from telehealth.models import (
    User, PatientProfile, DoctorProfile, AvailabilitySlot
)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Password123"

# 2024-01-15 is a Monday
MONDAY = 1


class FakeRedis:
    """In-memory stand-in for the rate-limit counters."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True


class FakeVideoProvider:
    app_id = "test-app-id"

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def build_token(self, channel_name, uid, ttl_seconds):
        if self.fail:
            raise RuntimeError("provider unavailable")
        self.calls.append((channel_name, uid, ttl_seconds))
        return f"token-for-{channel_name}"


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def video_provider():
    return FakeVideoProvider()


@pytest.fixture
def client(db_session, fake_redis, video_provider):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_video_provider] = lambda: video_provider

    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory creating users straight in the database."""
    counter = {"n": 0}

    def _make_user(role=UserRole.PATIENT, approved=True, active=True, **fields):
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"{role.value}{counter['n']}@example.com"),
            password_hash=get_password_hash(fields.pop("password", PASSWORD)),
            role=role,
            first_name=fields.pop("first_name", role.value.title()),
            last_name=fields.pop("last_name", f"User{counter['n']}"),
            phone=fields.pop("phone", None),
            is_approved=approved,
            is_active=active,
        )
        if role == UserRole.DOCTOR:
            user.doctor_profile = DoctorProfile(**fields)
        elif role == UserRole.PATIENT:
            user.patient_profile = PatientProfile(**fields)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def add_availability(db_session):
    def _add_availability(doctor, day=MONDAY, start=time(9, 0), end=time(17, 0), is_available=True):
        slot = AvailabilitySlot(
            doctor_id=doctor.id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            is_available=is_available,
        )
        db_session.add(slot)
        db_session.commit()
        return slot

    return _add_availability


@pytest.fixture
def patient(make_user):
    return make_user(UserRole.PATIENT, first_name="Ramesh", last_name="Kumar", blood_group="O+")


@pytest.fixture
def doctor(make_user, add_availability):
    """Approved doctor available Mondays 09:00-17:00."""
    user = make_user(
        UserRole.DOCTOR,
        first_name="Priya",
        last_name="Patel",
        specialization="Cardiologist",
        hospital_name="Apollo Hospital",
    )
    add_availability(user)
    return user


@pytest.fixture
def pending_doctor(make_user):
    return make_user(UserRole.DOCTOR, approved=False, first_name="Amit", last_name="Kumar")


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, first_name="System", last_name="Admin")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def booking_payload(doctor, appointment_date="2024-01-15", start="10:00", end="10:30", **extra):
    payload = {
        "doctor_id": str(doctor.id),
        "appointment_date": appointment_date,
        "start_time": start,
        "end_time": end,
    }
    payload.update(extra)
    return payload
