"""Shared fixtures: SQLite database, in-memory Redis double, API client."""

import os

# Must be set before agentsalud.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("REDIS_URL", None)

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from agentsalud.database import get_db, get_session_factory, make_engine
from agentsalud.models.tables import (
    Appointments,
    AvailabilityBlocks,
    Base,
    DoctorAvailability,
    Doctors,
    DoctorServices,
    Organizations,
    Profiles,
    Services,
)
from agentsalud.redis_client import get_redis
from agentsalud.routers.availability import get_now

BOGOTA = ZoneInfo("America/Bogota")
MONDAY = date(2025, 6, 9)
TUESDAY = date(2025, 6, 10)
# Monday 07:00 in the organization's timezone
FIXED_NOW = datetime(2025, 6, 9, 7, 0, tzinfo=BOGOTA)


class FakeRedis:
    """Dict-backed stand-in for the few redis-py calls the app makes."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                deleted += 1
            self.ttls.pop(key, None)
        return deleted

    def ping(self):
        return True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'agentsalud.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    """
    Organization org-1 (America/Bogota) with:
      doc-1  Monday 09:00-13:00 + 13:00-17:00, booked 10:00-10:30,
             cancelled 11:00-11:30, offers svc-1
      doc-2  Monday 14:00-16:00 + duplicate 14:00-15:00 row
      doc-3  not available (is_available = false)
    """
    db.add(Organizations(id="org-1", name="Clinica Norte", timezone="America/Bogota"))
    db.add(Organizations(id="org-2", name="Clinica Sur", timezone="America/Bogota"))
    db.add_all([
        Profiles(id="p-1", organization_id="org-1", first_name="Ana", last_name="Rojas", role="doctor"),
        Profiles(id="p-2", organization_id="org-1", first_name="Luis", last_name="Mora", role="doctor"),
        Profiles(id="p-3", organization_id="org-1", first_name="Eva", last_name="Gil", role="doctor"),
    ])
    db.add_all([
        Doctors(id="doc-1", profile_id="p-1", organization_id="org-1",
                specialization="Cardiology", consultation_fee=80000.0, is_available=True),
        Doctors(id="doc-2", profile_id="p-2", organization_id="org-1",
                specialization="Dermatology", consultation_fee=60000.0, is_available=True),
        Doctors(id="doc-3", profile_id="p-3", organization_id="org-1",
                specialization="Neurology", consultation_fee=90000.0, is_available=False),
    ])
    db.add(Services(id="svc-1", organization_id="org-1", name="Cardio check", duration_minutes=30, price=50000.0))
    db.add(DoctorServices(doctor_id="doc-1", service_id="svc-1"))
    db.add_all([
        DoctorAvailability(doctor_id="doc-1", day_of_week=1, start_time="09:00", end_time="13:00"),
        DoctorAvailability(doctor_id="doc-1", day_of_week=1, start_time="13:00:00", end_time="17:00:00"),
        DoctorAvailability(doctor_id="doc-1", day_of_week=1, start_time="18:00", end_time="20:00", is_active=False),
        DoctorAvailability(doctor_id="doc-2", day_of_week=1, start_time="14:00", end_time="16:00"),
        DoctorAvailability(doctor_id="doc-2", day_of_week=1, start_time="14:00", end_time="15:00"),
        DoctorAvailability(doctor_id="doc-3", day_of_week=1, start_time="09:00", end_time="12:00"),
    ])
    db.add_all([
        Appointments(id="a-1", organization_id="org-1", doctor_id="doc-1", appointment_date=MONDAY,
                     start_time="10:00", end_time="10:30", status="confirmed"),
        Appointments(id="a-2", organization_id="org-1", doctor_id="doc-1", appointment_date=MONDAY,
                     start_time="11:00", end_time="11:30", status="cancelled"),
        Appointments(id="a-3", organization_id="org-1", doctor_id="doc-2", appointment_date=MONDAY,
                     start_time="15:00", end_time="15:30", status="pending"),
    ])
    db.commit()
    return db


@pytest.fixture
def add_vacation(db):
    def _add(doctor_id, start, end, reason=None, block_type="vacation"):
        db.add(AvailabilityBlocks(
            doctor_id=doctor_id,
            start_datetime=start,
            end_datetime=end,
            reason=reason,
            block_type=block_type,
        ))
        db.commit()
    return _add


@pytest.fixture
def client(session_factory, fake_redis, seeded):
    """Test client with database, Redis and clock overridden."""
    from agentsalud.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_now] = lambda: FIXED_NOW

    yield TestClient(app)

    app.dependency_overrides.clear()
