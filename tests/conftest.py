# tests/conftest.py
import os
import tempfile

# Settings are read once at import time, so point them at throwaway locations first
_AVATAR_DIR = tempfile.mkdtemp(prefix="gearguard-avatars-")
os.environ.setdefault("GEARGUARD_DATABASE_URL", "sqlite://")
os.environ.setdefault("GEARGUARD_AVATAR_DIR", _AVATAR_DIR)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models
from database import Base, get_db
from dependencies import sessions
from security import hash_password
from services.realtime import change_feed

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _clean_state():
    Base.metadata.create_all(bind=engine)
    yield
    for ctx in list(sessions.values()):
        ctx.close()
    sessions.clear()
    with change_feed._lock:
        change_feed._subscribers.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def profile(db):
    user = models.Profile(email="tech@example.com", password=hash_password(PASSWORD),
                          full_name="Jane Tech", role="technician")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def team(db):
    row = models.Team(name="Mechanics", color="#f59e0b")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def equipment(db, team):
    row = models.Equipment(name="Lathe", serial_number="LT-001", status="Active",
                           maintenance_team_id=team.id, location="Plant A")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def make_request(db):
    counter = iter(range(1, 10_000))

    def _make(**fields):
        fields.setdefault("subject", "Oil leak")
        fields.setdefault("status", "New")
        fields.setdefault("type", "Corrective")
        fields.setdefault("priority", "Medium")
        fields.setdefault("request_number", f"REQ-T{next(counter)}")
        row = models.MaintenanceRequest(**fields)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def app():
    from main import app as fastapi_app

    def _get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signed_in(client, profile):
    r = client.post("/login", data={"email": profile.email, "password": PASSWORD},
                    follow_redirects=False)
    assert r.status_code == 302
    return client
