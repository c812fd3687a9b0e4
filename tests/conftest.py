"""
Shared fixtures: an in-memory SQLite database, users, a recording
notification sink and an API client wired to the test session.
"""
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["OPENAI_API_KEY"] = ""
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from instructor_verification import database
from instructor_verification.database import Base, get_db
from instructor_verification.models import User, UserRole
from instructor_verification.services.notification_service import NotificationSink, set_notification_sink


class RecordingSink(NotificationSink):
    """Keeps delivered notifications in memory"""

    def __init__(self):
        self.sent = []

    def notify(self, user_id, title, message, payload):
        self.sent.append({"user_id": user_id, "title": title, "message": message, "payload": payload})


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def sink():
    recording = RecordingSink()
    set_notification_sink(recording)
    return recording


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=UserRole.USER, first_name="Test", last_name="User"):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            first_name=first_name,
            last_name=last_name,
            phone="+100000000",
            role=role
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def applicant(make_user):
    return make_user(first_name="Ada", last_name="Lovelace")


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, first_name="Grace", last_name="Hopper")


@pytest.fixture
def client(session_factory, monkeypatch):
    from instructor_verification.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    # Background tasks open their own sessions
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
