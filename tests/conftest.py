"""Shared fixtures: in-memory database, controllable clock, fake dispatchers."""

import os

# Configuration must be in place before the service modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "correct-horse"
os.environ.pop("ADMIN_PASSWORD_HASH", None)
os.environ.pop("CONTACT_EMAIL", None)
os.environ.pop("APP_ENV", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nushu_service.app import app
from nushu_service.shared.admin.routes import get_login_rate_limiter
from nushu_service.shared.auth.auth import create_access_token
from nushu_service.shared.contact.notifications import NotificationDispatcher, get_notification_dispatcher
from nushu_service.shared.contact.routes import get_contact_rate_limiter
from nushu_service.shared.database import Base, get_db
from nushu_service.shared.rate_limit import FixedWindowRateLimiter


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingDispatcher(NotificationDispatcher):
    def __init__(self):
        self.sent = []

    def deliver(self, submission):
        self.sent.append(submission)


class FailingDispatcher(NotificationDispatcher):
    def __init__(self):
        self.attempts = 0

    def deliver(self, submission):
        self.attempts += 1
        raise ConnectionError("SMTP server unreachable")


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and clean up after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def contact_limiter(clock):
    return FixedWindowRateLimiter(max_attempts=3, window_seconds=3600, clock=clock)


@pytest.fixture
def login_limiter(clock):
    return FixedWindowRateLimiter(max_attempts=5, window_seconds=900, clock=clock)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(contact_limiter, login_limiter, dispatcher):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_contact_rate_limiter] = lambda: contact_limiter
    app.dependency_overrides[get_login_rate_limiter] = lambda: login_limiter
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
