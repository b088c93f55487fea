"""Main conftest.py shared by every test package."""

import os

# Test environment must be in place before any app module reads settings
os.environ.setdefault("APP_DATABASE_URL", "sqlite://")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ENTRA_INTEGRATION_MODE", "mock")
os.environ.setdefault("WFZO_ADMIN_EMAIL", "admin@wfzo.test")
os.environ.setdefault("FRONTEND_BASE_URL", "https://wfzo.test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db.db import get_engine, get_session_local  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Base,
    Counter,
    EmailTemplate,
    Enquiry,
    Member,
    Membership,
    User,
)
from tests.helpers.recording_notifier import RecordingNotifier  # noqa: E402


@pytest.fixture(scope="session")
def test_engine():
    """Create the tables once per session on the app's engine."""
    engine = get_engine()
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="session")
def test_session_factory(test_engine):
    """Session factory shared with the API dependencies."""
    return get_session_local()


@pytest.fixture
def test_session(test_session_factory):
    """Create a clean database session for each test."""
    session = test_session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def clean_db(test_session):
    """Automatically clean database state before each test."""
    for model in (Enquiry, Member, Membership, User, EmailTemplate, Counter):
        test_session.query(model).delete()
    test_session.commit()


@pytest.fixture
def notifier():
    """Notifier that records emails instead of queueing them."""
    return RecordingNotifier()


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()
