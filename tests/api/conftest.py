"""API tests conftest.py - auth, rate limit and broker stand-ins."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from app.core.auth_utils import get_current_user
from app.core.config import settings
from app.core.rate_limiter import rate_limiter
from app.main import app
from app.repositories.user_repo import UserRepo
from app.services.notification_service import NotificationService


@pytest.fixture(autouse=True)
def allow_all_requests():
    """Keep Redis out of API tests; individual tests flip the return value."""
    with patch.object(
        rate_limiter, "check_rate_limit", AsyncMock(return_value=True)
    ) as check:
        yield check


@pytest.fixture(autouse=True)
def broker(monkeypatch):
    """Broker mock receiving every queued email job."""
    broker = Mock()
    monkeypatch.setattr(
        "app.dependencies.get_notification_service",
        lambda: NotificationService(lambda: broker),
    )
    return broker


@pytest.fixture
def queued_templates(broker):
    """Template codes of the email jobs published so far."""

    def _codes():
        return [
            c[0][0]["template_code"] for c in broker.publish_email_job.call_args_list
        ]

    return _codes


@pytest.fixture
def api_headers():
    return {"X-API-Key": settings.API_KEY}


@pytest.fixture
def user_repo(test_session_factory):
    """Create UserRepo instance."""
    return UserRepo(test_session_factory)


@pytest.fixture
def staff_user(user_repo):
    """Active internal user signed in through Entra."""
    return user_repo.create_user(
        "reviewer@wfzo.test",
        {
            "email": "reviewer@wfzo.test",
            "first_name": "Rana",
            "last_name": "Saleh",
            "user_type": "Internal",
        },
    )


@pytest.fixture
def act_as():
    """Authenticate requests as ``user`` without a real Entra token."""

    def _act_as(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _act_as


@pytest.fixture
def signed_in(act_as, staff_user):
    return act_as(staff_user)
