"""Conftest for service tests."""

import pytest

from app.repositories import EnquiryRepo, MemberRepo, MembershipRepo, UserRepo
from app.services.enquiry_service import EnquiryService
from app.services.entra_service import EntraService
from app.services.member_workflow_service import MemberWorkflowService
from app.services.membership_service import MembershipService
from app.services.user_service import UserService


@pytest.fixture
def member_repo(test_session_factory):
    """Create MemberRepo instance."""
    return MemberRepo(test_session_factory)


@pytest.fixture
def user_repo(test_session_factory):
    """Create UserRepo instance."""
    return UserRepo(test_session_factory)


@pytest.fixture
def enquiry_repo(test_session_factory):
    """Create EnquiryRepo instance."""
    return EnquiryRepo(test_session_factory)


@pytest.fixture
def membership_repo(test_session_factory):
    """Create MembershipRepo instance."""
    return MembershipRepo(test_session_factory)


@pytest.fixture
def entra_service():
    """Entra client in mock mode."""
    return EntraService(mode="mock")


@pytest.fixture
def workflow_service(member_repo, user_repo, entra_service, notifier):
    """Create MemberWorkflowService requiring two committee actions."""
    return MemberWorkflowService(
        member_repo,
        user_repo,
        entra_service,
        notifier,
        required_committee_actions=2,
        allowed_user_count=5,
    )


@pytest.fixture
def enquiry_service(enquiry_repo, notifier):
    """Create EnquiryService instance."""
    return EnquiryService(enquiry_repo, notifier)


@pytest.fixture
def membership_service(membership_repo):
    """Create MembershipService instance."""
    return MembershipService(membership_repo)


@pytest.fixture
def user_service(user_repo, membership_repo, entra_service, notifier):
    """Create UserService instance."""
    return UserService(user_repo, membership_repo, entra_service, notifier)
