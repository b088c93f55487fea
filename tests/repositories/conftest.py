"""Shared fixtures for repository tests."""

import pytest

from app.repositories import (
    EmailTemplateRepo,
    EnquiryRepo,
    MemberRepo,
    MembershipRepo,
    UserRepo,
)


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
def template_repo(test_session_factory):
    """Create EmailTemplateRepo instance."""
    return EmailTemplateRepo(test_session_factory)
