"""FastAPI dependencies for dependency injection."""

from functools import lru_cache

from app.core.config import settings
from app.db.db import get_session_local
from app.repositories.email_template_repo import EmailTemplateRepo
from app.repositories.enquiry_repo import EnquiryRepo
from app.repositories.member_repo import MemberRepo
from app.repositories.membership_repo import MembershipRepo
from app.repositories.user_repo import UserRepo
from app.services.analytics_service import AnalyticsService
from app.services.content_service import ContentService
from app.services.email_service import EmailSender, EmailService
from app.services.enquiry_service import EnquiryService
from app.services.entra_service import EntraService
from app.services.ga_analytics_service import GAAnalyticsService
from app.services.member_workflow_service import MemberWorkflowService
from app.services.membership_service import MembershipService
from app.services.notification_service import NotificationService
from app.services.user_service import UserService


def get_user_repo() -> UserRepo:
    """Get UserRepo instance with session factory."""
    return UserRepo(get_session_local())


def get_member_repo() -> MemberRepo:
    """Get MemberRepo instance with session factory."""
    return MemberRepo(get_session_local())


def get_enquiry_repo() -> EnquiryRepo:
    """Get EnquiryRepo instance with session factory."""
    return EnquiryRepo(get_session_local())


def get_membership_repo() -> MembershipRepo:
    """Get MembershipRepo instance with session factory."""
    return MembershipRepo(get_session_local())


def get_email_template_repo() -> EmailTemplateRepo:
    """Get EmailTemplateRepo instance with session factory."""
    return EmailTemplateRepo(get_session_local())


def get_notification_service() -> NotificationService:
    return NotificationService()


@lru_cache
def get_entra_service() -> EntraService:
    """Shared Entra client so the MSAL token cache and mock users persist."""
    return EntraService()


@lru_cache
def get_ga_analytics_service() -> GAAnalyticsService:
    return GAAnalyticsService()


@lru_cache
def get_email_sender() -> EmailSender:
    return EmailSender(
        settings.AZURE_COMMUNICATION_CONNECTION_STRING,
        settings.AZURE_COMMUNICATION_SENDER_ADDRESS,
    )


def get_email_service() -> EmailService:
    """Get EmailService instance with dependencies."""
    return EmailService(get_email_template_repo(), get_email_sender())


def get_member_workflow_service() -> MemberWorkflowService:
    """Get MemberWorkflowService instance with dependencies."""
    return MemberWorkflowService(
        get_member_repo(),
        get_user_repo(),
        get_entra_service(),
        get_notification_service(),
    )


def get_enquiry_service() -> EnquiryService:
    """Get EnquiryService instance with dependencies."""
    return EnquiryService(get_enquiry_repo(), get_notification_service())


def get_membership_service() -> MembershipService:
    return MembershipService(get_membership_repo())


def get_user_service() -> UserService:
    """Get UserService instance with dependencies."""
    return UserService(
        get_user_repo(),
        get_membership_repo(),
        get_entra_service(),
        get_notification_service(),
    )


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(get_member_repo(), get_enquiry_repo())


def get_content_service() -> ContentService:
    return ContentService(get_notification_service())
