"""User profiles, Entra provisioning and access lookups."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from app.core.config import settings
from app.core.enums import EmailTemplateCode
from app.core.logging import get_logger
from app.models.user import User
from app.repositories.base_repo import DEFAULT_PAGE_SIZE
from app.repositories.membership_repo import MembershipRepo
from app.repositories.transaction import transaction_scope
from app.repositories.user_repo import UserRepo
from app.services.entra_service import EntraError, EntraService
from app.services.membership_service import with_remaining_quota
from app.services.notification_service import NotificationService

logger = get_logger(__name__)

DEFAULT_MEMBERSHIP_TYPE = "basic"
DEFAULT_ROLE = "User"


class UserService:
    """User service."""

    def __init__(
        self,
        user_repo: UserRepo,
        membership_repo: MembershipRepo,
        entra_service: EntraService,
        notifier: NotificationService,
    ):
        self.user_repo = user_repo
        self.membership_repo = membership_repo
        self.entra_service = entra_service
        self.notifier = notifier

    def search_users(
        self,
        username: Optional[str] = None,
        user_type: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[User], int]:
        return self.user_repo.search_users(username, user_type, page, page_size)

    def create_with_entra(
        self,
        username: str,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        contact_number: Optional[str] = None,
        designation: Optional[str] = None,
        user_type: Optional[str] = None,
    ) -> User:
        """Create a local user and, when possible, its Entra account.

        Entra failures are logged; the local user is still created without an
        ``entra_user_id`` so it can be linked later.
        """
        if self.user_repo.get_by_username(username):
            raise ValueError(f"User {username} already exists")

        account: Optional[Dict[str, str]] = None
        try:
            account = self.entra_service.create_user(
                email=email or username,
                first_name=first_name or "",
                last_name=last_name or "",
                phone=contact_number,
            )
        except EntraError as e:
            logger.error(f"Entra account for {username} not created: {e}")

        user = self.user_repo.create_user(
            username,
            {
                "email": email or username,
                "first_name": first_name,
                "last_name": last_name,
                "contact_number": contact_number,
                "designation": designation,
                "user_type": user_type,
                "entra_user_id": account["entra_user_id"] if account else None,
                "is_member": False,
            },
        )

        if account:
            self.notifier.send_templated(
                username,
                EmailTemplateCode.INTERNAL_USER_CREDENTIALS,
                {
                    "first_name": first_name or username,
                    "user_email": email or username,
                    "temporary_password": account["temporary_password"],
                    "user_roles": user_type or DEFAULT_ROLE,
                    "admin_portal_url": settings.ADMIN_PORTAL_URL,
                },
            )
        return user

    def update_profile(self, username: str, fields: Dict[str, Any]) -> User:
        """Create or update the profile stored under ``username``."""
        with transaction_scope(self.user_repo.session_factory) as session:
            existing = self.user_repo.get_by_username(username, session=session)
            if existing is None:
                created = {"email": username, "is_member": False, **fields}
                user = self.user_repo.create_user(username, created, session=session)
                logger.info(f"Created profile for {username}")
            else:
                user = self.user_repo.update_user(username, fields, session=session)
        return user

    def get_access(self, username: str) -> Dict[str, Any]:
        """Entitlements for the user's membership type."""
        user = self.user_repo.get_by_username(username)
        if user is None:
            raise ValueError(f"User {username} not found")

        membership_type = (user.user_type or "").lower() or DEFAULT_MEMBERSHIP_TYPE
        membership = self.membership_repo.get_by_type(membership_type)
        entitlements = (
            with_remaining_quota(membership.entitlements) if membership else {}
        )
        return {
            "user": {"id": user.id, "username": user.username},
            "membership_id": user.member_id or str(uuid4()),
            "membership_type": membership_type,
            "entitlements": entitlements,
            "generated_at": datetime.now(timezone.utc),
        }

    def delete_profile(self, username: str) -> None:
        if not self.user_repo.soft_delete(username):
            raise ValueError(f"User {username} not found")
        logger.info(f"Deleted profile {username}")
