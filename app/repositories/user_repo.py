"""User repository."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, cast

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.user import User
from app.repositories.base_repo import DEFAULT_PAGE_SIZE, BaseRepo

logger = get_logger(__name__)

# Columns a revived user keeps from its soft-deleted row
REVIVE_KEPT_COLUMNS = ("id", "username", "created_at", "updated_at")


def _reset_profile(user: User) -> None:
    """Put every other column back to its default (None when it has none)."""
    for column in User.__table__.columns:
        if column.key in REVIVE_KEPT_COLUMNS:
            continue
        default = column.default
        value = default.arg if default is not None and default.is_scalar else None
        setattr(user, column.key, value)


class UserRepo(BaseRepo):
    """User repository."""

    def _create_user_implementation(
        self, session: Session, username: str, fields: Dict[str, Any]
    ) -> User:
        """Implementation of user creation."""
        logger.debug(f"Creating user with username: {username}")

        # Input validation
        if not username or not username.strip():
            logger.warning("Attempted to create user with empty username")
            raise ValueError("Username cannot be empty or whitespace-only")
        if len(username) > 255:
            logger.warning(
                f"Attempted to create user with username too long: {len(username)} chars"
            )
            raise ValueError("Username cannot exceed 255 characters")

        existing = self._get_by_username_implementation(
            session, username.strip(), include_deleted=True
        )
        if existing is not None and existing.deleted_at is None:
            raise ValueError(f"User {username} already exists")

        if existing is not None:
            # Usernames stay unique across soft deletes, so revive the row as a
            # fresh profile
            user = existing
            _reset_profile(user)
            for field, value in fields.items():
                setattr(user, field, value)
        else:
            user = User(username=username.strip(), **fields)
            session.add(user)
        session.flush()  # Generate ID without committing

        logger.info(f"Created user: {user.id} ({user.username})")
        return user

    def create_user(
        self,
        username: str,
        fields: Optional[Dict[str, Any]] = None,
        session: Optional[Session] = None,
    ) -> User:
        """Create a new user."""
        return cast(
            User,
            self._execute_with_session(
                lambda session: self._create_user_implementation(
                    session, username, fields or {}
                ),
                session=session,
                operation_name="create_user",
            ),
        )

    def _get_by_username_implementation(
        self, session: Session, username: str, include_deleted: bool = False
    ) -> Optional[User]:
        """Implementation of user retrieval by username."""
        query = session.query(User).filter(User.username == username)
        if not include_deleted:
            query = query.filter(User.deleted_at.is_(None))
        return cast(Optional[User], query.one_or_none())

    def get_by_username(
        self, username: str, session: Optional[Session] = None
    ) -> Optional[User]:
        """Get a user by username."""
        return cast(
            Optional[User],
            self._execute_with_session(
                lambda session: self._get_by_username_implementation(session, username),
                session=session,
                operation_name="get_by_username",
            ),
        )

    def get_by_login(
        self, login: str, session: Optional[Session] = None
    ) -> Optional[User]:
        """Get a user whose username or email matches ``login`` (case-insensitive)."""
        normalized = login.strip().lower()
        return cast(
            Optional[User],
            self._execute_with_session(
                lambda session: session.query(User)
                .filter(
                    or_(
                        func.lower(User.username) == normalized,
                        func.lower(User.email) == normalized,
                    ),
                    User.deleted_at.is_(None),
                )
                .order_by(User.created_at)
                .first(),
                session=session,
                operation_name="get_by_login",
            ),
        )

    def _search_users_implementation(
        self,
        session: Session,
        username: Optional[str],
        user_type: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[User], int]:
        query = session.query(User).filter(User.deleted_at.is_(None))
        if username:
            query = query.filter(User.username.ilike(f"%{username.strip()}%"))
        if user_type:
            query = query.filter(User.user_type == user_type)
        query = query.order_by(User.created_at.desc())
        return self._paginate(query, page, page_size)

    def search_users(
        self,
        username: Optional[str] = None,
        user_type: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: Optional[Session] = None,
    ) -> Tuple[List[User], int]:
        """Search users by username substring and user type."""
        return cast(
            Tuple[List[User], int],
            self._execute_with_session(
                lambda session: self._search_users_implementation(
                    session, username, user_type, page, page_size
                ),
                session=session,
                operation_name="search_users",
            ),
        )

    def _update_user_implementation(
        self, session: Session, username: str, changes: Dict[str, Any]
    ) -> User:
        user = self._get_by_username_implementation(session, username)
        if user is None:
            raise ValueError(f"User {username} not found")
        for field, value in changes.items():
            if not hasattr(User, field):
                raise ValueError(f"Unknown user field: {field}")
            setattr(user, field, value)
        session.flush()
        return user

    def update_user(
        self,
        username: str,
        changes: Dict[str, Any],
        session: Optional[Session] = None,
    ) -> User:
        """Apply field changes to an existing user."""
        return cast(
            User,
            self._execute_with_session(
                lambda session: self._update_user_implementation(
                    session, username, changes
                ),
                session=session,
                operation_name="update_user",
            ),
        )

    def soft_delete(self, username: str, session: Optional[Session] = None) -> bool:
        """Mark a user deleted. Returns False when it does not exist."""

        def operation(session: Session) -> bool:
            user = self._get_by_username_implementation(session, username)
            if user is None:
                return False
            user.deleted_at = datetime.now(timezone.utc)
            session.flush()
            logger.info(f"Soft deleted user {username}")
            return True

        return cast(
            bool,
            self._execute_with_session(
                operation, session=session, operation_name="soft_delete_user"
            ),
        )
