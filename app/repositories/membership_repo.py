"""Membership type repository."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, cast

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.membership import Membership
from app.repositories.base_repo import BaseRepo

logger = get_logger(__name__)


def normalize_type(membership_type: str) -> str:
    """Key a membership type is stored and looked up under."""
    return (membership_type or "").strip().lower()


class MembershipRepo(BaseRepo):
    """Membership type repository."""

    def _get_by_type_implementation(
        self, session: Session, membership_type: str, include_deleted: bool = False
    ) -> Optional[Membership]:
        query = session.query(Membership).filter(
            Membership.type == normalize_type(membership_type)
        )
        if not include_deleted:
            query = query.filter(Membership.deleted_at.is_(None))
        return cast(Optional[Membership], query.one_or_none())

    def get_by_type(
        self, membership_type: str, session: Optional[Session] = None
    ) -> Optional[Membership]:
        """Get a live membership type."""
        return cast(
            Optional[Membership],
            self._execute_with_session(
                lambda session: self._get_by_type_implementation(
                    session, membership_type
                ),
                session=session,
                operation_name="get_membership_by_type",
            ),
        )

    def _upsert_implementation(
        self,
        session: Session,
        membership_type: str,
        entitlements: Dict[str, Any],
        description: Optional[str],
    ) -> Membership:
        if not normalize_type(membership_type):
            raise ValueError("Membership type cannot be empty")

        membership = self._get_by_type_implementation(
            session, membership_type, include_deleted=True
        )
        if membership is None:
            membership = Membership(type=normalize_type(membership_type))
            session.add(membership)
            logger.info(f"Creating membership type {membership_type}")
        elif membership.deleted_at is not None:
            logger.info(f"Restoring deleted membership type {membership_type}")
            membership.deleted_at = None

        membership.entitlements = entitlements
        if description is not None:
            membership.description = description
        session.flush()
        return membership

    def upsert(
        self,
        membership_type: str,
        entitlements: Dict[str, Any],
        description: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> Membership:
        """Create or replace the entitlements of a membership type."""
        return cast(
            Membership,
            self._execute_with_session(
                lambda session: self._upsert_implementation(
                    session, membership_type, entitlements, description
                ),
                session=session,
                operation_name="upsert_membership",
            ),
        )

    def soft_delete(
        self, membership_type: str, session: Optional[Session] = None
    ) -> bool:
        """Mark a membership type deleted. Returns False when it does not exist."""

        def operation(session: Session) -> bool:
            membership = self._get_by_type_implementation(session, membership_type)
            if membership is None:
                return False
            membership.deleted_at = datetime.now(timezone.utc)
            session.flush()
            logger.info(f"Soft deleted membership type {membership_type}")
            return True

        return cast(
            bool,
            self._execute_with_session(
                operation, session=session, operation_name="soft_delete_membership"
            ),
        )
