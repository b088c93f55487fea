"""Member repository."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, cast
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.enums import MemberStatus
from app.core.logging import get_logger
from app.models.counter import Counter
from app.models.member import Member
from app.repositories.base_repo import DEFAULT_PAGE_SIZE, BaseRepo

logger = get_logger(__name__)

APPLICATION_COUNTER = "applicationNumber"
MEMBER_COUNTER = "memberId"

# Columns the analytics service aggregates over
ANALYTICS_COLUMNS = (
    Member.status,
    Member.organisation_info,
    Member.created_at,
    Member.approval_date,
    Member.approval_letter_date,
)


def format_business_id(prefix: str, seq: int) -> str:
    """Format a counter value as e.g. ``APP-007``."""
    return f"{prefix}-{seq:03d}"


class MemberRepo(BaseRepo):
    """Member repository."""

    def _next_sequence_implementation(self, session: Session, name: str) -> int:
        """Increment and return the named counter, creating it on first use."""
        counter = (
            session.query(Counter)
            .filter(Counter.name == name)
            .with_for_update()
            .one_or_none()
        )
        if counter is None:
            counter = Counter(name=name, seq=0)
            session.add(counter)
        counter.seq = (counter.seq or 0) + 1
        session.flush()
        return int(counter.seq)

    def next_sequence(self, name: str, session: Optional[Session] = None) -> int:
        """Allocate the next value of a named counter."""
        return cast(
            int,
            self._execute_with_session(
                lambda session: self._next_sequence_implementation(session, name),
                session=session,
                operation_name="next_sequence",
            ),
        )

    def _create_member_implementation(
        self, session: Session, fields: Dict[str, Any]
    ) -> Member:
        """Implementation of member creation."""
        if not fields.get("category"):
            raise ValueError("Member category is required")

        seq = self._next_sequence_implementation(session, APPLICATION_COUNTER)
        member = Member(application_number=format_business_id("APP", seq), **fields)
        session.add(member)
        session.flush()

        logger.info(f"Created member {member.id} ({member.application_number})")
        return member

    def create_member(
        self, fields: Dict[str, Any], session: Optional[Session] = None
    ) -> Member:
        """Create a member application with a freshly allocated application number."""
        return cast(
            Member,
            self._execute_with_session(
                lambda session: self._create_member_implementation(session, fields),
                session=session,
                operation_name="create_member",
            ),
        )

    def _assign_member_id_implementation(
        self, session: Session, member_id: UUID
    ) -> Member:
        member = self._get_by_id_implementation(session, member_id)
        if member is None:
            raise ValueError(f"Member {member_id} not found")
        if not member.member_id:
            seq = self._next_sequence_implementation(session, MEMBER_COUNTER)
            member.member_id = format_business_id("MEMBER", seq)
            session.flush()
            logger.info(f"Assigned member id {member.member_id} to {member.id}")
        return member

    def assign_member_id(
        self, member_id: UUID, session: Optional[Session] = None
    ) -> Member:
        """Give the member a ``MEMBER-NNN`` id unless it already has one."""
        return cast(
            Member,
            self._execute_with_session(
                lambda session: self._assign_member_id_implementation(
                    session, member_id
                ),
                session=session,
                operation_name="assign_member_id",
            ),
        )

    def _get_by_id_implementation(
        self, session: Session, member_id: UUID
    ) -> Optional[Member]:
        if member_id is None:
            raise ValueError("Member ID cannot be None")
        return cast(
            Optional[Member],
            session.query(Member)
            .filter(Member.id == member_id, Member.deleted_at.is_(None))
            .one_or_none(),
        )

    def get_by_id(
        self, member_id: UUID, session: Optional[Session] = None
    ) -> Optional[Member]:
        """Get a member by id (soft-deleted members excluded)."""
        return cast(
            Optional[Member],
            self._execute_with_session(
                lambda session: self._get_by_id_implementation(session, member_id),
                session=session,
                operation_name="get_member_by_id",
            ),
        )

    def _list_members_implementation(
        self,
        session: Session,
        status: Optional[MemberStatus],
        search: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[Member], int]:
        query = session.query(Member).filter(Member.deleted_at.is_(None))
        if status is not None:
            query = query.filter(Member.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Member.application_number.ilike(pattern),
                    Member.organisation_info["company_name"]
                    .as_string()
                    .ilike(pattern),
                )
            )
        query = query.order_by(Member.created_at.desc())
        return self._paginate(query, page, page_size)

    def list_members(
        self,
        status: Optional[MemberStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: Optional[Session] = None,
    ) -> Tuple[List[Member], int]:
        """List members newest first, optionally filtered by status and search text."""
        return cast(
            Tuple[List[Member], int],
            self._execute_with_session(
                lambda session: self._list_members_implementation(
                    session, status, search, page, page_size
                ),
                session=session,
                operation_name="list_members",
            ),
        )

    def _update_member_implementation(
        self, session: Session, member_id: UUID, changes: Dict[str, Any]
    ) -> Member:
        member = self._get_by_id_implementation(session, member_id)
        if member is None:
            raise ValueError(f"Member {member_id} not found")

        for field, value in changes.items():
            if not hasattr(Member, field):
                raise ValueError(f"Unknown member field: {field}")
            setattr(member, field, value)
        session.flush()

        logger.debug(f"Updated member {member_id}: {sorted(changes)}")
        return member

    def update_member(
        self,
        member_id: UUID,
        changes: Dict[str, Any],
        session: Optional[Session] = None,
    ) -> Member:
        """Apply column changes to a member.

        JSON columns must be passed as new objects; in-place mutation of the
        stored list/dict is not detected.
        """
        return cast(
            Member,
            self._execute_with_session(
                lambda session: self._update_member_implementation(
                    session, member_id, changes
                ),
                session=session,
                operation_name="update_member",
            ),
        )

    def _soft_delete_implementation(self, session: Session, member_id: UUID) -> bool:
        member = self._get_by_id_implementation(session, member_id)
        if member is None:
            return False
        member.deleted_at = datetime.now(timezone.utc)
        session.flush()
        logger.info(f"Soft deleted member {member_id}")
        return True

    def soft_delete(self, member_id: UUID, session: Optional[Session] = None) -> bool:
        """Mark a member deleted. Returns False when it does not exist."""
        return cast(
            bool,
            self._execute_with_session(
                lambda session: self._soft_delete_implementation(session, member_id),
                session=session,
                operation_name="soft_delete_member",
            ),
        )

    def get_analytics_rows(
        self,
        statuses: Optional[List[MemberStatus]] = None,
        session: Optional[Session] = None,
    ) -> List[Any]:
        """Fetch the lightweight columns analytics aggregates over."""

        def operation(session: Session) -> List[Any]:
            query = session.query(*ANALYTICS_COLUMNS).filter(
                Member.deleted_at.is_(None)
            )
            if statuses:
                query = query.filter(Member.status.in_(statuses))
            return query.all()

        return cast(
            List[Any],
            self._execute_with_session(
                operation, session=session, operation_name="get_member_analytics_rows"
            ),
        )
