"""Enquiry repository."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, cast
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.enums import EnquiryStatus, EnquiryType
from app.core.logging import get_logger
from app.models.enquiry import Enquiry
from app.repositories.base_repo import DEFAULT_PAGE_SIZE, BaseRepo

logger = get_logger(__name__)


class EnquiryRepo(BaseRepo):
    """Enquiry repository."""

    def _create_enquiry_implementation(
        self, session: Session, fields: Dict[str, Any]
    ) -> Enquiry:
        if not fields.get("enquiry_type"):
            raise ValueError("Enquiry type is required")

        enquiry = Enquiry(**fields)
        session.add(enquiry)
        session.flush()

        logger.info(f"Created enquiry {enquiry.id} ({enquiry.enquiry_type})")
        return enquiry

    def create_enquiry(
        self, fields: Dict[str, Any], session: Optional[Session] = None
    ) -> Enquiry:
        """Create an enquiry."""
        return cast(
            Enquiry,
            self._execute_with_session(
                lambda session: self._create_enquiry_implementation(session, fields),
                session=session,
                operation_name="create_enquiry",
            ),
        )

    def _get_by_id_implementation(
        self, session: Session, enquiry_id: UUID
    ) -> Optional[Enquiry]:
        return cast(
            Optional[Enquiry],
            session.query(Enquiry)
            .filter(Enquiry.id == enquiry_id, Enquiry.deleted_at.is_(None))
            .one_or_none(),
        )

    def get_by_id(
        self, enquiry_id: UUID, session: Optional[Session] = None
    ) -> Optional[Enquiry]:
        """Get an enquiry by id (soft-deleted enquiries excluded)."""
        return cast(
            Optional[Enquiry],
            self._execute_with_session(
                lambda session: self._get_by_id_implementation(session, enquiry_id),
                session=session,
                operation_name="get_enquiry_by_id",
            ),
        )

    def _list_enquiries_implementation(
        self,
        session: Session,
        enquiry_type: Optional[EnquiryType],
        member_id: Optional[str],
        status: Optional[EnquiryStatus],
        page: int,
        page_size: int,
    ) -> Tuple[List[Enquiry], int]:
        query = session.query(Enquiry).filter(Enquiry.deleted_at.is_(None))
        if enquiry_type is not None:
            query = query.filter(Enquiry.enquiry_type == enquiry_type)
        if member_id is not None:
            query = query.filter(Enquiry.member_id == member_id)
        if status is not None:
            query = query.filter(Enquiry.enquiry_status == status)
        query = query.order_by(Enquiry.created_at.desc())
        return self._paginate(query, page, page_size)

    def list_enquiries(
        self,
        enquiry_type: Optional[EnquiryType] = None,
        member_id: Optional[str] = None,
        status: Optional[EnquiryStatus] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: Optional[Session] = None,
    ) -> Tuple[List[Enquiry], int]:
        """List enquiries newest first."""
        return cast(
            Tuple[List[Enquiry], int],
            self._execute_with_session(
                lambda session: self._list_enquiries_implementation(
                    session, enquiry_type, member_id, status, page, page_size
                ),
                session=session,
                operation_name="list_enquiries",
            ),
        )

    def _update_enquiry_implementation(
        self, session: Session, enquiry_id: UUID, changes: Dict[str, Any]
    ) -> Enquiry:
        enquiry = self._get_by_id_implementation(session, enquiry_id)
        if enquiry is None:
            raise ValueError(f"Enquiry {enquiry_id} not found")
        for field, value in changes.items():
            setattr(enquiry, field, value)
        session.flush()
        return enquiry

    def update_enquiry(
        self,
        enquiry_id: UUID,
        changes: Dict[str, Any],
        session: Optional[Session] = None,
    ) -> Enquiry:
        """Apply column changes to an enquiry."""
        return cast(
            Enquiry,
            self._execute_with_session(
                lambda session: self._update_enquiry_implementation(
                    session, enquiry_id, changes
                ),
                session=session,
                operation_name="update_enquiry",
            ),
        )

    def soft_delete(self, enquiry_id: UUID, session: Optional[Session] = None) -> bool:
        """Mark an enquiry deleted. Returns False when it does not exist."""

        def operation(session: Session) -> bool:
            enquiry = self._get_by_id_implementation(session, enquiry_id)
            if enquiry is None:
                return False
            enquiry.deleted_at = datetime.now(timezone.utc)
            session.flush()
            logger.info(f"Soft deleted enquiry {enquiry_id}")
            return True

        return cast(
            bool,
            self._execute_with_session(
                operation, session=session, operation_name="soft_delete_enquiry"
            ),
        )

    def get_analytics_rows(self, session: Optional[Session] = None) -> List[Any]:
        """Fetch ``(enquiry_status, created_at)`` for every live enquiry."""
        return cast(
            List[Any],
            self._execute_with_session(
                lambda session: session.query(
                    Enquiry.enquiry_status, Enquiry.created_at
                )
                .filter(Enquiry.deleted_at.is_(None))
                .all(),
                session=session,
                operation_name="get_enquiry_analytics_rows",
            ),
        )
