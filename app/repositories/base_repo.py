"""Base repository class."""

from typing import Any, List, Tuple

from sqlalchemy.orm import Query

from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


def clamp_page_size(page_size: int) -> int:
    """Page size actually applied to a list request."""
    return min(max(page_size, 1), MAX_PAGE_SIZE)


class BaseRepo:
    """Base repository class."""

    def __init__(self, session_factory):
        """Initialize the repository."""
        self.session_factory = session_factory

    def _execute_with_session(self, operation, session=None, operation_name="unknown"):
        """Run ``operation`` in the caller's session or in a committed one of its own."""
        if session is not None:
            # Coordinated mode - use provided session, don't commit
            return operation(session)
        # Auto-commit mode - create, use, commit, close
        session = self.session_factory()
        try:
            result = operation(session)
            session.commit()
            return result
        except Exception as e:
            session.rollback()
            self._log_error(operation_name, e)
            raise
        finally:
            session.close()

    def _paginate(
        self, query: Query, page: int, page_size: int
    ) -> Tuple[List[Any], int]:
        """Return one page of ``query`` and the total row count.

        ``page`` is 1-based; ``page_size`` is clamped to 1..MAX_PAGE_SIZE.
        """
        page = max(page, 1)
        page_size = clamp_page_size(page_size)
        total = query.order_by(None).count()
        items = query.offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def _log_error(self, operation_name, error, **context):
        """Log an error."""
        logger.error(f"Error in {operation_name}: {error}", extra=context)
