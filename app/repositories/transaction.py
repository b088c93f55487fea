"""Transaction context manager for coordinated multi-repository operations."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

from app.core.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def transaction_scope(session_factory) -> Generator[Session, None, None]:
    """
    Share one session across repositories and commit it once.

    Usage:
        with transaction_scope(SessionLocal) as session:
            member = member_repo.get_by_id(member_id, session=session)
            user_repo.create_user(..., session=session)
            # Both changes committed together

    Raises:
        Exception: Any exception from repository operations (after rollback)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        try:
            session.close()
        except Exception as e:
            logger.warning(f"Error closing session: {e}")
