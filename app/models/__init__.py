"""SQLAlchemy models for the WFZO backend."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import declarative_base

# Create the declarative base
Base: Any = declarative_base()


def utc_now() -> datetime:
    """Timezone-aware timestamp used for column defaults."""
    return datetime.now(timezone.utc)


def enum_values(enum_cls) -> list[str]:
    """Persist enum members by value rather than by name."""
    return [member.value for member in enum_cls]


# Import all models so they're registered with Base.metadata
from .counter import Counter  # noqa: E402
from .email_template import EmailTemplate  # noqa: E402
from .enquiry import Enquiry  # noqa: E402
from .member import Member  # noqa: E402
from .membership import Membership  # noqa: E402
from .user import User  # noqa: E402

__all__ = [
    "Base",
    "Counter",
    "EmailTemplate",
    "Enquiry",
    "Member",
    "Membership",
    "User",
    "utc_now",
]
