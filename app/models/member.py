"""Member model."""

import uuid

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Boolean,
    Column,
    Enum,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)

from app.core.enums import MemberStatus, PaymentStatus

from . import Base, enum_values, utc_now


class Member(Base):
    """A member organisation, from first application through active membership.

    Nested documents (organisation info, consent, user snapshots and the
    approval/rejection histories) are stored as JSON. JSON columns only track
    reassignment, so callers replace the list/dict instead of mutating it.
    """

    __tablename__ = "member"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_number = Column(String(32), unique=True, nullable=False, index=True)
    member_id = Column(String(32), unique=True, index=True)
    category = Column(String(100), nullable=False)
    tier = Column(String(100))
    status = Column(
        Enum(
            MemberStatus,
            native_enum=False,
            values_callable=enum_values,
            length=32,
        ),
        nullable=False,
        default=MemberStatus.PENDING_FORM_SUBMISSION,
    )
    valid_until = Column(TIMESTAMP(timezone=True))
    organisation_info = Column(JSON, nullable=False, default=dict)
    member_consent = Column(JSON, nullable=False, default=dict)
    additional_info = Column(JSON, nullable=False, default=dict)
    featured_member = Column(Boolean, nullable=False, default=False)
    allowed_user_count = Column(Integer)
    user_snapshots = Column(JSON, nullable=False, default=list)
    approval_history = Column(JSON, nullable=False, default=list)
    rejection_history = Column(JSON, nullable=False, default=list)
    payment_link = Column(Text)
    payment_status = Column(
        Enum(
            PaymentStatus,
            native_enum=False,
            values_callable=enum_values,
            length=16,
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    approval_date = Column(TIMESTAMP(timezone=True))
    approval_letter_date = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    deleted_at = Column(TIMESTAMP(timezone=True))

    __table_args__ = (Index("ix_member_status_created", "status", "created_at"),)

    @property
    def company_name(self):
        return (self.organisation_info or {}).get("company_name")

    @property
    def primary_user(self):
        """The Primary user snapshot, falling back to the first snapshot."""
        snapshots = self.user_snapshots or []
        for snapshot in snapshots:
            if snapshot.get("user_type") == "Primary":
                return snapshot
        return snapshots[0] if snapshots else None

    def __repr__(self):
        return (
            f"<Member(id={self.id}, application_number='{self.application_number}', "
            f"status={self.status})>"
        )
