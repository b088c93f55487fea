"""User model."""

import uuid

from sqlalchemy import TIMESTAMP, Boolean, Column, Enum, String, Uuid

from app.core.enums import UserStatus

from . import Base, enum_values, utc_now


class User(Base):
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    user_type = Column(String(50))
    member_id = Column(String(32), index=True)
    entra_user_id = Column(String(64))
    contact_number = Column(String(50))
    designation = Column(String(100))
    newsletter_subscription = Column(Boolean, nullable=False, default=False)
    correspondence_user = Column(Boolean, nullable=False, default=False)
    marketing_focal_point = Column(Boolean, nullable=False, default=False)
    investor_focal_point = Column(Boolean, nullable=False, default=False)
    is_member = Column(Boolean, nullable=False, default=False)
    status = Column(
        Enum(UserStatus, native_enum=False, values_callable=enum_values, length=16),
        nullable=False,
        default=UserStatus.ACTIVE,
    )
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    deleted_at = Column(TIMESTAMP(timezone=True))

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', status={self.status})>"
