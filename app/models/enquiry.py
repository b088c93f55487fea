"""Enquiry model."""

import uuid

from sqlalchemy import JSON, TIMESTAMP, Column, Enum, Integer, String, Text, Uuid

from app.core.enums import EnquiryStatus, EnquiryType

from . import Base, enum_values, utc_now


class Enquiry(Base):
    __tablename__ = "enquiry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_details = Column(JSON, nullable=False, default=dict)
    enquiry_type = Column(
        Enum(EnquiryType, native_enum=False, values_callable=enum_values, length=64),
        nullable=False,
        index=True,
    )
    enquiry_status = Column(
        Enum(EnquiryStatus, native_enum=False, values_callable=enum_values, length=16),
        nullable=False,
        default=EnquiryStatus.PENDING,
    )
    subject = Column(String(500))
    message = Column(Text)
    no_of_members = Column(Integer)
    member_id = Column(String(32), index=True)
    comments = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    deleted_at = Column(TIMESTAMP(timezone=True))

    @property
    def user_email(self):
        return (self.user_details or {}).get("email")

    def __repr__(self):
        return (
            f"<Enquiry(id={self.id}, type={self.enquiry_type}, "
            f"status={self.enquiry_status})>"
        )
