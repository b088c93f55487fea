"""Membership type model."""

import uuid

from sqlalchemy import JSON, TIMESTAMP, Column, String, Text, Uuid

from . import Base, utc_now


class Membership(Base):
    """Entitlement bundle for a membership type (e.g. "voting", "basic")."""

    __tablename__ = "membership"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    entitlements = Column(JSON, nullable=False, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    deleted_at = Column(TIMESTAMP(timezone=True))

    def __repr__(self):
        return f"<Membership(type='{self.type}', features={len(self.entitlements or {})})>"
