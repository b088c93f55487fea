"""Email template model."""

import uuid

from sqlalchemy import JSON, TIMESTAMP, Column, String, Text, Uuid

from . import Base, utc_now


class EmailTemplate(Base):
    """A transactional email template with per-language translations."""

    __tablename__ = "email_template"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    template_code = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    translations = Column(JSON, nullable=False, default=list)
    required_params = Column(JSON, nullable=False, default=list)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    deleted_at = Column(TIMESTAMP(timezone=True))

    def translation_for(self, language: str):
        for translation in self.translations or []:
            if translation.get("language") == language:
                return translation
        return None

    def __repr__(self):
        return f"<EmailTemplate(code='{self.template_code}')>"
