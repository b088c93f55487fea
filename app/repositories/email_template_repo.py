"""Email template repository."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, cast

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.email_template import EmailTemplate
from app.repositories.base_repo import BaseRepo

logger = get_logger(__name__)


class EmailTemplateRepo(BaseRepo):
    """Email template repository."""

    def _get_by_code_implementation(
        self, session: Session, template_code: str, include_deleted: bool = False
    ) -> Optional[EmailTemplate]:
        query = session.query(EmailTemplate).filter(
            EmailTemplate.template_code == template_code
        )
        if not include_deleted:
            query = query.filter(EmailTemplate.deleted_at.is_(None))
        return cast(Optional[EmailTemplate], query.one_or_none())

    def get_by_code(
        self, template_code: str, session: Optional[Session] = None
    ) -> Optional[EmailTemplate]:
        """Get a live template by code."""
        return cast(
            Optional[EmailTemplate],
            self._execute_with_session(
                lambda session: self._get_by_code_implementation(
                    session, template_code
                ),
                session=session,
                operation_name="get_template_by_code",
            ),
        )

    def list_templates(self, session: Optional[Session] = None) -> List[EmailTemplate]:
        """List live templates ordered by code."""
        return cast(
            List[EmailTemplate],
            self._execute_with_session(
                lambda session: session.query(EmailTemplate)
                .filter(EmailTemplate.deleted_at.is_(None))
                .order_by(EmailTemplate.template_code)
                .all(),
                session=session,
                operation_name="list_templates",
            ),
        )

    def list_codes(self, session: Optional[Session] = None) -> List[str]:
        """Codes of every template row, deleted ones included."""
        return cast(
            List[str],
            self._execute_with_session(
                lambda session: [
                    row[0] for row in session.query(EmailTemplate.template_code).all()
                ],
                session=session,
                operation_name="list_template_codes",
            ),
        )

    def _create_implementation(
        self, session: Session, template_code: str, fields: Dict[str, Any]
    ) -> EmailTemplate:
        existing = self._get_by_code_implementation(
            session, template_code, include_deleted=True
        )
        if existing is not None and existing.deleted_at is None:
            raise ValueError(f"Email template {template_code} already exists")

        if existing is not None:
            template = existing
            template.deleted_at = None
            for field, value in fields.items():
                setattr(template, field, value)
        else:
            template = EmailTemplate(template_code=template_code, **fields)
            session.add(template)
        session.flush()

        logger.info(f"Created email template {template_code}")
        return template

    def create_template(
        self,
        template_code: str,
        fields: Dict[str, Any],
        session: Optional[Session] = None,
    ) -> EmailTemplate:
        """Create a template (reviving a soft-deleted one with the same code)."""
        return cast(
            EmailTemplate,
            self._execute_with_session(
                lambda session: self._create_implementation(
                    session, template_code, fields
                ),
                session=session,
                operation_name="create_template",
            ),
        )

    def _update_implementation(
        self, session: Session, template_code: str, changes: Dict[str, Any]
    ) -> EmailTemplate:
        template = self._get_by_code_implementation(session, template_code)
        if template is None:
            raise ValueError(f"Email template {template_code} not found")
        for field, value in changes.items():
            setattr(template, field, value)
        session.flush()
        return template

    def update_template(
        self,
        template_code: str,
        changes: Dict[str, Any],
        session: Optional[Session] = None,
    ) -> EmailTemplate:
        """Apply changes to an existing template."""
        return cast(
            EmailTemplate,
            self._execute_with_session(
                lambda session: self._update_implementation(
                    session, template_code, changes
                ),
                session=session,
                operation_name="update_template",
            ),
        )

    def soft_delete(
        self, template_code: str, session: Optional[Session] = None
    ) -> bool:
        """Mark a template deleted. Returns False when it does not exist."""

        def operation(session: Session) -> bool:
            template = self._get_by_code_implementation(session, template_code)
            if template is None:
                return False
            template.deleted_at = datetime.now(timezone.utc)
            session.flush()
            return True

        return cast(
            bool,
            self._execute_with_session(
                operation, session=session, operation_name="soft_delete_template"
            ),
        )
