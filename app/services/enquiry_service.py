"""Enquiry submission and staff decisions."""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from app.core.config import settings
from app.core.enums import EmailTemplateCode, EnquiryStatus, EnquiryType
from app.core.logging import get_logger
from app.models.enquiry import Enquiry
from app.repositories.base_repo import DEFAULT_PAGE_SIZE
from app.repositories.enquiry_repo import EnquiryRepo
from app.repositories.transaction import transaction_scope
from app.services.notification_service import NotificationService

logger = get_logger(__name__)

# Business rules constants
MEMBER_ENQUIRIES_PAGE_SIZE = 50
DECISION_TEMPLATES = {
    EnquiryStatus.APPROVED: EmailTemplateCode.ENQUIRY_APPROVED,
    EnquiryStatus.REJECTED: EmailTemplateCode.ENQUIRY_REJECTED,
}


class EnquiryService:
    """Enquiry service."""

    def __init__(self, enquiry_repo: EnquiryRepo, notifier: NotificationService):
        self.enquiry_repo = enquiry_repo
        self.notifier = notifier

    def create_enquiry(
        self,
        enquiry_type: EnquiryType,
        user_details: Dict[str, Any],
        subject: Optional[str] = None,
        message: Optional[str] = None,
        no_of_members: Optional[int] = None,
        member_id: Optional[str] = None,
    ) -> Enquiry:
        """Store a new enquiry and notify staff and the submitter."""
        if enquiry_type == EnquiryType.SUBMIT_QUESTION and not (
            subject and subject.strip()
        ):
            raise ValueError("Subject is required for submit_question enquiries")

        enquiry = self.enquiry_repo.create_enquiry(
            {
                "enquiry_type": enquiry_type,
                "enquiry_status": EnquiryStatus.PENDING,
                "user_details": user_details or {},
                "subject": subject,
                "message": message,
                "no_of_members": no_of_members,
                "member_id": member_id,
            }
        )

        params = self._email_params(enquiry)
        self.notifier.send_templated(
            settings.WFZO_ADMIN_EMAIL, EmailTemplateCode.ENQUIRY_ADMIN_NOTIFICATION, params
        )
        if enquiry_type != EnquiryType.BECOME_FEATURED_MEMBER:
            if enquiry.user_email:
                self.notifier.send_templated(
                    enquiry.user_email,
                    EmailTemplateCode.ENQUIRY_ACKNOWLEDGEMENT,
                    params,
                )
            else:
                logger.warning(
                    f"Enquiry {enquiry.id} has no user email, acknowledgement not sent"
                )
        return enquiry

    def update_enquiry(
        self,
        enquiry_id: UUID,
        status: EnquiryStatus,
        comments: Optional[str] = None,
    ) -> Enquiry:
        """Approve or reject a pending enquiry and tell the submitter."""
        if status == EnquiryStatus.PENDING:
            raise ValueError("Enquiry status can only be changed to approved or rejected")

        with transaction_scope(self.enquiry_repo.session_factory) as session:
            enquiry = self.enquiry_repo.get_by_id(enquiry_id, session=session)
            if enquiry is None:
                raise ValueError(f"Enquiry {enquiry_id} not found")
            if enquiry.enquiry_status != EnquiryStatus.PENDING:
                raise ValueError(
                    f"Enquiry has already been {enquiry.enquiry_status.value}"
                )
            enquiry = self.enquiry_repo.update_enquiry(
                enquiry_id,
                {"enquiry_status": status, "comments": comments},
                session=session,
            )

        logger.info(f"Enquiry {enquiry_id} marked {status.value}")
        if enquiry.user_email:
            self.notifier.send_templated(
                enquiry.user_email,
                DECISION_TEMPLATES[status],
                {**self._email_params(enquiry), "comments": comments or ""},
            )
        else:
            logger.warning(f"Enquiry {enquiry_id} has no user email, decision not sent")
        return enquiry

    def get_enquiry(self, enquiry_id: UUID) -> Enquiry:
        enquiry = self.enquiry_repo.get_by_id(enquiry_id)
        if enquiry is None:
            raise ValueError(f"Enquiry {enquiry_id} not found")
        return enquiry

    def list_enquiries(
        self,
        enquiry_type: Optional[EnquiryType] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[Enquiry], int]:
        return self.enquiry_repo.list_enquiries(
            enquiry_type=enquiry_type, page=page, page_size=page_size
        )

    def list_for_member(self, member_id: str) -> Tuple[List[Enquiry], int]:
        return self.enquiry_repo.list_enquiries(
            member_id=member_id, page=1, page_size=MEMBER_ENQUIRIES_PAGE_SIZE
        )

    def delete_enquiry(self, enquiry_id: UUID) -> None:
        if not self.enquiry_repo.soft_delete(enquiry_id):
            raise ValueError(f"Enquiry {enquiry_id} not found")

    def _email_params(self, enquiry: Enquiry) -> Dict[str, Any]:
        details = enquiry.user_details or {}
        status = enquiry.enquiry_status
        return {
            "enquiry_type": enquiry.enquiry_type.value,
            "status": status.value if status else EnquiryStatus.PENDING.value,
            "first_name": details.get("first_name") or "",
            "last_name": details.get("last_name") or "",
            "email": details.get("email") or "",
            "organization_name": details.get("organization_name") or "",
            "country": details.get("country") or "",
            "phone_number": details.get("phone_number") or "",
            "subject": enquiry.subject or "",
            "message": enquiry.message or "",
        }
