"""Member application intake and the committee/board/CEO approval workflow."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
from uuid import UUID, uuid4

from app.core.config import settings
from app.core.enums import (
    EmailTemplateCode,
    MemberStatus,
    MemberUserType,
    PaymentStatus,
    WorkflowAction,
    WorkflowStage,
)
from app.core.logging import get_logger
from app.core.observability.metrics import log_workflow_transition
from app.models.member import Member
from app.repositories.base_repo import DEFAULT_PAGE_SIZE
from app.repositories.member_repo import MemberRepo
from app.repositories.transaction import transaction_scope
from app.repositories.user_repo import UserRepo
from app.services.entra_service import EntraService
from app.services.notification_service import NotificationService

logger = get_logger(__name__)

# Business rules constants
MAX_COMMENT_LENGTH = 2000
MEMBERSHIP_VALIDITY = timedelta(days=365)
DEFAULT_COMPANY_NAME = "your organization"
DEFAULT_FIRST_NAME = "Applicant"


class StageRule(NamedTuple):
    stage: WorkflowStage
    order: int
    next_status: MemberStatus


# Approvable statuses and where an approval moves them
STAGE_BY_STATUS = {
    MemberStatus.PENDING_COMMITTEE_APPROVAL: StageRule(
        WorkflowStage.COMMITTEE, 1, MemberStatus.PENDING_BOARD_APPROVAL
    ),
    MemberStatus.PENDING_BOARD_APPROVAL: StageRule(
        WorkflowStage.BOARD, 2, MemberStatus.PENDING_CEO_APPROVAL
    ),
    MemberStatus.PENDING_CEO_APPROVAL: StageRule(
        WorkflowStage.CEO, 3, MemberStatus.APPROVED_PENDING_PAYMENT
    ),
}
STAGE_BY_ORDER = {rule.order: rule.stage for rule in STAGE_BY_STATUS.values()}
ADMIN_ORDER = 0

# Stages that review internally and do not notify the applicant on approval
INTERNAL_STAGES = {WorkflowStage.COMMITTEE, WorkflowStage.BOARD, WorkflowStage.CEO}

SNAPSHOT_FLAGS = (
    "correspondence_user",
    "marketing_focal_point",
    "investor_focal_point",
    "newsletter_subscription",
)
SNAPSHOT_FIELDS = (
    "email",
    "first_name",
    "last_name",
    "contact_number",
    "designation",
    "profile_image_url",
)


def deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``updates`` into a copy of ``base``."""
    merged = dict(base or {})
    for key, value in (updates or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _status_value(status) -> str:
    return status.value if isinstance(status, MemberStatus) else str(status)


class MemberWorkflowService:
    """Member application workflow."""

    def __init__(
        self,
        member_repo: MemberRepo,
        user_repo: UserRepo,
        entra_service: EntraService,
        notifier: NotificationService,
        required_committee_actions: int = settings.REQUIRED_COMMITTEE_ACTIONS,
        allowed_user_count: int = settings.ALLOWED_USER_COUNT,
    ):
        """Initialize the workflow service."""
        self.member_repo = member_repo
        self.user_repo = user_repo
        self.entra_service = entra_service
        self.notifier = notifier
        self.required_committee_actions = required_committee_actions
        self.allowed_user_count = allowed_user_count

    # Intake

    def submit_phase1(
        self,
        category: str,
        organisation_info: Dict[str, Any],
        member_users: List[Dict[str, Any]],
        member_consent: Optional[Dict[str, Any]] = None,
        tier: Optional[str] = None,
    ) -> Member:
        """Create the application and send the applicant the phase 2 link."""
        if not category or not category.strip():
            raise ValueError("Member category is required")
        if not member_users:
            raise ValueError("At least one member user is required")

        member = self.member_repo.create_member(
            {
                "category": category.strip(),
                "tier": tier,
                "status": MemberStatus.PENDING_FORM_SUBMISSION,
                "payment_status": PaymentStatus.PENDING,
                "organisation_info": organisation_info or {},
                "member_consent": member_consent or {},
                "user_snapshots": self._build_snapshots(member_users),
                "approval_history": [],
                "rejection_history": [],
            }
        )
        logger.info(f"Phase 1 submitted: {member.application_number}")

        params = self._email_params(member)
        params["phase2_url"] = (
            f"{settings.FRONTEND_BASE_URL}/membership/application/"
            f"{member.application_number}"
        )
        self.notifier.send_templated(
            self._recipient(member), EmailTemplateCode.MEMBER_PHASE1_CONFIRMATION, params
        )
        return member

    def submit_phase2(
        self,
        member_id: UUID,
        organisation_info: Optional[Dict[str, Any]] = None,
        member_consent: Optional[Dict[str, Any]] = None,
        additional_info: Optional[Dict[str, Any]] = None,
        featured_member: Optional[bool] = None,
    ) -> Member:
        """Complete the application and hand it to the committee."""
        with transaction_scope(self.member_repo.session_factory) as session:
            member = self._get_or_raise(member_id, session)
            if member.status != MemberStatus.PENDING_FORM_SUBMISSION:
                raise ValueError(
                    f"Application cannot be submitted in status {_status_value(member.status)}"
                )

            changes: Dict[str, Any] = {
                "organisation_info": deep_merge(
                    member.organisation_info, organisation_info or {}
                ),
                "member_consent": deep_merge(member.member_consent, member_consent or {}),
                "additional_info": deep_merge(
                    member.additional_info, additional_info or {}
                ),
                "status": MemberStatus.PENDING_COMMITTEE_APPROVAL,
            }
            if featured_member is not None:
                changes["featured_member"] = featured_member
            member = self.member_repo.update_member(member_id, changes, session=session)

        log_workflow_transition(
            str(member.id),
            MemberStatus.PENDING_FORM_SUBMISSION.value,
            MemberStatus.PENDING_COMMITTEE_APPROVAL.value,
            WorkflowStage.ADMIN.value,
            "submit",
        )

        params = self._email_params(member)
        self.notifier.send_templated(
            self._recipient(member), EmailTemplateCode.MEMBER_PHASE2_CONFIRMATION, params
        )
        self.notifier.send_templated(
            settings.WFZO_ADMIN_EMAIL,
            EmailTemplateCode.MEMBER_PHASE2_ADMIN_NOTIFICATION,
            {**params, "category": member.category},
        )
        return member

    # Approval workflow

    def update_status(
        self,
        member_id: UUID,
        action: WorkflowAction,
        action_by: str,
        action_by_email: str,
        comments: Optional[str] = None,
    ) -> Member:
        """Record an approve/reject decision by the stage the application is in."""
        if not action_by_email:
            raise ValueError("Approver email is required")
        if comments and len(comments) > MAX_COMMENT_LENGTH:
            raise ValueError(f"Comments cannot exceed {MAX_COMMENT_LENGTH} characters")

        with transaction_scope(self.member_repo.session_factory) as session:
            member = self._get_or_raise(member_id, session)
            previous_status = member.status

            if action == WorkflowAction.APPROVE:
                changes, stage = self._approval_changes(
                    member, action_by, action_by_email, comments
                )
            else:
                changes, stage = self._rejection_changes(
                    member, action_by, action_by_email, comments
                )
            member = self.member_repo.update_member(member_id, changes, session=session)

        status_changed = member.status != previous_status
        logger.info(
            f"{stage.value} {action.value} on {member.application_number} by "
            f"{action_by_email}: {_status_value(previous_status)} -> "
            f"{_status_value(member.status)}"
        )
        if status_changed:
            log_workflow_transition(
                str(member.id),
                _status_value(previous_status),
                _status_value(member.status),
                stage.value,
                action.value,
            )

        params = self._email_params(member)
        if member.status == MemberStatus.REJECTED and status_changed:
            self.notifier.send_templated(
                self._recipient(member),
                EmailTemplateCode.MEMBER_REJECTION,
                {**params, "rejection_reason": comments},
            )
        elif (
            action == WorkflowAction.APPROVE
            and status_changed
            and stage not in INTERNAL_STAGES
        ):
            self.notifier.send_templated(
                self._recipient(member),
                EmailTemplateCode.MEMBER_APPROVAL,
                {**params, "approval_stage": stage.value, "comments": comments},
            )
        return member

    def _approval_changes(
        self,
        member: Member,
        action_by: str,
        action_by_email: str,
        comments: Optional[str],
    ) -> Tuple[Dict[str, Any], WorkflowStage]:
        rule = STAGE_BY_STATUS.get(member.status)
        if rule is None:
            raise ValueError(
                f"Application cannot be approved in status {_status_value(member.status)}"
            )

        approvals = list(member.approval_history or [])
        rejections = list(member.rejection_history or [])
        self._ensure_previous_stages_acted(approvals, rejections, rule.order)

        if rule.stage == WorkflowStage.COMMITTEE:
            self._ensure_single_committee_action(approvals, rejections, action_by_email)
        elif any(entry.get("order") == rule.order for entry in approvals):
            raise ValueError(
                f"Application already approved at the {rule.stage.value} stage"
            )

        approvals.append(
            {
                "approval_stage": rule.stage.value,
                "order": rule.order,
                "approved_by": action_by,
                "approver_email": action_by_email,
                "approved_at": datetime.now(timezone.utc).isoformat(),
                "comments": comments,
            }
        )
        changes: Dict[str, Any] = {"approval_history": approvals}

        if rule.stage != WorkflowStage.COMMITTEE or self._committee_threshold_met(
            approvals, rejections
        ):
            changes["status"] = rule.next_status
        return changes, rule.stage

    def _rejection_changes(
        self,
        member: Member,
        action_by: str,
        action_by_email: str,
        comments: Optional[str],
    ) -> Tuple[Dict[str, Any], WorkflowStage]:
        if not comments or not comments.strip():
            raise ValueError("Comments are required when rejecting an application")
        if member.status == MemberStatus.REJECTED:
            raise ValueError("Application is already rejected")

        rule = STAGE_BY_STATUS.get(member.status)
        stage = rule.stage if rule else WorkflowStage.ADMIN
        order = rule.order if rule else ADMIN_ORDER

        approvals = list(member.approval_history or [])
        rejections = list(member.rejection_history or [])
        entry = {
            "rejection_stage": stage.value,
            "order": order,
            "rejected_by": action_by,
            "rejector_email": action_by_email,
            "reason": comments,
            "rejected_at": datetime.now(timezone.utc).isoformat(),
        }

        if stage == WorkflowStage.COMMITTEE:
            # Committee rejections are feedback that counts toward the quorum
            self._ensure_single_committee_action(approvals, rejections, action_by_email)
            rejections.append(entry)
            changes: Dict[str, Any] = {"rejection_history": rejections}
            if self._committee_threshold_met(approvals, rejections):
                changes["status"] = rule.next_status
            return changes, stage

        if order > ADMIN_ORDER:
            if self._committee_action_count(approvals, rejections) == 0:
                raise ValueError("The committee has not acted on this application yet")
            if any(a.get("order") == order for a in approvals):
                raise ValueError(
                    f"Application already approved at the {stage.value} stage"
                )

        rejections.append(entry)
        return {
            "rejection_history": rejections,
            "status": MemberStatus.REJECTED,
        }, stage

    def _ensure_previous_stages_acted(
        self, approvals: List[dict], rejections: List[dict], order: int
    ) -> None:
        acted_orders = {entry.get("order") for entry in approvals + rejections}
        for previous in range(1, order):
            if previous not in acted_orders:
                raise ValueError(
                    f"The {STAGE_BY_ORDER[previous].value} stage has not acted "
                    "on this application yet"
                )

    def _ensure_single_committee_action(
        self, approvals: List[dict], rejections: List[dict], email: str
    ) -> None:
        normalized = email.strip().lower()
        for entry in approvals:
            if entry.get("order") == 1 and (
                (entry.get("approver_email") or "").lower() == normalized
            ):
                raise ValueError("You have already acted on this application")
        for entry in rejections:
            if entry.get("order") == 1 and (
                (entry.get("rejector_email") or "").lower() == normalized
            ):
                raise ValueError("You have already acted on this application")

    def _committee_action_count(
        self, approvals: List[dict], rejections: List[dict]
    ) -> int:
        return sum(1 for entry in approvals + rejections if entry.get("order") == 1)

    def _committee_threshold_met(
        self, approvals: List[dict], rejections: List[dict]
    ) -> bool:
        return (
            self._committee_action_count(approvals, rejections)
            >= self.required_committee_actions
        )

    # Payment

    def send_payment_link(self, member_id: UUID, payment_link: str) -> Member:
        """Store the payment link and email it with bank transfer details."""
        if not payment_link or not payment_link.strip():
            raise ValueError("Payment link cannot be empty")

        with transaction_scope(self.member_repo.session_factory) as session:
            member = self._get_or_raise(member_id, session)
            if member.status != MemberStatus.APPROVED_PENDING_PAYMENT:
                raise ValueError(
                    "Payment link can only be sent for applications approved pending payment"
                )
            member = self.member_repo.update_member(
                member_id, {"payment_link": payment_link.strip()}, session=session
            )

        self.notifier.send_templated(
            self._recipient(member),
            EmailTemplateCode.MEMBER_PAYMENT_LINK,
            {
                **self._email_params(member),
                "payment_link": member.payment_link,
                "account_number": settings.BANK_ACCOUNT_NUMBER,
                "iban": settings.BANK_IBAN,
                "account_holder": settings.BANK_ACCOUNT_HOLDER,
            },
        )
        return member

    def update_payment_status(
        self, member_id: UUID, payment_status: PaymentStatus
    ) -> Member:
        """``paid`` activates the membership; anything else resets the payment."""
        if payment_status == PaymentStatus.PAID:
            return self.complete_payment(member_id)
        return self.member_repo.update_member(
            member_id, {"payment_status": payment_status, "payment_link": None}
        )

    def complete_payment(self, member_id: UUID) -> Member:
        """Activate the membership and provision the primary user's account."""
        with transaction_scope(self.member_repo.session_factory) as session:
            member = self._get_or_raise(member_id, session)
            if member.status != MemberStatus.APPROVED_PENDING_PAYMENT:
                raise ValueError(
                    "Payment can only be completed for applications approved pending payment"
                )
            primary = member.primary_user
            if not primary or not primary.get("first_name") or not primary.get(
                "last_name"
            ):
                raise ValueError(
                    "A primary user with first and last name is required to activate membership"
                )
            if not primary.get("email"):
                raise ValueError("The primary user has no email address")

            now = datetime.now(timezone.utc)
            member = self.member_repo.assign_member_id(member_id, session=session)
            member = self.member_repo.update_member(
                member_id,
                {
                    "status": MemberStatus.ACTIVE,
                    "payment_status": PaymentStatus.PAID,
                    "valid_until": now + MEMBERSHIP_VALIDITY,
                    "allowed_user_count": self.allowed_user_count,
                    "approval_date": now,
                },
                session=session,
            )

            # Failure here rolls the activation back so it can be retried
            account = self.entra_service.create_user(
                email=primary["email"],
                first_name=primary["first_name"],
                last_name=primary["last_name"],
                phone=primary.get("contact_number"),
            )
            self._upsert_primary_user(member, primary, account["entra_user_id"], session)

        log_workflow_transition(
            str(member.id),
            MemberStatus.APPROVED_PENDING_PAYMENT.value,
            MemberStatus.ACTIVE.value,
            WorkflowStage.ADMIN.value,
            "payment",
        )
        self.notifier.send_templated(
            primary["email"],
            EmailTemplateCode.MEMBER_WELCOME,
            {
                **self._email_params(member),
                "user_email": primary["email"],
                "first_name": primary["first_name"],
                "last_name": primary["last_name"],
                "temporary_password": account["temporary_password"],
                "frontend_base_url": settings.FRONTEND_BASE_URL,
            },
        )
        return member

    def _upsert_primary_user(
        self, member: Member, primary: Dict[str, Any], entra_user_id: str, session
    ) -> None:
        fields = {
            "email": primary["email"],
            "first_name": primary["first_name"],
            "last_name": primary["last_name"],
            "contact_number": primary.get("contact_number"),
            "designation": primary.get("designation"),
            "user_type": MemberUserType.PRIMARY.value,
            "member_id": member.member_id,
            "entra_user_id": entra_user_id,
            "is_member": True,
        }
        if self.user_repo.get_by_username(primary["email"], session=session):
            self.user_repo.update_user(primary["email"], fields, session=session)
        else:
            self.user_repo.create_user(primary["email"], fields, session=session)

    # Queries

    def get_member(self, member_id: UUID) -> Member:
        return self._get_or_raise(member_id)

    def list_members(
        self,
        status: Optional[MemberStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[Member], int]:
        return self.member_repo.list_members(status, search, page, page_size)

    def delete_member(self, member_id: UUID) -> None:
        if not self.member_repo.soft_delete(member_id):
            raise ValueError(f"Member {member_id} not found")
        logger.info(f"Deleted member {member_id}")

    # Helpers

    def _get_or_raise(self, member_id: UUID, session=None) -> Member:
        member = self.member_repo.get_by_id(member_id, session=session)
        if member is None:
            raise ValueError(f"Member {member_id} not found")
        return member

    def _build_snapshots(self, member_users: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        has_primary = any(
            u.get("user_type") == MemberUserType.PRIMARY.value for u in member_users
        )
        synced_at = datetime.now(timezone.utc).isoformat()
        snapshots = []
        for index, user in enumerate(member_users):
            user_type = user.get("user_type")
            if not user_type:
                is_primary = not has_primary and index == 0
                user_type = (
                    MemberUserType.PRIMARY.value
                    if is_primary
                    else MemberUserType.SECONDARY.value
                )
            snapshot = {"id": str(uuid4()), "user_type": user_type}
            snapshot.update({field: user.get(field) for field in SNAPSHOT_FIELDS})
            snapshot.update({flag: bool(user.get(flag)) for flag in SNAPSHOT_FLAGS})
            snapshot["last_synced_at"] = synced_at
            snapshots.append(snapshot)
        return snapshots

    def _recipient(self, member: Member) -> Optional[str]:
        primary = member.primary_user
        return primary.get("email") if primary else None

    def _email_params(self, member: Member) -> Dict[str, Any]:
        primary = member.primary_user or {}
        return {
            "application_number": member.application_number,
            "member_id": member.member_id,
            "company_name": member.company_name or DEFAULT_COMPANY_NAME,
            "first_name": primary.get("first_name") or DEFAULT_FIRST_NAME,
            "last_name": primary.get("last_name") or "",
        }
