"""Tests for MemberWorkflowService."""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from app.core.enums import (
    EmailTemplateCode,
    MemberStatus,
    PaymentStatus,
    WorkflowAction,
)
from app.services.entra_service import EntraError
from app.services.member_workflow_service import MemberWorkflowService, deep_merge
from tests.helpers.factories import member_user, organisation

APPROVE = WorkflowAction.APPROVE
REJECT = WorkflowAction.REJECT


def _approve(service, member, email, comments=None):
    return service.update_status(member.id, APPROVE, email.split("@")[0], email, comments)


def _reject(service, member, email, comments="Incomplete documents"):
    return service.update_status(member.id, REJECT, email.split("@")[0], email, comments)


@pytest.fixture
def applied(workflow_service):
    """An application waiting for phase 2."""
    return workflow_service.submit_phase1(
        "voting",
        organisation(),
        [member_user()],
        member_consent={"terms_accepted": True},
    )


@pytest.fixture
def in_committee(workflow_service, applied):
    """An application waiting for committee review."""
    return workflow_service.submit_phase2(applied.id, additional_info={"employees": 40})


@pytest.fixture
def in_board(workflow_service, in_committee):
    _approve(workflow_service, in_committee, "c1@wfzo.test")
    return _approve(workflow_service, in_committee, "c2@wfzo.test")


@pytest.fixture
def in_ceo(workflow_service, in_board):
    return _approve(workflow_service, in_board, "board@wfzo.test")


@pytest.fixture
def pending_payment(workflow_service, in_ceo):
    return _approve(workflow_service, in_ceo, "ceo@wfzo.test")


class TestDeepMerge:
    def test_nested_dicts_are_merged(self):
        base = {"address": {"city": "Dubai"}, "company_name": "Acme"}
        merged = deep_merge(base, {"address": {"country_code": "AE"}})

        assert merged == {
            "address": {"city": "Dubai", "country_code": "AE"},
            "company_name": "Acme",
        }
        assert base == {"address": {"city": "Dubai"}, "company_name": "Acme"}

    def test_non_dict_values_replace(self):
        assert deep_merge({"industries": ["a"]}, {"industries": ["b"]}) == {
            "industries": ["b"]
        }


class TestPhase1:
    """Application intake."""

    def test_creates_application_and_sends_phase2_link(self, applied, notifier):
        assert applied.application_number == "APP-001"
        assert applied.status == MemberStatus.PENDING_FORM_SUBMISSION
        assert applied.payment_status == PaymentStatus.PENDING

        email = notifier.last(EmailTemplateCode.MEMBER_PHASE1_CONFIRMATION)
        assert email.to == "jane@acme.test"
        assert email.params["phase2_url"].endswith("/membership/application/APP-001")
        assert email.params["company_name"] == "Acme Free Zone"

    def test_first_user_becomes_primary(self, workflow_service):
        member = workflow_service.submit_phase1(
            "voting",
            organisation(),
            [member_user(), member_user(email="ops@acme.test")],
        )

        types = [u["user_type"] for u in member.user_snapshots]
        assert types == ["Primary", "Secondary"]
        assert all(u["id"] for u in member.user_snapshots)

    def test_explicit_primary_is_kept(self, workflow_service, notifier):
        member = workflow_service.submit_phase1(
            "voting",
            organisation(),
            [member_user(), member_user(email="boss@acme.test", user_type="Primary")],
        )

        types = [u["user_type"] for u in member.user_snapshots]
        assert types == ["Secondary", "Primary"]
        assert notifier.sent[0].to == "boss@acme.test"

    def test_requires_category(self, workflow_service):
        with pytest.raises(ValueError, match="category is required"):
            workflow_service.submit_phase1(" ", organisation(), [member_user()])

    def test_requires_member_users(self, workflow_service):
        with pytest.raises(ValueError, match="At least one member user"):
            workflow_service.submit_phase1("voting", organisation(), [])

    def test_missing_company_name_uses_default_in_email(
        self, workflow_service, notifier
    ):
        workflow_service.submit_phase1("voting", {}, [member_user()])

        email = notifier.last(EmailTemplateCode.MEMBER_PHASE1_CONFIRMATION)
        assert email.params["company_name"] == "your organization"


class TestPhase2:
    """Completing the application."""

    def test_merges_and_moves_to_committee(self, workflow_service, applied, notifier):
        member = workflow_service.submit_phase2(
            applied.id,
            organisation_info={"address": {"zip": "00000"}},
            member_consent={"privacy_accepted": True},
            featured_member=True,
        )

        assert member.status == MemberStatus.PENDING_COMMITTEE_APPROVAL
        assert member.organisation_info["address"] == {
            "city": "Dubai",
            "country": "UAE",
            "country_code": "AE",
            "zip": "00000",
        }
        assert member.member_consent == {
            "terms_accepted": True,
            "privacy_accepted": True,
        }
        assert member.featured_member is True

        assert notifier.last(EmailTemplateCode.MEMBER_PHASE2_CONFIRMATION).to == (
            "jane@acme.test"
        )
        admin = notifier.last(EmailTemplateCode.MEMBER_PHASE2_ADMIN_NOTIFICATION)
        assert admin.to == "admin@wfzo.test"
        assert admin.params["category"] == "voting"

    def test_cannot_submit_twice(self, workflow_service, in_committee):
        with pytest.raises(ValueError, match="cannot be submitted"):
            workflow_service.submit_phase2(in_committee.id)

    def test_unknown_member(self, workflow_service):
        with pytest.raises(ValueError, match="not found"):
            workflow_service.submit_phase2(uuid4())


class TestCommitteeStage:
    """Committee review needs the configured number of distinct actions."""

    def test_single_approval_keeps_status(self, workflow_service, in_committee):
        member = _approve(workflow_service, in_committee, "c1@wfzo.test", "Looks good")

        assert member.status == MemberStatus.PENDING_COMMITTEE_APPROVAL
        entry = member.approval_history[0]
        assert entry["approval_stage"] == "committee"
        assert entry["order"] == 1
        assert entry["approver_email"] == "c1@wfzo.test"
        assert entry["comments"] == "Looks good"

    def test_threshold_moves_to_board(self, in_board):
        assert in_board.status == MemberStatus.PENDING_BOARD_APPROVAL
        assert len(in_board.approval_history) == 2

    def test_same_member_cannot_act_twice(self, workflow_service, in_committee):
        _approve(workflow_service, in_committee, "c1@wfzo.test")

        with pytest.raises(ValueError, match="already acted"):
            _approve(workflow_service, in_committee, "C1@wfzo.test")
        with pytest.raises(ValueError, match="already acted"):
            _reject(workflow_service, in_committee, "c1@wfzo.test")

    def test_rejection_is_feedback_counting_toward_threshold(
        self, workflow_service, in_committee, notifier
    ):
        notifier.clear()
        member = _reject(workflow_service, in_committee, "c1@wfzo.test")
        assert member.status == MemberStatus.PENDING_COMMITTEE_APPROVAL
        assert member.rejection_history[0]["rejection_stage"] == "committee"

        member = _approve(workflow_service, in_committee, "c2@wfzo.test")
        assert member.status == MemberStatus.PENDING_BOARD_APPROVAL
        assert notifier.sent == []

    def test_approvals_do_not_notify_applicant(
        self, workflow_service, in_committee, notifier
    ):
        notifier.clear()
        _approve(workflow_service, in_committee, "c1@wfzo.test")
        _approve(workflow_service, in_committee, "c2@wfzo.test")

        assert EmailTemplateCode.MEMBER_APPROVAL.value not in notifier.codes()


class TestLaterStages:
    """Board and CEO decisions."""

    def test_full_approval_path(self, pending_payment):
        assert pending_payment.status == MemberStatus.APPROVED_PENDING_PAYMENT
        stages = [entry["approval_stage"] for entry in pending_payment.approval_history]
        assert stages == ["committee", "committee", "board", "ceo"]

    def test_board_rejection_rejects_application(
        self, workflow_service, in_board, notifier
    ):
        member = _reject(workflow_service, in_board, "board@wfzo.test", "Out of scope")

        assert member.status == MemberStatus.REJECTED
        assert member.rejection_history[-1]["rejection_stage"] == "board"
        email = notifier.last(EmailTemplateCode.MEMBER_REJECTION)
        assert email.to == "jane@acme.test"
        assert email.params["rejection_reason"] == "Out of scope"

    def test_ceo_rejection(self, workflow_service, in_ceo):
        member = _reject(workflow_service, in_ceo, "ceo@wfzo.test")

        assert member.status == MemberStatus.REJECTED
        assert member.rejection_history[-1]["order"] == 3

    def test_rejection_requires_comments(self, workflow_service, in_board):
        with pytest.raises(ValueError, match="Comments are required"):
            _reject(workflow_service, in_board, "board@wfzo.test", comments="  ")

    def test_cannot_reject_twice(self, workflow_service, in_board):
        _reject(workflow_service, in_board, "board@wfzo.test")

        with pytest.raises(ValueError, match="already rejected"):
            _reject(workflow_service, in_board, "ceo@wfzo.test")

    def test_cannot_approve_rejected_application(self, workflow_service, in_board):
        _reject(workflow_service, in_board, "board@wfzo.test")

        with pytest.raises(ValueError, match="cannot be approved"):
            _approve(workflow_service, in_board, "board@wfzo.test")

    def test_board_cannot_act_without_committee(self, workflow_service, in_committee, member_repo):
        member_repo.update_member(
            in_committee.id, {"status": MemberStatus.PENDING_BOARD_APPROVAL}
        )

        with pytest.raises(ValueError, match="committee stage has not acted"):
            _approve(workflow_service, in_committee, "board@wfzo.test")
        with pytest.raises(ValueError, match="committee has not acted"):
            _reject(workflow_service, in_committee, "board@wfzo.test")

    def test_cannot_approve_before_phase2(self, workflow_service, applied):
        with pytest.raises(ValueError, match="cannot be approved"):
            _approve(workflow_service, applied, "c1@wfzo.test")

    def test_admin_can_reject_before_phase2(self, workflow_service, applied):
        member = _reject(workflow_service, applied, "admin@wfzo.test", "Spam")

        assert member.status == MemberStatus.REJECTED
        assert member.rejection_history[0]["rejection_stage"] == "admin"
        assert member.rejection_history[0]["order"] == 0

    def test_comment_length_limit(self, workflow_service, in_committee):
        with pytest.raises(ValueError, match="cannot exceed"):
            _approve(workflow_service, in_committee, "c1@wfzo.test", "x" * 2001)

    def test_approver_email_required(self, workflow_service, in_committee):
        with pytest.raises(ValueError, match="email is required"):
            workflow_service.update_status(in_committee.id, APPROVE, "Someone", "")


class TestPayment:
    """Payment link and activation."""

    def test_send_payment_link(self, workflow_service, pending_payment, notifier):
        member = workflow_service.send_payment_link(
            pending_payment.id, " https://pay.test/abc "
        )

        assert member.payment_link == "https://pay.test/abc"
        email = notifier.last(EmailTemplateCode.MEMBER_PAYMENT_LINK)
        assert email.params["payment_link"] == "https://pay.test/abc"
        assert "iban" in email.params

    def test_payment_link_requires_approval(self, workflow_service, in_board):
        with pytest.raises(ValueError, match="approved pending payment"):
            workflow_service.send_payment_link(in_board.id, "https://pay.test/abc")

    def test_payment_link_cannot_be_empty(self, workflow_service, pending_payment):
        with pytest.raises(ValueError, match="cannot be empty"):
            workflow_service.send_payment_link(pending_payment.id, "  ")

    def test_paid_activates_membership(
        self, workflow_service, pending_payment, user_repo, entra_service, notifier
    ):
        member = workflow_service.update_payment_status(
            pending_payment.id, PaymentStatus.PAID
        )

        assert member.status == MemberStatus.ACTIVE
        assert member.payment_status == PaymentStatus.PAID
        assert member.member_id == "MEMBER-001"
        assert member.allowed_user_count == 5
        assert member.valid_until > member.approval_date

        user = user_repo.get_by_username("jane@acme.test")
        assert user.user_type == "Primary"
        assert user.is_member is True
        assert user.member_id == "MEMBER-001"
        assert user.entra_user_id in entra_service.mock_users

        welcome = notifier.last(EmailTemplateCode.MEMBER_WELCOME)
        assert welcome.to == "jane@acme.test"
        assert welcome.params["temporary_password"]
        assert welcome.params["member_id"] == "MEMBER-001"

    def test_existing_local_user_is_linked(
        self, workflow_service, pending_payment, user_repo
    ):
        existing = user_repo.create_user("jane@acme.test", {"is_member": False})

        workflow_service.complete_payment(pending_payment.id)

        user = user_repo.get_by_username("jane@acme.test")
        assert user.id == existing.id
        assert user.is_member is True

    def test_entra_failure_rolls_back_activation(
        self, member_repo, user_repo, notifier, pending_payment
    ):
        entra = Mock()
        entra.create_user.side_effect = EntraError("Graph unavailable")
        service = MemberWorkflowService(
            member_repo, user_repo, entra, notifier, required_committee_actions=2
        )

        with pytest.raises(EntraError):
            service.complete_payment(pending_payment.id)

        member = member_repo.get_by_id(pending_payment.id)
        assert member.status == MemberStatus.APPROVED_PENDING_PAYMENT
        assert member.member_id is None
        assert user_repo.get_by_username("jane@acme.test") is None

    def test_payment_requires_approval(self, workflow_service, in_ceo):
        with pytest.raises(ValueError, match="approved pending payment"):
            workflow_service.complete_payment(in_ceo.id)

    def test_primary_user_needs_names(self, workflow_service, member_repo, pending_payment):
        member_repo.update_member(
            pending_payment.id,
            {"user_snapshots": [{"email": "jane@acme.test", "user_type": "Primary"}]},
        )

        with pytest.raises(ValueError, match="first and last name"):
            workflow_service.complete_payment(pending_payment.id)

    def test_pending_payment_status_clears_link(self, workflow_service, pending_payment):
        workflow_service.send_payment_link(pending_payment.id, "https://pay.test/abc")

        member = workflow_service.update_payment_status(
            pending_payment.id, PaymentStatus.PENDING
        )

        assert member.payment_link is None
        assert member.status == MemberStatus.APPROVED_PENDING_PAYMENT


class TestQueries:
    def test_list_and_delete(self, workflow_service, applied):
        members, total = workflow_service.list_members()
        assert total == 1

        workflow_service.delete_member(applied.id)

        with pytest.raises(ValueError, match="not found"):
            workflow_service.get_member(applied.id)
        with pytest.raises(ValueError, match="not found"):
            workflow_service.delete_member(applied.id)
