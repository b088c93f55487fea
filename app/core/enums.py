"""Shared enums used across the application."""

from enum import Enum


class MemberStatus(str, Enum):
    """Member application / membership status."""

    PENDING_FORM_SUBMISSION = "pendingFormSubmission"
    PENDING_COMMITTEE_APPROVAL = "pendingCommitteeApproval"
    PENDING_BOARD_APPROVAL = "pendingBoardApproval"
    PENDING_CEO_APPROVAL = "pendingCEOApproval"
    APPROVED_PENDING_PAYMENT = "approvedPendingPayment"
    APPROVED = "approved"
    ACTIVE = "active"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class WorkflowStage(str, Enum):
    """Review stage acting on a member application."""

    ADMIN = "admin"
    COMMITTEE = "committee"
    BOARD = "board"
    CEO = "ceo"


class WorkflowAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class MemberUserType(str, Enum):
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    NON_MEMBER = "Non Member"
    INTERNAL = "Internal"


class EnquiryType(str, Enum):
    BECOME_FEATURED_MEMBER = "become_featured_member"
    SUBMIT_QUESTION = "submit_question"
    LEARN_MORE = "learn_more"
    CONSULTANCY_NEEDS = "consultancy_needs"
    REQUEST_ADDITIONAL_TEAM_MEMBERS = "request_additional_team_members"


class EnquiryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AccessLevel(str, Enum):
    """Entitlement access level."""

    NONE = "none"
    RESTRICTED = "restricted"
    UNLIMITED = "unlimited"
    PAYMENT = "payment"
    APPROVAL = "approval"


class QuotaWindow(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    PER_EVENT = "per-event"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class UserStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class Period(str, Enum):
    """Bucketing period for analytics reports."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TrafficGranularity(str, Enum):
    DATE = "date"
    WEEK = "week"
    MONTH = "month"


class ContentKind(str, Enum):
    """Strapi collections gated by admin approval."""

    EVENTS = "events"
    WEBINARS = "webinars"
    NEWS = "news"


class ContentDecision(str, Enum):
    SUBMITTED_FOR_APPROVAL = "SUBMITTED_FOR_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Language(str, Enum):
    EN = "en"
    AR = "ar"


class EmailTemplateCode(str, Enum):
    """Email template codes the backend sends."""

    MEMBER_PHASE1_CONFIRMATION = "MEMBER_PHASE1_CONFIRMATION"
    MEMBER_PHASE2_CONFIRMATION = "MEMBER_PHASE2_CONFIRMATION"
    MEMBER_PHASE2_ADMIN_NOTIFICATION = "MEMBER_PHASE2_ADMIN_NOTIFICATION"
    MEMBER_APPROVAL = "MEMBER_APPROVAL"
    MEMBER_REJECTION = "MEMBER_REJECTION"
    MEMBER_PAYMENT_LINK = "MEMBER_PAYMENT_LINK"
    MEMBER_WELCOME = "MEMBER_WELCOME"
    ENQUIRY_ADMIN_NOTIFICATION = "ENQUIRY_ADMIN_NOTIFICATION"
    ENQUIRY_ACKNOWLEDGEMENT = "ENQUIRY_ACKNOWLEDGEMENT"
    ENQUIRY_APPROVED = "ENQUIRY_APPROVED"
    ENQUIRY_REJECTED = "ENQUIRY_REJECTED"
    INTERNAL_USER_CREDENTIALS = "INTERNAL_USER_CREDENTIALS"
    EVENT_SUBMITTED_FOR_APPROVAL = "EVENT_SUBMITTED_FOR_APPROVAL"
    EVENT_SUBMITTED_USER = "EVENT_SUBMITTED_USER"
    EVENT_APPROVED_USER = "EVENT_APPROVED_USER"
    EVENT_REJECTED_USER = "EVENT_REJECTED_USER"
    ARTICLE_SUBMITTED_FOR_APPROVAL = "ARTICLE_SUBMITTED_FOR_APPROVAL"
    ARTICLE_SUBMITTED_USER = "ARTICLE_SUBMITTED_USER"
    ARTICLE_APPROVED_USER = "ARTICLE_APPROVED_USER"
    ARTICLE_REJECTED_USER = "ARTICLE_REJECTED_USER"
