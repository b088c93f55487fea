"""Repository layer for data access."""

from .email_template_repo import EmailTemplateRepo
from .enquiry_repo import EnquiryRepo
from .member_repo import MemberRepo
from .membership_repo import MembershipRepo
from .transaction import transaction_scope
from .user_repo import UserRepo

__all__ = [
    "EmailTemplateRepo",
    "EnquiryRepo",
    "MemberRepo",
    "MembershipRepo",
    "UserRepo",
    "transaction_scope",
]
