"""Dashboard analytics response schemas."""

from pydantic import BaseModel


class ContinentCount(BaseModel):
    continent: str
    count: int
    percentage: float


class MembershipRequestBucket(BaseModel):
    period: str
    count: int
    approved: int
    pending: int
    rejected: int


class MemberGrowthBucket(BaseModel):
    period: str
    new_members: int
    total_members: int


class EnquiryBucket(BaseModel):
    period: str
    total: int
    pending: int
    approved: int
    rejected: int


class DashboardSummary(BaseModel):
    total_members: int
    new_members_this_month: int
    new_members_last_month: int
    member_growth_percentage: int
    pending_approvals: int
    total_enquiries: int
    pending_enquiries: int
