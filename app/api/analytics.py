"""Admin dashboard analytics endpoints."""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.errors import internal_error
from app.api.schemas.analytics import (
    ContinentCount,
    DashboardSummary,
    EnquiryBucket,
    MemberGrowthBucket,
    MembershipRequestBucket,
)
from app.core.auth_utils import get_current_user
from app.core.enums import Period
from app.dependencies import get_analytics_service
from app.services.analytics_service import AnalyticsService

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(get_current_user)],
)

AnalyticsDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
LimitQuery = Annotated[Optional[int], Query(ge=1, le=366)]


@router.get("/members-by-continent", response_model=List[ContinentCount])
async def members_by_continent(analytics: AnalyticsDep):
    try:
        return analytics.members_by_continent()
    except Exception as e:
        raise internal_error("get members by continent", e) from e


@router.get("/membership-requests", response_model=List[MembershipRequestBucket])
async def membership_requests(
    analytics: AnalyticsDep, period: Period = Period.MONTHLY, limit: LimitQuery = None
):
    try:
        return analytics.membership_requests(period, limit)
    except Exception as e:
        raise internal_error("get membership requests", e) from e


@router.get("/member-growth", response_model=List[MemberGrowthBucket])
async def member_growth(
    analytics: AnalyticsDep, period: Period = Period.MONTHLY, limit: LimitQuery = None
):
    try:
        return analytics.member_growth(period, limit)
    except Exception as e:
        raise internal_error("get member growth", e) from e


@router.get("/enquiries", response_model=List[EnquiryBucket])
async def enquiries(
    analytics: AnalyticsDep, period: Period = Period.MONTHLY, limit: LimitQuery = None
):
    try:
        return analytics.enquiries(period, limit)
    except Exception as e:
        raise internal_error("get enquiry analytics", e) from e


@router.get("/dashboard-summary", response_model=DashboardSummary)
async def dashboard_summary(analytics: AnalyticsDep):
    try:
        return analytics.dashboard_summary()
    except Exception as e:
        raise internal_error("get dashboard summary", e) from e
