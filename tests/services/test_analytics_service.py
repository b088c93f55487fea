"""Tests for dashboard analytics."""

from datetime import datetime, timezone

import pytest

from app.core.continents import continent_for
from app.core.enums import EnquiryStatus, EnquiryType, MemberStatus, Period
from app.services.analytics_service import (
    AnalyticsService,
    as_utc,
    default_limit,
    period_key,
)


def _at(year, month, day=15):
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def analytics(member_repo, enquiry_repo):
    return AnalyticsService(member_repo, enquiry_repo)


@pytest.fixture
def add_member(member_repo):
    def _add(status, country_code="AE", created_at=None, approval_date=None):
        fields = {
            "category": "voting",
            "status": status,
            "organisation_info": {"address": {"country_code": country_code}},
        }
        if created_at is not None:
            fields["created_at"] = created_at
        if approval_date is not None:
            fields["approval_date"] = approval_date
        return member_repo.create_member(fields)

    return _add


@pytest.fixture
def add_enquiry(enquiry_repo):
    def _add(status, created_at):
        return enquiry_repo.create_enquiry(
            {
                "enquiry_type": EnquiryType.LEARN_MORE,
                "enquiry_status": status,
                "user_details": {},
                "created_at": created_at,
            }
        )

    return _add


class TestPeriodHelpers:
    @pytest.mark.parametrize(
        "period, expected",
        [
            (Period.DAILY, "2024-03-07"),
            (Period.WEEKLY, "2024-W10"),
            (Period.MONTHLY, "2024-03"),
            (Period.YEARLY, "2024"),
        ],
    )
    def test_period_key(self, period, expected):
        assert period_key(datetime(2024, 3, 7), period) == expected

    def test_iso_week_belongs_to_iso_year(self):
        assert period_key(datetime(2021, 1, 1), Period.WEEKLY) == "2020-W53"

    def test_default_limit(self):
        assert default_limit(Period.DAILY) == 30
        assert default_limit(Period.MONTHLY) == 12

    def test_as_utc_assumes_naive_is_utc(self):
        assert as_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc
        assert as_utc(None) is None

    def test_continent_lookup(self):
        assert continent_for("ae") == "Asia"
        assert continent_for("DE") == "Europe"
        assert continent_for("ZZ") == "Other"
        assert continent_for("") == "Other"


class TestMemberAnalytics:
    """Test cases for member aggregations."""

    def test_members_by_continent(self, analytics, add_member):
        add_member(MemberStatus.ACTIVE, "AE")
        add_member(MemberStatus.APPROVED, "SA")
        add_member(MemberStatus.ACTIVE, "DE")
        add_member(MemberStatus.PENDING_COMMITTEE_APPROVAL, "FR")

        result = analytics.members_by_continent()

        assert result == [
            {"continent": "Asia", "count": 2, "percentage": 66.7},
            {"continent": "Europe", "count": 1, "percentage": 33.3},
        ]

    def test_members_without_country_are_skipped(self, analytics, member_repo):
        member_repo.create_member(
            {"category": "voting", "status": MemberStatus.ACTIVE, "organisation_info": {}}
        )
        assert analytics.members_by_continent() == []

    def test_membership_requests_by_month(self, analytics, add_member):
        add_member(MemberStatus.ACTIVE, created_at=_at(2024, 1))
        add_member(MemberStatus.REJECTED, created_at=_at(2024, 1))
        add_member(MemberStatus.PENDING_BOARD_APPROVAL, created_at=_at(2024, 2))
        add_member(
            MemberStatus.APPROVED,
            created_at=_at(2024, 1),
            approval_date=_at(2024, 3),
        )

        result = analytics.membership_requests(Period.MONTHLY)

        assert result == [
            {"period": "2024-01", "count": 2, "approved": 1, "pending": 0, "rejected": 1},
            {"period": "2024-02", "count": 1, "approved": 0, "pending": 1, "rejected": 0},
            {"period": "2024-03", "count": 1, "approved": 1, "pending": 0, "rejected": 0},
        ]

    def test_membership_requests_limit_keeps_newest(self, analytics, add_member):
        for month in (1, 2, 3):
            add_member(MemberStatus.ACTIVE, created_at=_at(2024, month))

        result = analytics.membership_requests(Period.MONTHLY, limit=2)

        assert [bucket["period"] for bucket in result] == ["2024-02", "2024-03"]

    def test_member_growth_running_total(self, analytics, add_member):
        add_member(MemberStatus.ACTIVE, created_at=_at(2023, 11))
        add_member(MemberStatus.ACTIVE, created_at=_at(2024, 2))
        add_member(MemberStatus.APPROVED, created_at=_at(2024, 2))
        add_member(MemberStatus.REJECTED, created_at=_at(2024, 2))

        result = analytics.member_growth(Period.YEARLY)

        assert result == [
            {"period": "2023", "new_members": 1, "total_members": 1},
            {"period": "2024", "new_members": 2, "total_members": 3},
        ]


class TestEnquiryAnalytics:
    def test_enquiries_by_status(self, analytics, add_enquiry):
        add_enquiry(EnquiryStatus.PENDING, _at(2024, 4, 1))
        add_enquiry(EnquiryStatus.APPROVED, _at(2024, 4, 1))
        add_enquiry(EnquiryStatus.REJECTED, _at(2024, 4, 2))

        result = analytics.enquiries(Period.DAILY)

        assert result == [
            {"period": "2024-04-01", "total": 2, "pending": 1, "approved": 1, "rejected": 0},
            {"period": "2024-04-02", "total": 1, "pending": 0, "approved": 0, "rejected": 1},
        ]


class TestDashboardSummary:
    def test_summary(self, analytics, add_member, add_enquiry):
        add_member(MemberStatus.ACTIVE, created_at=_at(2024, 3, 2))
        add_member(MemberStatus.APPROVED, created_at=_at(2024, 3, 5))
        add_member(MemberStatus.ACTIVE, created_at=_at(2024, 2, 20))
        add_member(MemberStatus.PENDING_COMMITTEE_APPROVAL, created_at=_at(2024, 3, 6))
        add_member(MemberStatus.PENDING_FORM_SUBMISSION, created_at=_at(2024, 3, 6))
        add_enquiry(EnquiryStatus.PENDING, _at(2024, 3, 1))
        add_enquiry(EnquiryStatus.APPROVED, _at(2024, 3, 1))

        summary = analytics.dashboard_summary(now=_at(2024, 3, 10))

        assert summary == {
            "total_members": 3,
            "new_members_this_month": 2,
            "new_members_last_month": 1,
            "member_growth_percentage": 100,
            "pending_approvals": 1,
            "total_enquiries": 2,
            "pending_enquiries": 1,
        }

    def test_growth_is_zero_without_last_month(self, analytics, add_member):
        add_member(MemberStatus.ACTIVE, created_at=_at(2024, 1, 3))

        summary = analytics.dashboard_summary(now=_at(2024, 1, 10))

        assert summary["new_members_this_month"] == 1
        assert summary["member_growth_percentage"] == 0
