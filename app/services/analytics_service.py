"""Dashboard analytics aggregated from members and enquiries."""

from collections import Counter, OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.core.continents import continent_for
from app.core.enums import EnquiryStatus, MemberStatus, Period
from app.core.logging import get_logger
from app.repositories.enquiry_repo import EnquiryRepo
from app.repositories.member_repo import MemberRepo

logger = get_logger(__name__)

MEMBER_STATUSES = [MemberStatus.APPROVED, MemberStatus.ACTIVE]
APPROVED_STATUSES = {
    MemberStatus.APPROVED,
    MemberStatus.ACTIVE,
    MemberStatus.APPROVED_PENDING_PAYMENT,
}
REVIEW_STATUSES = {
    MemberStatus.PENDING_COMMITTEE_APPROVAL,
    MemberStatus.PENDING_BOARD_APPROVAL,
    MemberStatus.PENDING_CEO_APPROVAL,
}
PENDING_STATUSES = REVIEW_STATUSES | {MemberStatus.PENDING_FORM_SUBMISSION}

DAILY_LIMIT = 30
DEFAULT_LIMIT = 12


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def period_key(moment: datetime, period: Period) -> str:
    """Bucket label for ``moment``: 2024-03-07, 2024-W10, 2024-03 or 2024."""
    if period == Period.DAILY:
        return moment.strftime("%Y-%m-%d")
    if period == Period.WEEKLY:
        year, week, _ = moment.isocalendar()
        return f"{year}-W{week:02d}"
    if period == Period.YEARLY:
        return moment.strftime("%Y")
    return moment.strftime("%Y-%m")


def default_limit(period: Period) -> int:
    return DAILY_LIMIT if period == Period.DAILY else DEFAULT_LIMIT


def _first_date(*candidates: Optional[datetime]) -> Optional[datetime]:
    for candidate in candidates:
        if candidate is not None:
            return as_utc(candidate)
    return None


def _newest(buckets: Dict[str, Any], limit: int) -> List[Any]:
    """The newest ``limit`` buckets, oldest first."""
    keys = sorted(buckets)[-limit:] if limit > 0 else []
    return [buckets[key] for key in keys]


class AnalyticsService:
    """Analytics service."""

    def __init__(self, member_repo: MemberRepo, enquiry_repo: EnquiryRepo):
        self.member_repo = member_repo
        self.enquiry_repo = enquiry_repo

    def members_by_continent(self) -> List[Dict[str, Any]]:
        """Approved and active members grouped by the continent of their country."""
        counts: Counter = Counter()
        for row in self.member_repo.get_analytics_rows(MEMBER_STATUSES):
            address = (row.organisation_info or {}).get("address") or {}
            country_code = address.get("country_code")
            if not country_code:
                continue
            counts[continent_for(country_code)] += 1

        total = sum(counts.values())
        return [
            {
                "continent": continent,
                "count": count,
                "percentage": round(count / total * 100, 1),
            }
            for continent, count in counts.most_common()
        ]

    def membership_requests(
        self, period: Period = Period.MONTHLY, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Applications per period split into approved, pending and rejected."""
        limit = limit or default_limit(period)
        buckets: Dict[str, Dict[str, Any]] = {}
        for row in self.member_repo.get_analytics_rows():
            moment = _first_date(
                row.approval_date, row.approval_letter_date, row.created_at
            )
            if moment is None:
                continue
            key = period_key(moment, period)
            bucket = buckets.setdefault(
                key,
                {"period": key, "count": 0, "approved": 0, "pending": 0, "rejected": 0},
            )
            bucket["count"] += 1
            if row.status in APPROVED_STATUSES:
                bucket["approved"] += 1
            elif row.status in PENDING_STATUSES:
                bucket["pending"] += 1
            elif row.status == MemberStatus.REJECTED:
                bucket["rejected"] += 1
        return _newest(buckets, limit)

    def member_growth(
        self, period: Period = Period.MONTHLY, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """New members per period with the running total."""
        limit = limit or default_limit(period)
        new_members: Dict[str, int] = {}
        for row in self.member_repo.get_analytics_rows(MEMBER_STATUSES):
            moment = _first_date(
                row.approval_letter_date, row.approval_date, row.created_at
            )
            if moment is None:
                continue
            key = period_key(moment, period)
            new_members[key] = new_members.get(key, 0) + 1

        growth: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        running_total = 0
        for key in sorted(new_members):
            running_total += new_members[key]
            growth[key] = {
                "period": key,
                "new_members": new_members[key],
                "total_members": running_total,
            }
        return _newest(growth, limit)

    def enquiries(
        self, period: Period = Period.MONTHLY, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Enquiries per period by status."""
        limit = limit or default_limit(period)
        buckets: Dict[str, Dict[str, Any]] = {}
        for row in self.enquiry_repo.get_analytics_rows():
            moment = as_utc(row.created_at)
            if moment is None:
                continue
            key = period_key(moment, period)
            bucket = buckets.setdefault(
                key,
                {"period": key, "total": 0, "pending": 0, "approved": 0, "rejected": 0},
            )
            bucket["total"] += 1
            status = row.enquiry_status or EnquiryStatus.PENDING
            bucket[EnquiryStatus(status).value] += 1
        return _newest(buckets, limit)

    def dashboard_summary(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Headline numbers for the admin dashboard."""
        now = as_utc(now) or datetime.now(timezone.utc)
        this_month = (now.year, now.month)
        last_month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)

        total_members = 0
        new_this_month = 0
        new_last_month = 0
        pending_approvals = 0
        for row in self.member_repo.get_analytics_rows():
            if row.status in REVIEW_STATUSES:
                pending_approvals += 1
            if row.status not in MEMBER_STATUSES:
                continue
            total_members += 1
            created = as_utc(row.created_at)
            if created is None:
                continue
            month = (created.year, created.month)
            if month == this_month:
                new_this_month += 1
            elif month == last_month:
                new_last_month += 1

        if new_last_month:
            growth = round((new_this_month - new_last_month) / new_last_month * 100)
        else:
            growth = 0

        enquiry_rows = self.enquiry_repo.get_analytics_rows()
        pending_enquiries = sum(
            1 for row in enquiry_rows if row.enquiry_status == EnquiryStatus.PENDING
        )
        return {
            "total_members": total_members,
            "new_members_this_month": new_this_month,
            "new_members_last_month": new_last_month,
            "member_growth_percentage": growth,
            "pending_approvals": pending_approvals,
            "total_enquiries": len(enquiry_rows),
            "pending_enquiries": pending_enquiries,
        }
