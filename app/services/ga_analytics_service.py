"""Google Analytics 4 reports through the Analytics Data API."""

from typing import Any, Dict, List, Optional, Sequence

from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta.types import (
    DateRange,
    Dimension,
    Filter,
    FilterExpression,
    Metric,
    OrderBy,
    RunRealtimeReportRequest,
    RunReportRequest,
)
from google.api_core.exceptions import GoogleAPIError
from google.oauth2 import service_account

from app.core.config import settings
from app.core.enums import Period, TrafficGranularity
from app.core.logging import get_logger

logger = get_logger(__name__)

GA_SCOPES = ["https://www.googleapis.com/auth/analytics.readonly"]
DEFAULT_START_DATE = "30daysAgo"
DEFAULT_END_DATE = "today"
PERIOD_START_DATES = {
    Period.DAILY: "yesterday",
    Period.WEEKLY: "7daysAgo",
    Period.MONTHLY: "30daysAgo",
    Period.YEARLY: "365daysAgo",
}


class AnalyticsNotConfiguredError(RuntimeError):
    """GA credentials or property id are missing."""


def date_range_for(period: Optional[Period]) -> Dict[str, str]:
    """GA relative date range for a reporting period."""
    return {
        "start_date": PERIOD_START_DATES.get(period, DEFAULT_START_DATE),
        "end_date": DEFAULT_END_DATE,
    }


def _int(value: Optional[str]) -> int:
    return int(float(value or 0))


def _float(value: Optional[str]) -> float:
    return float(value or 0)


def build_client(client_email: str, private_key: str) -> BetaAnalyticsDataClient:
    """Data API client authenticated as the configured service account."""
    credentials = service_account.Credentials.from_service_account_info(
        {
            "type": "service_account",
            "client_email": client_email,
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        },
        scopes=GA_SCOPES,
    )
    return BetaAnalyticsDataClient(credentials=credentials)


class GAAnalyticsService:
    """Runs GA4 reports for the admin dashboard."""

    def __init__(
        self,
        property_id: str = settings.GA_PROPERTY_ID,
        client_email: str = settings.GA_CLIENT_EMAIL,
        private_key: str = settings.GA_PRIVATE_KEY,
        client: Optional[Any] = None,
    ):
        self.property_id = property_id
        self._client = client
        if self._client is None:
            if client_email and private_key and property_id:
                self._client = build_client(client_email, private_key)
                logger.info("Google Analytics Data API client initialized")
            else:
                logger.warning(
                    "GA4 credentials not configured. Analytics endpoints will not work."
                )

    @property
    def property(self) -> str:
        return f"properties/{self.property_id}"

    def _require_client(self):
        if self._client is None or not self.property_id:
            raise AnalyticsNotConfiguredError("Analytics client not initialized")
        return self._client

    def _run_report(
        self,
        start_date: str,
        end_date: str,
        metrics: Sequence[str],
        dimensions: Sequence[str] = (),
        event_name: Optional[str] = None,
        order_metric: Optional[str] = None,
        order_dimension: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        client = self._require_client()
        request = RunReportRequest(
            property=self.property,
            date_ranges=[DateRange(start_date=start_date, end_date=end_date)],
            dimensions=[Dimension(name=name) for name in dimensions],
            metrics=[Metric(name=name) for name in metrics],
        )
        if event_name:
            request.dimension_filter = FilterExpression(
                filter=Filter(
                    field_name="eventName",
                    string_filter=Filter.StringFilter(value=event_name),
                )
            )
        if order_metric:
            request.order_bys = [
                OrderBy(metric=OrderBy.MetricOrderBy(metric_name=order_metric), desc=True)
            ]
        elif order_dimension:
            request.order_bys = [
                OrderBy(
                    dimension=OrderBy.DimensionOrderBy(dimension_name=order_dimension),
                    desc=False,
                )
            ]
        if limit:
            request.limit = limit
        return client.run_report(request)

    def _event_report(
        self,
        report_name: str,
        event_name: str,
        dimensions: Sequence[str],
        start_date: str,
        end_date: str,
        limit: int,
    ) -> List[Any]:
        """Rows of a custom-event report; empty when GA rejects the query."""
        try:
            response = self._run_report(
                start_date,
                end_date,
                metrics=["eventCount", "totalUsers"],
                dimensions=dimensions,
                event_name=event_name,
                order_metric="eventCount",
                limit=limit,
            )
        except GoogleAPIError as e:
            logger.error(f"Error fetching {report_name}: {e}")
            return []

        rows = list(response.rows)
        logger.info(f"{report_name} query: {start_date} to {end_date}, rows: {len(rows)}")
        if not rows:
            logger.warning(
                f"No {event_name} events found. Custom dimensions may not be active yet."
            )
        return rows

    def get_top_pages(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        response = self._run_report(
            start_date,
            end_date,
            metrics=["screenPageViews", "totalUsers", "newUsers", "averageSessionDuration"],
            dimensions=["pagePath", "pageTitle"],
            order_metric="screenPageViews",
            limit=limit,
        )
        return [
            {
                "page_path": row.dimension_values[0].value,
                "page_title": row.dimension_values[1].value,
                "page_views": _int(row.metric_values[0].value),
                "total_users": _int(row.metric_values[1].value),
                "new_users": _int(row.metric_values[2].value),
                "avg_session_duration": _float(row.metric_values[3].value),
            }
            for row in response.rows
        ]

    def get_top_articles(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        rows = self._event_report(
            "top articles",
            "article_read",
            ["customEvent:article_id", "customEvent:article_title"],
            start_date,
            end_date,
            limit,
        )
        return [
            {
                "article_id": row.dimension_values[0].value,
                "title": row.dimension_values[1].value,
                "views": _int(row.metric_values[0].value),
                "unique_readers": _int(row.metric_values[1].value),
            }
            for row in rows
        ]

    def get_top_members(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        rows = self._event_report(
            "top members",
            "member_view",
            ["customEvent:member_id", "customEvent:member_name"],
            start_date,
            end_date,
            limit,
        )
        return [
            {
                "member_id": row.dimension_values[0].value,
                "member_name": row.dimension_values[1].value,
                "profile_views": _int(row.metric_values[0].value),
                "unique_viewers": _int(row.metric_values[1].value),
            }
            for row in rows
        ]

    def get_top_events(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        rows = self._event_report(
            "top events",
            "event_view",
            [
                "customEvent:event_id",
                "customEvent:event_title",
                "customEvent:event_type",
            ],
            start_date,
            end_date,
            limit,
        )
        return [
            {
                "event_id": row.dimension_values[0].value,
                "event_title": row.dimension_values[1].value,
                "event_type": row.dimension_values[2].value,
                "page_views": _int(row.metric_values[0].value),
                "unique_visitors": _int(row.metric_values[1].value),
            }
            for row in rows
        ]

    def get_search_analytics(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        limit: int = 20,
    ) -> List[Dict[str, Any]]:
        rows = self._event_report(
            "search analytics",
            "member_search",
            ["customEvent:search_term"],
            start_date,
            end_date,
            limit,
        )
        return [
            {
                "search_term": row.dimension_values[0].value,
                "search_count": _int(row.metric_values[0].value),
                "unique_searchers": _int(row.metric_values[1].value),
            }
            for row in rows
        ]

    def get_user_behavior(
        self, start_date: str = DEFAULT_START_DATE, end_date: str = DEFAULT_END_DATE
    ) -> Dict[str, Any]:
        response = self._run_report(
            start_date,
            end_date,
            metrics=[
                "totalUsers",
                "newUsers",
                "sessions",
                "screenPageViews",
                "averageSessionDuration",
                "bounceRate",
                "engagedSessions",
            ],
        )
        rows = list(response.rows)
        values = [m.value for m in rows[0].metric_values] if rows else [None] * 7
        return {
            "total_users": _int(values[0]),
            "new_users": _int(values[1]),
            "sessions": _int(values[2]),
            "page_views": _int(values[3]),
            "avg_session_duration": _float(values[4]),
            "bounce_rate": _float(values[5]),
            "engaged_sessions": _int(values[6]),
        }

    def get_user_types(
        self, start_date: str = DEFAULT_START_DATE, end_date: str = DEFAULT_END_DATE
    ) -> List[Dict[str, Any]]:
        """Guest vs authenticated visitors."""
        response = self._run_report(
            start_date,
            end_date,
            metrics=["totalUsers", "sessions", "screenPageViews"],
            dimensions=["customUser:user_type"],
        )
        return [
            {
                "user_type": row.dimension_values[0].value or "unknown",
                "users": _int(row.metric_values[0].value),
                "sessions": _int(row.metric_values[1].value),
                "page_views": _int(row.metric_values[2].value),
            }
            for row in response.rows
        ]

    def get_traffic_by_country(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        response = self._run_report(
            start_date,
            end_date,
            metrics=["totalUsers", "sessions", "screenPageViews"],
            dimensions=["country"],
            order_metric="totalUsers",
            limit=limit,
        )
        return [
            {
                "country": row.dimension_values[0].value,
                "users": _int(row.metric_values[0].value),
                "sessions": _int(row.metric_values[1].value),
                "page_views": _int(row.metric_values[2].value),
            }
            for row in response.rows
        ]

    def get_realtime_users(self) -> Dict[str, int]:
        client = self._require_client()
        response = client.run_realtime_report(
            RunRealtimeReportRequest(
                property=self.property, metrics=[Metric(name="activeUsers")]
            )
        )
        rows = list(response.rows)
        return {"active_users": _int(rows[0].metric_values[0].value) if rows else 0}

    def get_traffic_over_time(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str = DEFAULT_END_DATE,
        granularity: TrafficGranularity = TrafficGranularity.DATE,
    ) -> List[Dict[str, Any]]:
        response = self._run_report(
            start_date,
            end_date,
            metrics=["totalUsers", "sessions", "screenPageViews"],
            dimensions=[granularity.value],
            order_dimension=granularity.value,
        )
        return [
            {
                "period": row.dimension_values[0].value,
                "users": _int(row.metric_values[0].value),
                "sessions": _int(row.metric_values[1].value),
                "page_views": _int(row.metric_values[2].value),
            }
            for row in response.rows
        ]
