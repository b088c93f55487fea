"""Google Analytics proxy endpoints for the admin dashboard."""

from typing import Annotated, Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from google.api_core.exceptions import GoogleAPIError

from app.api.errors import internal_error
from app.core.auth_utils import get_current_user
from app.core.enums import Period, TrafficGranularity
from app.core.logging import get_logger
from app.dependencies import get_ga_analytics_service
from app.services.ga_analytics_service import (
    AnalyticsNotConfiguredError,
    GAAnalyticsService,
    date_range_for,
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/ga-analytics",
    tags=["ga-analytics"],
    dependencies=[Depends(get_current_user)],
)

GADep = Annotated[GAAnalyticsService, Depends(get_ga_analytics_service)]
LimitQuery = Annotated[int, Query(ge=1, le=100)]


def _run(report: Callable[..., Any], action: str, **kwargs: Any) -> Any:
    """Run a report, mapping configuration and API failures to HTTP errors."""
    try:
        return report(**kwargs)
    except AnalyticsNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        ) from e
    except GoogleAPIError as e:
        logger.error(f"GA request failed while trying to {action}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to {action}: {str(e)}",
        ) from e
    except Exception as e:
        raise internal_error(action, e) from e


@router.get("/top-pages")
async def top_pages(ga: GADep, period: Optional[Period] = None, limit: LimitQuery = 10):
    return _run(ga.get_top_pages, "get top pages", **date_range_for(period), limit=limit)


@router.get("/top-articles")
async def top_articles(
    ga: GADep, period: Optional[Period] = None, limit: LimitQuery = 10
):
    return _run(
        ga.get_top_articles, "get top articles", **date_range_for(period), limit=limit
    )


@router.get("/top-members")
async def top_members(ga: GADep, period: Optional[Period] = None, limit: LimitQuery = 10):
    return _run(
        ga.get_top_members, "get top members", **date_range_for(period), limit=limit
    )


@router.get("/top-events")
async def top_events(ga: GADep, period: Optional[Period] = None, limit: LimitQuery = 10):
    return _run(
        ga.get_top_events, "get top events", **date_range_for(period), limit=limit
    )


@router.get("/search-analytics")
async def search_analytics(
    ga: GADep, period: Optional[Period] = None, limit: LimitQuery = 20
):
    return _run(
        ga.get_search_analytics,
        "get search analytics",
        **date_range_for(period),
        limit=limit,
    )


@router.get("/user-behavior")
async def user_behavior(ga: GADep, period: Optional[Period] = None):
    return _run(ga.get_user_behavior, "get user behavior", **date_range_for(period))


@router.get("/user-types")
async def user_types(ga: GADep, period: Optional[Period] = None):
    return _run(ga.get_user_types, "get user types", **date_range_for(period))


@router.get("/traffic-by-country")
async def traffic_by_country(
    ga: GADep, period: Optional[Period] = None, limit: LimitQuery = 10
):
    return _run(
        ga.get_traffic_by_country,
        "get traffic by country",
        **date_range_for(period),
        limit=limit,
    )


@router.get("/realtime")
async def realtime(ga: GADep):
    return _run(ga.get_realtime_users, "get realtime users")


@router.get("/traffic-over-time")
async def traffic_over_time(
    ga: GADep,
    period: Optional[Period] = None,
    granularity: TrafficGranularity = TrafficGranularity.DATE,
):
    return _run(
        ga.get_traffic_over_time,
        "get traffic over time",
        **date_range_for(period),
        granularity=granularity,
    )
