"""Membership entitlement API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.errors import http_error_from_value_error, internal_error
from app.api.schemas.common import SuccessResponse
from app.api.schemas.membership import (
    MembershipFeaturesRequest,
    MembershipFeaturesResponse,
)
from app.core.auth_utils import require_api_key
from app.dependencies import get_membership_service
from app.services.membership_service import MembershipService

router = APIRouter(
    prefix="/membership",
    tags=["membership"],
    dependencies=[Depends(require_api_key)],
)

MembershipDep = Annotated[MembershipService, Depends(get_membership_service)]


@router.get("/features/{membership_type}", response_model=MembershipFeaturesResponse)
async def get_features(membership_type: str, membership_service: MembershipDep):
    """Entitlements of a membership type with remaining quotas."""
    try:
        return membership_service.get_features(membership_type)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("get membership features", e) from e


@router.post("/features/{membership_type}", response_model=MembershipFeaturesResponse)
async def upsert_features(
    membership_type: str,
    request: MembershipFeaturesRequest,
    membership_service: MembershipDep,
):
    """Create or replace a membership type's entitlements."""
    try:
        entitlements = {
            feature: entitlement.model_dump(mode="json", exclude_none=True)
            for feature, entitlement in request.entitlements.items()
        }
        return membership_service.upsert_features(
            membership_type, entitlements, request.description
        )
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("save membership features", e) from e


@router.delete("/features/{membership_type}", response_model=SuccessResponse)
async def delete_features(membership_type: str, membership_service: MembershipDep):
    try:
        membership_service.delete_features(membership_type)
        return SuccessResponse(message="Membership features deleted successfully")
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("delete membership features", e) from e
