"""Enquiry API endpoints."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.errors import http_error_from_value_error, internal_error
from app.api.schemas.common import PageInfo, SuccessResponse
from app.api.schemas.enquiry import (
    EnquiryCreateRequest,
    EnquiryListResponse,
    EnquiryResponse,
    EnquiryUpdateRequest,
    UserDetails,
)
from app.core.auth_utils import require_api_key
from app.core.enums import EnquiryType
from app.core.rate_limiter import limit_public_form
from app.dependencies import get_enquiry_service
from app.models.enquiry import Enquiry
from app.repositories.base_repo import DEFAULT_PAGE_SIZE, clamp_page_size
from app.services.enquiry_service import EnquiryService

router = APIRouter(
    prefix="/enquiries",
    tags=["enquiries"],
    dependencies=[Depends(require_api_key)],
)

EnquiryDep = Annotated[EnquiryService, Depends(get_enquiry_service)]


def _enquiry_to_response(enquiry: Enquiry) -> EnquiryResponse:
    """Convert Enquiry model to EnquiryResponse."""
    return EnquiryResponse(
        id=enquiry.id,  # type: ignore[arg-type]
        enquiry_type=enquiry.enquiry_type,  # type: ignore[arg-type]
        enquiry_status=enquiry.enquiry_status,  # type: ignore[arg-type]
        user_details=UserDetails(**(enquiry.user_details or {})),
        subject=enquiry.subject,  # type: ignore[arg-type]
        message=enquiry.message,  # type: ignore[arg-type]
        no_of_members=enquiry.no_of_members,  # type: ignore[arg-type]
        member_id=enquiry.member_id,  # type: ignore[arg-type]
        comments=enquiry.comments,  # type: ignore[arg-type]
        created_at=enquiry.created_at,  # type: ignore[arg-type]
        updated_at=enquiry.updated_at,  # type: ignore[arg-type]
    )


@router.post(
    "",
    response_model=EnquiryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_public_form("enquiries"))],
)
async def create_enquiry(request: EnquiryCreateRequest, enquiry_service: EnquiryDep):
    """Submit an enquiry."""
    try:
        enquiry = enquiry_service.create_enquiry(
            enquiry_type=request.enquiry_type,
            user_details=request.user_details.model_dump(exclude_none=True),
            subject=request.subject,
            message=request.message,
            no_of_members=request.no_of_members,
            member_id=request.member_id,
        )
        return _enquiry_to_response(enquiry)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("create enquiry", e) from e


@router.get("", response_model=EnquiryListResponse)
async def list_enquiries(
    enquiry_service: EnquiryDep,
    enquiry_type: Optional[EnquiryType] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
):
    try:
        enquiries, total = enquiry_service.list_enquiries(enquiry_type, page, page_size)
        return EnquiryListResponse(
            items=[_enquiry_to_response(e) for e in enquiries],
            page=PageInfo(
                total=total, page=page, page_size=clamp_page_size(page_size)
            ),
        )
    except Exception as e:
        raise internal_error("list enquiries", e) from e


@router.get("/member/{member_id}", response_model=EnquiryListResponse)
async def list_member_enquiries(member_id: str, enquiry_service: EnquiryDep):
    """Enquiries raised by one member organisation."""
    try:
        enquiries, total = enquiry_service.list_for_member(member_id)
        return EnquiryListResponse(
            items=[_enquiry_to_response(e) for e in enquiries],
            page=PageInfo(total=total, page=1, page_size=len(enquiries)),
        )
    except Exception as e:
        raise internal_error("list member enquiries", e) from e


@router.get("/{enquiry_id}", response_model=EnquiryResponse)
async def get_enquiry(enquiry_id: UUID, enquiry_service: EnquiryDep):
    try:
        return _enquiry_to_response(enquiry_service.get_enquiry(enquiry_id))
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("get enquiry", e) from e


@router.put("/{enquiry_id}", response_model=EnquiryResponse)
async def update_enquiry(
    enquiry_id: UUID, request: EnquiryUpdateRequest, enquiry_service: EnquiryDep
):
    """Approve or reject a pending enquiry."""
    try:
        enquiry = enquiry_service.update_enquiry(
            enquiry_id, request.enquiry_status, request.comments
        )
        return _enquiry_to_response(enquiry)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("update enquiry", e) from e


@router.delete("/{enquiry_id}", response_model=SuccessResponse)
async def delete_enquiry(enquiry_id: UUID, enquiry_service: EnquiryDep):
    try:
        enquiry_service.delete_enquiry(enquiry_id)
        return SuccessResponse(message="Enquiry deleted successfully")
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("delete enquiry", e) from e
