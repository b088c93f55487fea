"""Member application API endpoints."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.errors import http_error_from_value_error, internal_error
from app.api.schemas.common import PageInfo, SuccessResponse
from app.api.schemas.member import (
    MemberListResponse,
    MemberResponse,
    PaymentLinkRequest,
    PaymentStatusRequest,
    Phase1Request,
    Phase2Request,
    StatusUpdateRequest,
)
from app.core.auth_utils import get_current_user, require_api_key
from app.core.enums import MemberStatus
from app.core.rate_limiter import limit_public_form
from app.dependencies import get_member_workflow_service
from app.models.member import Member
from app.models.user import User
from app.repositories.base_repo import DEFAULT_PAGE_SIZE, clamp_page_size
from app.services.entra_service import EntraError
from app.services.member_workflow_service import MemberWorkflowService

router = APIRouter(prefix="/members", tags=["members"])

WorkflowDep = Annotated[MemberWorkflowService, Depends(get_member_workflow_service)]


def _member_to_response(member: Member) -> MemberResponse:
    """Convert Member model to MemberResponse."""
    return MemberResponse(
        id=member.id,  # type: ignore[arg-type]
        application_number=member.application_number,  # type: ignore[arg-type]
        member_id=member.member_id,  # type: ignore[arg-type]
        category=member.category,  # type: ignore[arg-type]
        tier=member.tier,  # type: ignore[arg-type]
        status=member.status,  # type: ignore[arg-type]
        payment_status=member.payment_status,  # type: ignore[arg-type]
        payment_link=member.payment_link,  # type: ignore[arg-type]
        valid_until=member.valid_until,  # type: ignore[arg-type]
        featured_member=bool(member.featured_member),
        allowed_user_count=member.allowed_user_count,  # type: ignore[arg-type]
        organisation_info=member.organisation_info or {},
        member_consent=member.member_consent or {},
        additional_info=member.additional_info or {},
        member_users=member.user_snapshots or [],
        approval_history=member.approval_history or [],
        rejection_history=member.rejection_history or [],
        approval_date=member.approval_date,  # type: ignore[arg-type]
        created_at=member.created_at,  # type: ignore[arg-type]
        updated_at=member.updated_at,  # type: ignore[arg-type]
    )


def _actor(user: User) -> tuple:
    """Display name and email recorded in approval history."""
    full_name = " ".join(n for n in (user.first_name, user.last_name) if n)
    return full_name or user.username, user.email or user.username


@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key), Depends(limit_public_form("members"))],
)
async def submit_phase1(request: Phase1Request, workflow: WorkflowDep):
    """Create a member application (phase 1)."""
    try:
        member = workflow.submit_phase1(
            category=request.category,
            organisation_info=request.organisation_info.model_dump(exclude_none=True),
            member_users=[
                u.model_dump(mode="json", exclude_none=True)
                for u in request.member_users
            ],
            member_consent=request.member_consent,
            tier=request.tier,
        )
        return _member_to_response(member)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("create member application", e) from e


@router.put(
    "/{member_id}/submit",
    response_model=MemberResponse,
    dependencies=[Depends(require_api_key)],
)
async def submit_phase2(member_id: UUID, request: Phase2Request, workflow: WorkflowDep):
    """Complete the application (phase 2) and send it for review."""
    try:
        member = workflow.submit_phase2(
            member_id,
            organisation_info=(
                request.organisation_info.model_dump(exclude_none=True)
                if request.organisation_info
                else None
            ),
            member_consent=request.member_consent,
            additional_info=request.additional_info,
            featured_member=request.featured_member,
        )
        return _member_to_response(member)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("submit member application", e) from e


@router.get(
    "", response_model=MemberListResponse, dependencies=[Depends(require_api_key)]
)
async def list_members(
    workflow: WorkflowDep,
    member_status: Annotated[Optional[MemberStatus], Query(alias="status")] = None,
    search: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
):
    """List member applications, newest first."""
    try:
        members, total = workflow.list_members(member_status, search, page, page_size)
        return MemberListResponse(
            items=[_member_to_response(m) for m in members],
            page=PageInfo(
                total=total, page=page, page_size=clamp_page_size(page_size)
            ),
        )
    except Exception as e:
        raise internal_error("list members", e) from e


@router.get(
    "/{member_id}", response_model=MemberResponse, dependencies=[Depends(require_api_key)]
)
async def get_member(member_id: UUID, workflow: WorkflowDep):
    try:
        return _member_to_response(workflow.get_member(member_id))
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("get member", e) from e


@router.delete(
    "/{member_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_api_key)],
)
async def delete_member(member_id: UUID, workflow: WorkflowDep):
    try:
        workflow.delete_member(member_id)
        return SuccessResponse(message="Member deleted successfully")
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("delete member", e) from e


@router.put("/{member_id}/status", response_model=MemberResponse)
async def update_member_status(
    member_id: UUID,
    request: StatusUpdateRequest,
    workflow: WorkflowDep,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Approve or reject the application at its current review stage."""
    action_by, action_by_email = _actor(current_user)
    try:
        member = workflow.update_status(
            member_id,
            request.action,
            action_by=action_by,
            action_by_email=action_by_email,
            comments=request.comments,
        )
        return _member_to_response(member)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("update member status", e) from e


@router.put("/{member_id}/payment-link", response_model=MemberResponse)
async def send_payment_link(
    member_id: UUID,
    request: PaymentLinkRequest,
    workflow: WorkflowDep,
    current_user: Annotated[User, Depends(get_current_user)],
):
    try:
        member = workflow.send_payment_link(member_id, request.payment_link)
        return _member_to_response(member)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("send payment link", e) from e


@router.put("/{member_id}/payment-status", response_model=MemberResponse)
async def update_payment_status(
    member_id: UUID,
    request: PaymentStatusRequest,
    workflow: WorkflowDep,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Record the payment outcome; ``paid`` activates the membership."""
    try:
        member = workflow.update_payment_status(member_id, request.payment_status)
        return _member_to_response(member)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except EntraError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to create member account: {str(e)}",
        ) from e
    except Exception as e:
        raise internal_error("update payment status", e) from e
