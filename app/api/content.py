"""Moderation endpoints for member-submitted events, webinars and news."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.errors import http_error_from_value_error, internal_error
from app.api.schemas.content import (
    ContentDecisionResponse,
    ContentEmailRequest,
    ContentEmailResponse,
    ContentListResponse,
    ContentRejectRequest,
)
from app.core.auth_utils import get_current_user
from app.core.enums import ContentKind
from app.dependencies import get_content_service
from app.services.content_service import ContentService, StrapiError

router = APIRouter(
    prefix="/content",
    tags=["content"],
    dependencies=[Depends(get_current_user)],
)

ContentDep = Annotated[ContentService, Depends(get_content_service)]


def _bad_gateway(e: StrapiError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/{kind}/pending", response_model=ContentListResponse)
async def list_pending(kind: ContentKind, content_service: ContentDep):
    """Drafts waiting for an admin decision."""
    try:
        items = content_service.list_pending(kind)
        return ContentListResponse(items=items, total=len(items))
    except StrapiError as e:
        raise _bad_gateway(e) from e
    except Exception as e:
        raise internal_error(f"list pending {kind.value}", e) from e


@router.get("/{kind}/{slug}")
async def get_draft(kind: ContentKind, slug: str, content_service: ContentDep):
    try:
        return content_service.get_draft(kind, slug)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except StrapiError as e:
        raise _bad_gateway(e) from e
    except Exception as e:
        raise internal_error(f"get {kind.value} draft", e) from e


@router.post("/{kind}/{slug}/approve", response_model=ContentDecisionResponse)
async def approve(kind: ContentKind, slug: str, content_service: ContentDep):
    try:
        data = content_service.approve(kind, slug)
        return ContentDecisionResponse(message=f"{slug} approved", data=data)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except StrapiError as e:
        raise _bad_gateway(e) from e
    except Exception as e:
        raise internal_error(f"approve {kind.value}", e) from e


@router.post("/{kind}/{slug}/reject", response_model=ContentDecisionResponse)
async def reject(
    kind: ContentKind,
    slug: str,
    request: ContentRejectRequest,
    content_service: ContentDep,
):
    try:
        data = content_service.reject(kind, slug, request.reason)
        return ContentDecisionResponse(message=f"{slug} rejected", data=data)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except StrapiError as e:
        raise _bad_gateway(e) from e
    except Exception as e:
        raise internal_error(f"reject {kind.value}", e) from e


@router.post("/{kind}/send-email", response_model=ContentEmailResponse)
async def send_email(
    kind: ContentKind, request: ContentEmailRequest, content_service: ContentDep
):
    """Queue the notification emails for a content decision."""
    try:
        fields = request.model_dump(exclude={"email", "type"}, exclude_none=True)
        queued = content_service.send_email(kind, request.type, request.email, fields)
        return ContentEmailResponse(message="Emails queued", queued=queued)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("send content email", e) from e
