"""Email template management and direct send endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.errors import http_error_from_value_error, internal_error
from app.api.schemas.common import SuccessResponse
from app.api.schemas.email import (
    SendEmailRequest,
    SendEmailResponse,
    TemplateCreateRequest,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdateRequest,
)
from app.core.auth_utils import require_api_key
from app.dependencies import get_email_service
from app.models.email_template import EmailTemplate
from app.services.email_service import EmailService

router = APIRouter(
    prefix="/email",
    tags=["email"],
    dependencies=[Depends(require_api_key)],
)

EmailDep = Annotated[EmailService, Depends(get_email_service)]


def _template_to_response(template: EmailTemplate) -> TemplateResponse:
    """Convert EmailTemplate model to TemplateResponse."""
    return TemplateResponse(
        id=template.id,  # type: ignore[arg-type]
        template_code=template.template_code,  # type: ignore[arg-type]
        description=template.description,  # type: ignore[arg-type]
        translations=template.translations or [],  # type: ignore[arg-type]
        required_params=template.required_params or [],  # type: ignore[arg-type]
        created_at=template.created_at,  # type: ignore[arg-type]
        updated_at=template.updated_at,  # type: ignore[arg-type]
    )


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(email_service: EmailDep):
    try:
        templates = email_service.list_templates()
        return TemplateListResponse(
            items=[_template_to_response(t) for t in templates], total=len(templates)
        )
    except Exception as e:
        raise internal_error("list email templates", e) from e


@router.post(
    "/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED
)
async def create_template(request: TemplateCreateRequest, email_service: EmailDep):
    try:
        template = email_service.create_template(
            request.template_code,
            translations=[t.model_dump(mode="json") for t in request.translations],
            description=request.description,
            required_params=request.required_params,
        )
        return _template_to_response(template)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("create email template", e) from e


@router.get("/templates/{template_code}", response_model=TemplateResponse)
async def get_template(template_code: str, email_service: EmailDep):
    try:
        return _template_to_response(email_service.get_template(template_code))
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("get email template", e) from e


@router.put("/templates/{template_code}", response_model=TemplateResponse)
async def update_template(
    template_code: str, request: TemplateUpdateRequest, email_service: EmailDep
):
    try:
        template = email_service.update_template(
            template_code,
            translations=(
                [t.model_dump(mode="json") for t in request.translations]
                if request.translations is not None
                else None
            ),
            description=request.description,
            required_params=request.required_params,
        )
        return _template_to_response(template)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("update email template", e) from e


@router.delete("/templates/{template_code}", response_model=SuccessResponse)
async def delete_template(template_code: str, email_service: EmailDep):
    try:
        email_service.delete_template(template_code)
        return SuccessResponse(message="Email template deleted successfully")
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("delete email template", e) from e


@router.post("/send", response_model=SendEmailResponse)
async def send_email(request: SendEmailRequest, email_service: EmailDep):
    """Render a template and deliver it to every recipient."""
    try:
        return email_service.send_bulk_templated_email(
            request.to, request.template_code, request.params, request.language.value
        )
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("send email", e) from e
