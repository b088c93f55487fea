"""Member application request/response schemas."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.api.schemas.common import PageInfo
from app.core.enums import MemberStatus, MemberUserType, PaymentStatus, WorkflowAction


class Address(BaseModel):
    model_config = ConfigDict(extra="allow")

    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = Field(None, max_length=2)
    zip: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("country_code")
    @classmethod
    def upper_country_code(cls, v):
        return v.upper() if v else v


class OrganisationInfo(BaseModel):
    """Organisation details; unknown keys are kept as submitted."""

    model_config = ConfigDict(extra="allow")

    company_name: Optional[str] = Field(None, max_length=255)
    type_of_organization: Optional[str] = None
    website_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    industries: Optional[List[str]] = None
    logo_url: Optional[str] = None
    address: Optional[Address] = None
    signatory_name: Optional[str] = None
    signatory_position: Optional[str] = None
    contact_number: Optional[str] = None
    social_handles: Optional[Dict[str, str]] = None
    questionnaire: Optional[Dict[str, Any]] = None


class MemberUserRequest(BaseModel):
    """A person attached to the application."""

    email: str = Field(..., min_length=3, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    user_type: Optional[MemberUserType] = None
    correspondence_user: bool = False
    marketing_focal_point: bool = False
    investor_focal_point: bool = False
    newsletter_subscription: bool = False
    contact_number: Optional[str] = None
    designation: Optional[str] = None
    profile_image_url: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v.strip()


class Phase1Request(BaseModel):
    """First application step."""

    category: str = Field(..., min_length=1, max_length=100)
    tier: Optional[str] = None
    organisation_info: OrganisationInfo
    member_users: List[MemberUserRequest] = Field(..., min_length=1)
    member_consent: Optional[Dict[str, Any]] = None


class Phase2Request(BaseModel):
    """Second application step; merged into what phase 1 stored."""

    organisation_info: Optional[OrganisationInfo] = None
    member_consent: Optional[Dict[str, Any]] = None
    additional_info: Optional[Dict[str, Any]] = None
    featured_member: Optional[bool] = None


class StatusUpdateRequest(BaseModel):
    action: WorkflowAction
    comments: Optional[str] = Field(None, max_length=2000)


class PaymentLinkRequest(BaseModel):
    payment_link: str = Field(..., min_length=1, max_length=2000)


class PaymentStatusRequest(BaseModel):
    payment_status: PaymentStatus


class MemberResponse(BaseModel):
    """Member application in API responses."""

    id: uuid.UUID
    application_number: str
    member_id: Optional[str] = None
    category: str
    tier: Optional[str] = None
    status: MemberStatus
    payment_status: Optional[PaymentStatus] = None
    payment_link: Optional[str] = None
    valid_until: Optional[datetime] = None
    featured_member: bool = False
    allowed_user_count: Optional[int] = None
    organisation_info: Dict[str, Any] = Field(default_factory=dict)
    member_consent: Dict[str, Any] = Field(default_factory=dict)
    additional_info: Dict[str, Any] = Field(default_factory=dict)
    member_users: List[Dict[str, Any]] = Field(default_factory=list)
    approval_history: List[Dict[str, Any]] = Field(default_factory=list)
    rejection_history: List[Dict[str, Any]] = Field(default_factory=list)
    approval_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""

        use_enum_values = True


class MemberListResponse(BaseModel):
    items: List[MemberResponse]
    page: PageInfo
