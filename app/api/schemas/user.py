"""User profile schemas."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.api.schemas.common import PageInfo
from app.core.enums import UserStatus


class UserCreateRequest(BaseModel):
    """Request model for creating an internal user with an Entra account."""

    username: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    contact_number: Optional[str] = Field(None, max_length=50)
    designation: Optional[str] = Field(None, max_length=100)
    user_type: Optional[str] = Field(None, max_length=50)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if not v.strip():
            raise ValueError("Username cannot be empty or whitespace-only")
        return v.strip()


class UserProfileUpdateRequest(BaseModel):
    """Only the fields present in the request body are changed."""

    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    user_type: Optional[str] = Field(None, max_length=50)
    member_id: Optional[str] = Field(None, max_length=32)
    contact_number: Optional[str] = Field(None, max_length=50)
    designation: Optional[str] = Field(None, max_length=100)
    newsletter_subscription: Optional[bool] = None
    correspondence_user: Optional[bool] = None
    marketing_focal_point: Optional[bool] = None
    investor_focal_point: Optional[bool] = None
    is_member: Optional[bool] = None
    status: Optional[UserStatus] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_type: Optional[str] = None
    member_id: Optional[str] = None
    entra_user_id: Optional[str] = None
    contact_number: Optional[str] = None
    designation: Optional[str] = None
    newsletter_subscription: bool = False
    correspondence_user: bool = False
    marketing_focal_point: bool = False
    investor_focal_point: bool = False
    is_member: bool = False
    status: UserStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""

        use_enum_values = True


class UserListResponse(BaseModel):
    items: List[UserResponse]
    page: PageInfo


class UserRef(BaseModel):
    id: uuid.UUID
    username: str


class UserAccessResponse(BaseModel):
    """Entitlements resolved for a user."""

    user: UserRef
    membership_id: str
    membership_type: str
    entitlements: Dict[str, Any]
    generated_at: datetime
