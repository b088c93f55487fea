"""Enquiry request/response schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.api.schemas.common import PageInfo
from app.core.enums import EnquiryStatus, EnquiryType


class UserDetails(BaseModel):
    """Contact details of whoever sent the enquiry."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    organization_name: Optional[str] = Field(None, max_length=255)
    country: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)


class EnquiryCreateRequest(BaseModel):
    enquiry_type: EnquiryType
    user_details: UserDetails
    subject: Optional[str] = Field(None, max_length=500)
    message: Optional[str] = Field(None, max_length=5000)
    no_of_members: Optional[int] = Field(None, ge=1)
    member_id: Optional[str] = None


class EnquiryUpdateRequest(BaseModel):
    enquiry_status: EnquiryStatus
    comments: Optional[str] = Field(None, max_length=2000)


class EnquiryResponse(BaseModel):
    id: uuid.UUID
    enquiry_type: EnquiryType
    enquiry_status: EnquiryStatus
    user_details: UserDetails
    subject: Optional[str] = None
    message: Optional[str] = None
    no_of_members: Optional[int] = None
    member_id: Optional[str] = None
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""

        use_enum_values = True


class EnquiryListResponse(BaseModel):
    items: List[EnquiryResponse]
    page: PageInfo
