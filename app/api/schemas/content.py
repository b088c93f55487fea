"""Content moderation schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import ContentDecision


class ContentRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class ContentEmailRequest(BaseModel):
    """Notification request sent by the portal after a content decision."""

    email: str = Field(..., min_length=3, max_length=255)
    type: ContentDecision
    title: Optional[str] = None
    event_title: Optional[str] = None
    event_code: Optional[str] = None
    event_type: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    organizer_name: Optional[str] = None
    scheduled_date: Optional[str] = None
    rejection_reason: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ContentListResponse(BaseModel):
    items: List[Dict[str, Any]]
    total: int


class ContentDecisionResponse(BaseModel):
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ContentEmailResponse(BaseModel):
    message: str
    queued: int
