"""Schemas shared across API resources."""

from typing import Optional

from pydantic import BaseModel, Field


class PageInfo(BaseModel):
    """Pagination block of list responses."""

    total: int = Field(..., description="Number of matching rows across all pages")
    page: int
    page_size: int


class SuccessResponse(BaseModel):
    """Standard success response format."""

    message: str = Field(..., description="Success message")
    data: Optional[dict] = Field(None, description="Additional response data")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    detail: str = Field(..., description="Error details")

    class Config:
        """Example error response."""

        json_schema_extra = {"example": {"detail": "Member 1c7b... not found"}}
