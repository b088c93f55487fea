"""API schemas package."""

from .common import ErrorResponse, PageInfo, SuccessResponse
from .enquiry import EnquiryCreateRequest, EnquiryResponse, EnquiryUpdateRequest
from .member import MemberResponse, Phase1Request, Phase2Request, StatusUpdateRequest

__all__ = [
    "EnquiryCreateRequest",
    "EnquiryResponse",
    "EnquiryUpdateRequest",
    "ErrorResponse",
    "MemberResponse",
    "PageInfo",
    "Phase1Request",
    "Phase2Request",
    "StatusUpdateRequest",
    "SuccessResponse",
]
