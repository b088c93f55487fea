"""Membership entitlement schemas."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator

from app.core.enums import AccessLevel, DiscountType, QuotaWindow


class Quota(BaseModel):
    kind: Optional[str] = None
    limit: int = Field(..., ge=0)
    used: int = Field(0, ge=0)
    window: Optional[QuotaWindow] = None
    resets_at: Optional[datetime] = None


class Monetary(BaseModel):
    payment_required: bool = False
    discount_available: bool = False
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=3)

    @model_validator(mode="after")
    def validate_discount(self):
        """A discount needs a type and value; percentages stop at 100."""
        if self.discount_available and (
            self.discount_type is None or self.discount_value is None
        ):
            raise ValueError("Discount type and value are required when a discount is available")
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value is not None
            and self.discount_value > 100
        ):
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class Approval(BaseModel):
    required: bool = False
    authority: Optional[str] = None
    status: Optional[str] = None


class Entitlement(BaseModel):
    """Access to one feature for a membership type."""

    access: AccessLevel
    quota: Optional[Quota] = None
    monetary: Optional[Monetary] = None
    approval: Optional[Approval] = None
    notes: Optional[str] = Field(None, max_length=1000)


class QuotaResponse(Quota):
    remaining: int = 0


class EntitlementResponse(Entitlement):
    quota: Optional[QuotaResponse] = None


class MembershipFeaturesRequest(BaseModel):
    entitlements: Dict[str, Entitlement]
    description: Optional[str] = Field(None, max_length=1000)


class MembershipFeaturesResponse(BaseModel):
    type: str
    description: Optional[str] = None
    entitlements: Dict[str, EntitlementResponse]
    generated_at: datetime
