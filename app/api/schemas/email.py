"""Email template and send schemas."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import Language


class TranslationSchema(BaseModel):
    language: Language
    subject: str = Field(..., min_length=1, max_length=500)
    html_body: str = Field(..., min_length=1)
    text_body: Optional[str] = None


class TemplateCreateRequest(BaseModel):
    template_code: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Z0-9_]+$")
    description: Optional[str] = Field(None, max_length=500)
    translations: List[TranslationSchema] = Field(..., min_length=1)
    required_params: Optional[List[str]] = Field(
        None, description="Defaults to every variable the translations reference"
    )


class TemplateUpdateRequest(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    translations: Optional[List[TranslationSchema]] = Field(None, min_length=1)
    required_params: Optional[List[str]] = None


class TemplateResponse(BaseModel):
    id: uuid.UUID
    template_code: str
    description: Optional[str] = None
    translations: List[TranslationSchema]
    required_params: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""

        use_enum_values = True


class TemplateListResponse(BaseModel):
    items: List[TemplateResponse]
    total: int


class SendEmailRequest(BaseModel):
    to: List[str] = Field(..., min_length=1)
    template_code: str = Field(..., min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)
    language: Language = Language.EN


class SendEmailResponse(BaseModel):
    sent: List[str]
    failed: List[Dict[str, str]]
