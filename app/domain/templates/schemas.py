"""Template domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...email_templates import EMAIL_STYLES

REQUIRED_FIELDS = ("name", "subject", "body_en", "body_lt")


class TemplateBase(BaseModel):
    name: str
    subject: str
    subject_en: Optional[str] = None
    subject_lt: Optional[str] = None
    body_en: str
    body_lt: str
    style: Optional[str] = None
    category: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for field in REQUIRED_FIELDS:
                value = data.get(field)
                if not isinstance(value, str) or not value.strip():
                    raise ValueError("All fields are required")
        return data

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @field_validator("style")
    @classmethod
    def check_style(cls, v):
        if v and v not in EMAIL_STYLES:
            raise ValueError(f"style must be one of: {', '.join(EMAIL_STYLES)}")
        return v


class TemplateCreate(TemplateBase):
    pass


class TemplateUpdate(TemplateBase):
    pass
