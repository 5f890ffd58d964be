"""Message domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...email_templates import EMAIL_STYLES
from ...utils.dates import parse_datetime, utcnow


class MessageBase(BaseModel):
    subject: str
    body_en: str
    body_lt: str
    style: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for field in ("subject", "body_en", "body_lt"):
                value = data.get(field)
                if not isinstance(value, str) or not value.strip():
                    raise ValueError("All fields are required")
        return data

    @field_validator("style")
    @classmethod
    def check_style(cls, v):
        if v and v not in EMAIL_STYLES:
            raise ValueError(f"style must be one of: {', '.join(EMAIL_STYLES)}")
        return v


class MessageCreate(MessageBase):
    """Schema for creating a draft message"""


class MessageUpdate(MessageBase):
    """Schema for updating a draft message"""


class SendRequest(BaseModel):
    guest_ids: Optional[list[int]] = Field(None, alias="guestIds")


class ScheduleRequest(BaseModel):
    scheduled_for: Optional[str] = None
    guest_ids: Optional[list[int]] = Field(None, alias="guestIds")

    @field_validator("scheduled_for")
    @classmethod
    def check_future(cls, v):
        if not v:
            return v
        when = parse_datetime(v)
        if when is None or when < utcnow():
            raise ValueError("scheduled_for must be a valid future datetime")
        return v

    @model_validator(mode="after")
    def check_present(self):
        if not self.scheduled_for:
            raise ValueError("scheduled_for field is required")
        return self


class PreviewTemplate(BaseModel):
    subject: Optional[str] = ""
    body_en: Optional[str] = ""
    body_lt: Optional[str] = ""


class PreviewRequest(BaseModel):
    template: Optional[PreviewTemplate] = None
    guest: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def check_present(self):
        if self.template is None or not self.guest:
            raise ValueError("Template and guest info are required")
        return self
