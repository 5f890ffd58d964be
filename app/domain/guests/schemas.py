"""Guest domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_email, validate_flag, validate_language
from ...utils.dates import parse_datetime


def _require(data: Any, fields: tuple) -> Any:
    if isinstance(data, dict):
        for field in fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValueError(f"{field} is required")
    return data


class GuestBase(BaseModel):
    group_id: Optional[int] = None
    group_label: str
    name: str
    email: Optional[str] = None
    code: str
    can_bring_plus_one: Any = None
    is_primary: Any = None
    preferred_language: Optional[str] = None
    rsvp_deadline: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("preferred_language")
    @classmethod
    def check_language(cls, v):
        return validate_language(v)

    @field_validator("can_bring_plus_one")
    @classmethod
    def check_plus_one_flag(cls, v):
        if v is None:
            return v
        try:
            return validate_flag(v, "can_bring_plus_one")
        except ValueError:
            raise ValueError("can_bring_plus_one must be a boolean or 0/1") from None

    @field_validator("is_primary")
    @classmethod
    def check_primary_flag(cls, v):
        return v if v is None else validate_flag(v, "is_primary")

    @field_validator("rsvp_deadline")
    @classmethod
    def check_deadline(cls, v):
        if v and parse_datetime(v) is None:
            raise ValueError("rsvp_deadline must be a valid date")
        return v or None

    @field_validator("code", "name", "group_label")
    @classmethod
    def strip_text(cls, v):
        return v.strip()


class GuestCreate(GuestBase):
    """Schema for creating a new guest"""

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data: Any) -> Any:
        return _require(data, ("code", "name", "group_label"))


class GuestUpdate(GuestBase):
    """Schema for updating an existing guest"""

    attending: Optional[bool] = None
    dietary: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data: Any) -> Any:
        return _require(data, ("group_label", "name", "code"))
