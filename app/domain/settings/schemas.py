"""Settings schemas - email provider, guest-wide RSVP and site settings"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_email
from ...utils.dates import parse_datetime

SITE_SETTING_FIELDS = (
    "wedding_date",
    "venue_name",
    "venue_address",
    "event_start_date",
    "event_end_date",
    "event_time",
    "bride_name",
    "groom_name",
    "contact_email",
    "contact_phone",
    "rsvp_deadline",
    "event_type",
    "dress_code",
    "special_instructions",
    "website_url",
    "app_title",
)


class EmailSettingsUpdate(BaseModel):
    provider: Optional[str] = "resend"
    api_key: Optional[str] = None
    from_name: Optional[str] = None
    from_email: Optional[str] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    enabled: Optional[bool] = False

    @field_validator("from_email", "sender_email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class GuestSettingsUpdate(BaseModel):
    rsvp_open: Optional[bool] = False
    rsvp_deadline: Optional[str] = None

    @field_validator("rsvp_deadline")
    @classmethod
    def check_deadline(cls, v):
        if v and parse_datetime(v) is None:
            raise ValueError("rsvp_deadline must be a valid date")
        return v or None


class SiteSettingsUpdate(BaseModel):
    """Partial update of the site settings row; only known keys are accepted"""

    values: dict[str, Optional[str]]

    @model_validator(mode="before")
    @classmethod
    def collect(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")
        for key, value in data.items():
            if key not in SITE_SETTING_FIELDS:
                raise ValueError(f"Unknown setting: {key}")
            if value is not None and not isinstance(value, (str, int, float)):
                raise ValueError(f"{key} must be a string")
        return {"values": {k: (None if v is None else str(v)) for k, v in data.items()}}
