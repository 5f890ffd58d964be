"""RSVP domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...utils.dates import parse_datetime

OPTIONAL_STRING_FIELDS = ("plus_one_name", "dietary", "notes", "plus_one_dietary")


def validate_rsvp_input(data: Any, require_code: bool = False, require_attending: bool = False) -> Any:
    """
    Check raw RSVP input in a fixed order so the first failing rule is the
    one reported.
    """
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")

    if require_code and not (isinstance(data.get("code"), str) and data["code"].strip()):
        raise ValueError("Code is required")

    if "attending" not in data:
        if require_attending:
            raise ValueError("attending is required")
    elif not isinstance(data["attending"], bool):
        if data["attending"] is None and require_attending:
            raise ValueError("attending is required")
        if data["attending"] is not None:
            raise ValueError("attending must be a boolean")

    for field in OPTIONAL_STRING_FIELDS:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{field} must be a string")
    return data


class RsvpSubmission(BaseModel):
    """Public RSVP form submission"""

    code: str
    attending: bool
    plus_one_name: Optional[str] = None
    plus_one_dietary: Optional[str] = None
    dietary: Optional[str] = None
    notes: Optional[str] = None
    send_email: Any = True

    @model_validator(mode="before")
    @classmethod
    def check_input(cls, data: Any) -> Any:
        return validate_rsvp_input(data, require_code=True, require_attending=True)

    @property
    def wants_email(self) -> bool:
        return self.send_email not in (False, "false", 0)


class AdminRsvpUpdate(BaseModel):
    """RSVP changes made by an admin on a guest's behalf"""

    attending: Optional[bool] = None
    dietary: Optional[str] = None
    notes: Optional[str] = None
    rsvp_deadline: Optional[str] = None
    plus_one_name: Optional[str] = None
    plus_one_dietary: Optional[str] = None
    send_email: Any = False

    @model_validator(mode="before")
    @classmethod
    def check_input(cls, data: Any) -> Any:
        return validate_rsvp_input(data)

    @field_validator("rsvp_deadline")
    @classmethod
    def check_deadline(cls, v):
        if v and parse_datetime(v) is None:
            raise ValueError("rsvp_deadline must be a valid date")
        return v or None

    @property
    def wants_email(self) -> bool:
        return self.send_email is True


class AdminRsvpUpdateById(AdminRsvpUpdate):
    id: int

    @model_validator(mode="before")
    @classmethod
    def check_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id"):
            raise ValueError("Missing required field: id")
        return data
