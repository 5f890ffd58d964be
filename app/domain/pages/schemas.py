"""Page domain schemas - Pydantic models for validation"""

import re
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import SUPPORTED_LANGUAGES

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:[-_][a-z0-9]+)*$")


class TranslationInput(BaseModel):
    locale: Optional[str] = None
    title: Optional[str] = ""
    content: Any = None

    @field_validator("locale")
    @classmethod
    def check_locale(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if v not in SUPPORTED_LANGUAGES:
            raise ValueError("locale must be 'en' or 'lt'")
        return v


class PageFields(BaseModel):
    slug: Optional[str] = None
    is_published: Optional[bool] = None
    requires_rsvp: Optional[bool] = None
    show_in_nav: Optional[bool] = None
    nav_order: Optional[int] = None
    header_image_url: Optional[str] = None
    translations: list[TranslationInput] = []

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if not SLUG_PATTERN.match(v):
            raise ValueError("A valid slug is required (lowercase letters, digits and dashes)")
        return v


class PageCreate(PageFields):
    slug: str


class PageUpdate(PageFields):
    pass
