import re
from typing import Any, Optional

SUPPORTED_LANGUAGES = ("en", "lt")

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Trimmed email address, or None for blank input

    Raises:
        ValueError: If email format is invalid
    """
    if email is None:
        return None
    email = email.strip()
    if not email:
        return None
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_language(language: Optional[str]) -> str:
    if language is None or language == "":
        return "en"
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError("preferred_language must be 'en' or 'lt'")
    return language


def validate_flag(value: Any, field: str) -> bool:
    """Accept booleans or 0/1 (as sent by older admin forms)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value in ("0", "1"):
        return value == "1"
    raise ValueError(f"{field} must be a boolean")


def validate_positive_int(value: Any) -> Optional[int]:
    """Parse a positive integer id, returning None when it is not one."""
    try:
        parsed = int(str(value))
    except (TypeError, ValueError):
        return None
    if parsed <= 0 or str(parsed) != str(value).strip():
        return None
    return parsed
