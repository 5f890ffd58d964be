"""RSVP status transitions: pending -> attending | not_attending."""

from datetime import datetime
from typing import Any, Optional

from ...utils.dates import parse_datetime, utcnow

PENDING = "pending"
ATTENDING = "attending"
NOT_ATTENDING = "not_attending"
STATUSES = (PENDING, ATTENDING, NOT_ATTENDING)


def normalize_attending(value: Any) -> Optional[bool]:
    """true/"true"/1 -> True, false/"false"/0 -> False, anything else -> None."""
    if value is True or value == "true" or (isinstance(value, int) and not isinstance(value, bool) and value == 1):
        return True
    if value is False or value == "false" or (isinstance(value, int) and not isinstance(value, bool) and value == 0):
        return False
    return None


def attending_to_status(value: Any, current_status: Optional[str] = None, provided: bool = True) -> str:
    """
    Status for an attending flag. When the flag was not submitted at all the
    current status is kept.
    """
    if not provided and current_status:
        return current_status
    attending = normalize_attending(value)
    if attending is True:
        return ATTENDING
    if attending is False:
        return NOT_ATTENDING
    return PENDING


def deadline_passed(deadline: Any, now: Optional[datetime] = None) -> bool:
    """Unset or unparsable deadlines never pass."""
    parsed = parse_datetime(deadline)
    if parsed is None:
        return False
    return (now or utcnow()) > parsed
