"""
Date helpers for guest facing text (English and Lithuanian).

All formatters accept a ``datetime``, a ``date`` or an ISO-ish string and
return ``""`` for empty or unparsable input.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

DateInput = Union[str, date, datetime, None]

# Genitive case, as used in dates ("gegužės 1 d.")
LITHUANIAN_MONTHS = [
    "sausio",
    "vasario",
    "kovo",
    "balandžio",
    "gegužės",
    "birželio",
    "liepos",
    "rugpjūčio",
    "rugsėjo",
    "spalio",
    "lapkričio",
    "gruodžio",
]

ENGLISH_MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

_PARSE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d")


def parse_datetime(value: DateInput) -> Optional[datetime]:
    """Parse a stored or submitted date value. Naive results are treated as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _PARSE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ordinal_suffix(day: int) -> str:
    if day % 10 == 1 and day % 100 != 11:
        return "st"
    if day % 10 == 2 and day % 100 != 12:
        return "nd"
    if day % 10 == 3 and day % 100 != 13:
        return "rd"
    return "th"


def month_name(month: int, language: str = "en") -> str:
    if language == "lt":
        return LITHUANIAN_MONTHS[month - 1]
    return ENGLISH_MONTHS[month - 1]


def format_date_with_ordinal(value: DateInput, language: str = "en") -> str:
    """"May 1st" in English, "gegužės 1 d." in Lithuanian. No year."""
    parsed = parse_datetime(value)
    if parsed is None:
        if value:
            logger.warning(f"⚠️ Could not format date with ordinal: {value!r}")
        return ""
    if language == "lt":
        return f"{month_name(parsed.month, 'lt')} {parsed.day} d."
    return f"{month_name(parsed.month)} {parsed.day}{ordinal_suffix(parsed.day)}"


def format_date_day_first(value: DateInput, language: str = "en") -> str:
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return f"{parsed.day} {month_name(parsed.month, language)}"


def format_date_with_time(value: DateInput, language: str = "en") -> str:
    """"1 May 23:00" (or "1 gegužės 23:00"), used in guest lists."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return f"{parsed.day} {month_name(parsed.month, language)} {parsed.hour:02d}:{parsed.minute:02d}"


def format_date_without_time(value: DateInput, language: str = "en") -> str:
    return format_date_day_first(value, language)


def format_rsvp_deadline(value: DateInput, language: str = "en") -> str:
    return format_date_with_ordinal(value, language)


def format_long_date(value: DateInput) -> str:
    """"May 1, 2026" for system properties such as the wedding date."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return f"{month_name(parsed.month)} {parsed.day}, {parsed.year}"


def to_iso(value: DateInput) -> Optional[str]:
    parsed = parse_datetime(value)
    return parsed.isoformat() if parsed else None


def to_sql_datetime(value: DateInput) -> Optional[str]:
    """``YYYY-MM-DD HH:MM:SS`` in UTC."""
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
