import re
from typing import Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Trim free-text guest input (dietary needs, notes, plus-one names) and
    strip control characters. None and non-strings pass through unchanged.
    """
    if value is None or not isinstance(value, str):
        return value
    return CONTROL_CHARS.sub("", value).strip()
