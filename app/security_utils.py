"""
Security Utilities
Password hashing, signed session tokens, HTML sanitization and code generation
"""

import logging
import os
import re
import secrets
from typing import Any, Optional

import bleach
from bleach.css_sanitizer import CSSSanitizer
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from .config import SECRET_KEY

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Unambiguous characters for RSVP codes (no 0/O, 1/I/L)
RSVP_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
RSVP_CODE_LENGTH = 8


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN GENERATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def generate_rsvp_code(length: int = RSVP_CODE_LENGTH) -> str:
    return "".join(secrets.choice(RSVP_CODE_ALPHABET) for _ in range(length))


def generate_timed_token(data: dict[str, Any], salt: str) -> str:
    """
    Sign ``data`` with itsdangerous. Expiry is enforced when verifying.
    Used for the admin and guest session cookies.
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps(data, salt=salt)


def verify_timed_token(token: str, salt: str, max_age: int) -> Optional[dict[str, Any]]:
    """
    Verify and decode a timed token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        return serializer.loads(token, salt=salt, max_age=max_age)
    except SignatureExpired:
        logger.info("Session token expired")
        return None
    except BadSignature:
        logger.warning("Invalid session token signature")
        return None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================

RICH_TEXT_TAGS = [
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "a",
    "ul",
    "ol",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "blockquote",
    "code",
    "pre",
    "span",
    "div",
    "hr",
    "img",
]

RICH_TEXT_ATTRIBUTES = {
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title", "width", "height"],
    "*": ["class", "style"],
}

css_sanitizer = CSSSanitizer(
    allowed_css_properties=["color", "background-color", "font-weight", "font-style", "text-align"]
)


def sanitize_html(html_content: str, allowed_tags: Optional[list] = None) -> str:
    """
    Sanitize HTML content to prevent XSS attacks

    Args:
        html_content: Raw HTML content
        allowed_tags: List of allowed HTML tags (default: rich text subset)

    Returns:
        Sanitized HTML
    """
    return bleach.clean(
        html_content or "",
        tags=allowed_tags or RICH_TEXT_TAGS,
        attributes=RICH_TEXT_ATTRIBUTES,
        protocols=["http", "https", "mailto"],
        css_sanitizer=css_sanitizer,
        strip=True,
    )


def sanitize_iframe(embed_html: str) -> str:
    """Keep only a bare iframe element with layout attributes."""
    return bleach.clean(
        embed_html or "",
        tags=["iframe"],
        attributes={
            "iframe": [
                "src",
                "width",
                "height",
                "frameborder",
                "allow",
                "allowfullscreen",
                "loading",
                "referrerpolicy",
                "title",
                "style",
            ]
        },
        protocols=["https"],
        css_sanitizer=css_sanitizer,
        strip=True,
    )


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks

    Args:
        filename: Original filename

    Returns:
        Safe filename
    """
    filename = os.path.basename(filename or "")
    filename = re.sub(r"[^\w\s\-\.]", "", filename)
    filename = re.sub(r"\s+", "-", filename).strip(". ")

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[: 255 - len(ext)] + ext

    if not filename:
        filename = f"file_{generate_secure_token(8)}"

    return filename


def mask_sensitive_data(data: Optional[str], visible_chars: int = 4) -> str:
    """
    Mask sensitive data for logging/display

    Args:
        data: Sensitive data to mask
        visible_chars: Number of characters to show at the end
    """
    if not data:
        return ""
    if len(data) <= visible_chars:
        return "*" * len(data)
    return "*" * (len(data) - visible_chars) + data[-visible_chars:]
