"""
Email delivery through Resend.
Compiles MJML layouts to HTML, retries rate limited sends and tracks the
provider's daily/monthly quota in memory.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import resend
from mjml import mjml_to_html
from resend.exceptions import ResendError
from sqlalchemy.orm import Session

from . import config
from .config import DEFAULT_SENDER_NAME, EMAIL_DAILY_LIMIT, EMAIL_FROM_ADDRESS, EMAIL_MONTHLY_LIMIT

logger = logging.getLogger(__name__)

resend.api_key = config.RESEND_API_KEY

MAX_RETRIES = 3
RETRY_BACKOFF_SECONDS = [0, 2, 4]


class EmailDeliveryError(Exception):
    """Raised when the provider refuses or fails to accept an email."""


class EmailQuotaExceeded(EmailDeliveryError):
    pass


def _next_day(now: datetime) -> datetime:
    return (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)


def _next_month(now: datetime) -> datetime:
    first = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return (first + timedelta(days=32)).replace(day=1)


class QuotaTracker:
    """In-memory counters for the provider's daily and monthly send limits (UTC)."""

    def __init__(self, daily_limit: int = EMAIL_DAILY_LIMIT, monthly_limit: int = EMAIL_MONTHLY_LIMIT):
        self.daily_limit = daily_limit
        self.monthly_limit = monthly_limit
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        now = datetime.now(timezone.utc)
        self.daily_count = 0
        self.monthly_count = 0
        self.daily_reset_at = _next_day(now)
        self.monthly_reset_at = _next_month(now)

    def _roll(self):
        now = datetime.now(timezone.utc)
        if now >= self.daily_reset_at:
            logger.info(f"🔄 Daily email quota reset (previous count: {self.daily_count})")
            self.daily_count = 0
            self.daily_reset_at = _next_day(now)
        if now >= self.monthly_reset_at:
            logger.info(f"🔄 Monthly email quota reset (previous count: {self.monthly_count})")
            self.monthly_count = 0
            self.monthly_reset_at = _next_month(now)

    def can_send(self) -> bool:
        with self._lock:
            self._roll()
            return self.daily_count < self.daily_limit and self.monthly_count < self.monthly_limit

    def increment(self):
        with self._lock:
            self._roll()
            self.daily_count += 1
            self.monthly_count += 1

    def status(self) -> dict:
        with self._lock:
            self._roll()
            return {
                "daily": {
                    "sent": self.daily_count,
                    "limit": self.daily_limit,
                    "remaining": max(0, self.daily_limit - self.daily_count),
                    "resetsAt": self.daily_reset_at.isoformat(),
                },
                "monthly": {
                    "sent": self.monthly_count,
                    "limit": self.monthly_limit,
                    "remaining": max(0, self.monthly_limit - self.monthly_count),
                    "resetsAt": self.monthly_reset_at.isoformat(),
                },
            }


quota_tracker = QuotaTracker()


def get_quota_status() -> dict:
    return quota_tracker.status()


def get_sender_info(db: Session) -> str:
    """From address built from the enabled Resend settings row, or the site default."""
    from .models import EmailSettings

    row = (
        db.query(EmailSettings)
        .filter(EmailSettings.provider == "resend", EmailSettings.enabled.is_(True))
        .first()
    )
    if not row or not row.from_email:
        return EMAIL_FROM_ADDRESS
    return f"{row.from_name or DEFAULT_SENDER_NAME} <{row.from_email}>"


def split_sender(sender: str) -> tuple:
    """'Name <addr>' -> (name, addr)."""
    if "<" in sender and sender.endswith(">"):
        name, _, address = sender.partition("<")
        return name.strip(), address.rstrip(">").strip()
    return DEFAULT_SENDER_NAME, sender.strip()


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


def _is_rate_limited(error: Exception) -> bool:
    code = getattr(error, "code", None)
    return isinstance(error, ResendError) and str(code) == "429"


def mask_email(email: Optional[str]) -> str:
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}"


async def send_email(
    to: Union[str, list],
    subject: str,
    html: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email via Resend.

    Only HTTP 429 responses are retried (up to MAX_RETRIES, waiting
    RETRY_BACKOFF_SECONDS between attempts). Any other failure raises
    EmailDeliveryError.

    Returns:
        Resend response dict (contains the provider message ``id``)
    """
    if not to or not subject or not html:
        raise EmailDeliveryError("Missing required fields: to, subject, html")

    if not config.RESEND_API_KEY and not resend.api_key:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    if not quota_tracker.can_send():
        logger.warning(f"⚠️ Email quota exceeded, not sending to {mask_email(str(to))}")
        raise EmailQuotaExceeded("Email quota exceeded")

    recipients = [to] if isinstance(to, str) else to
    email_data = {
        "from": from_address or EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": subject,
        "html": html,
    }

    attempt = 0
    while True:
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            if _is_rate_limited(e) and attempt < MAX_RETRIES:
                attempt += 1
                delay = RETRY_BACKOFF_SECONDS[min(attempt, len(RETRY_BACKOFF_SECONDS) - 1)]
                logger.warning(f"⏳ Resend rate limited, retry {attempt}/{MAX_RETRIES} in {delay}s")
                await asyncio.sleep(delay)
                continue
            logger.error(f"❌ Email send error to {mask_email(recipients[0])}: {e}")
            raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        if not message_id:
            logger.error(f"❌ Resend did not accept email for {mask_email(recipients[0])}")
            raise EmailDeliveryError("Resend API did not accept email for delivery")

        quota_tracker.increment()
        logger.info(f"✅ Email sent via Resend to {mask_email(recipients[0])} (id={message_id})")
        return {"id": message_id}
