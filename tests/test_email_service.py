import asyncio

import pytest
from resend.exceptions import ResendError

from app import email_service
from app.email_service import (
    EmailDeliveryError,
    EmailQuotaExceeded,
    QuotaTracker,
    get_sender_info,
    mask_email,
    send_email,
    split_sender,
)
from app.models import EmailSettings


def _rate_limited():
    return ResendError(
        code=429,
        error_type="rate_limit_exceeded",
        message="Too many requests",
        suggested_action="Slow down",
    )


def test_send_email_returns_provider_id(fake_resend):
    result = asyncio.run(send_email("guest@example.com", "Hi", "<p>Hi</p>", "Us <us@example.com>"))
    assert result == {"id": "email_1"}
    assert fake_resend.sent[0]["to"] == ["guest@example.com"]
    assert fake_resend.sent[0]["from"] == "Us <us@example.com>"


def test_send_email_requires_fields():
    with pytest.raises(EmailDeliveryError):
        asyncio.run(send_email("", "Hi", "<p>Hi</p>"))


def test_rate_limited_sends_are_retried_with_backoff(fake_resend, monkeypatch):
    delays = []

    async def record_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(email_service.asyncio, "sleep", record_sleep)
    fake_resend.errors = [_rate_limited(), _rate_limited()]

    result = asyncio.run(send_email("guest@example.com", "Hi", "<p>Hi</p>"))

    assert result["id"] == "email_1"
    assert delays == [2, 4]


def test_rate_limit_gives_up_after_max_retries(fake_resend):
    fake_resend.errors = [_rate_limited() for _ in range(email_service.MAX_RETRIES + 1)]
    with pytest.raises(EmailDeliveryError):
        asyncio.run(send_email("guest@example.com", "Hi", "<p>Hi</p>"))
    assert fake_resend.sent == []


def test_other_errors_are_not_retried(fake_resend):
    fake_resend.errors = [RuntimeError("boom"), RuntimeError("boom again")]
    with pytest.raises(EmailDeliveryError):
        asyncio.run(send_email("guest@example.com", "Hi", "<p>Hi</p>"))
    # Second error never consumed
    assert len(fake_resend.errors) == 1


def test_quota_blocks_sending(fake_resend, monkeypatch):
    monkeypatch.setattr(email_service, "quota_tracker", QuotaTracker(daily_limit=1, monthly_limit=10))
    asyncio.run(send_email("a@example.com", "Hi", "<p>Hi</p>"))
    with pytest.raises(EmailQuotaExceeded):
        asyncio.run(send_email("b@example.com", "Hi", "<p>Hi</p>"))
    assert len(fake_resend.sent) == 1


def test_quota_status_shape():
    tracker = QuotaTracker(daily_limit=5, monthly_limit=50)
    tracker.increment()
    status = tracker.status()
    assert status["daily"]["sent"] == 1
    assert status["daily"]["remaining"] == 4
    assert status["monthly"]["remaining"] == 49
    assert "resetsAt" in status["daily"]


def test_sender_defaults_without_settings(db):
    assert get_sender_info(db) == email_service.EMAIL_FROM_ADDRESS


def test_sender_from_enabled_settings(db):
    db.add(EmailSettings(provider="resend", from_name="J & B", from_email="hello@wedding.example", enabled=True))
    db.commit()
    assert get_sender_info(db) == "J & B <hello@wedding.example>"


def test_disabled_settings_are_ignored(db):
    db.add(EmailSettings(provider="resend", from_name="J & B", from_email="hello@wedding.example", enabled=False))
    db.commit()
    assert get_sender_info(db) == email_service.EMAIL_FROM_ADDRESS


def test_split_sender_and_mask_email():
    assert split_sender("J & B <hello@wedding.example>") == ("J & B", "hello@wedding.example")
    assert mask_email("alice@example.com") == "al***@example.com"
    assert mask_email(None) == "***"
