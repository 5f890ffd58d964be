"""
Variables available to email templates for a given guest.
"""

import math
from typing import Optional

from sqlalchemy.orm import Session

from .config import SITE_URL
from .email_service import get_sender_info, split_sender
from .models import Guest, GuestSettings, SiteSettings
from .utils.dates import format_long_date, format_rsvp_deadline, parse_datetime, utcnow

# Documented for the admin template editor
AVAILABLE_VARIABLES = {
    "guestName": "Guest's full name",
    "groupLabel": "Group label (e.g., 'Bride's Family')",
    "code": "Unique RSVP code",
    "rsvpLink": "Full RSVP URL with language",
    "plusOneName": "Plus one's name (if applicable)",
    "rsvpDeadline": "Formatted deadline date",
    "email": "Guest's email address",
    "preferredLanguage": "Guest's preferred language ('en' or 'lt')",
    "attending": "Boolean indicating if guest is attending",
    "rsvp_status": "RSVP status ('pending', 'attending', 'not_attending')",
    "can_bring_plus_one": "Boolean indicating if guest can bring plus one",
    "dietary": "Dietary requirements",
    "notes": "Guest notes",
    "hasPlusOne": "Boolean: true if guest has plus one",
    "isPlusOne": "Boolean: true if guest is someone's plus one",
    "hasResponded": "Boolean: true if guest has responded",
    "isAttending": "Boolean: true if guest is attending",
    "isNotAttending": "Boolean: true if guest is not attending",
    "isPending": "Boolean: true if guest hasn't responded",
    "isBrideFamily": "Boolean: true if guest is bride's family",
    "isGroomFamily": "Boolean: true if guest is groom's family",
    "isEnglishSpeaker": "Boolean: true if guest prefers English",
    "isLithuanianSpeaker": "Boolean: true if guest prefers Lithuanian",
    "siteUrl": "Base site URL",
    "weddingDate": "Wedding date from settings",
    "venueName": "Venue name",
    "venueAddress": "Full venue address",
    "eventStartDate": "Event start date",
    "eventEndDate": "Event end date",
    "eventTime": "Event time",
    "brideName": "Bride's name",
    "groomName": "Groom's name",
    "contactEmail": "Contact email",
    "contactPhone": "Contact phone",
    "rsvpDeadlineDate": "RSVP deadline date (from guest settings)",
    "eventType": "Type of event",
    "dressCode": "Dress code",
    "specialInstructions": "Special instructions for guests",
    "websiteUrl": "Website URL",
    "appTitle": "App title",
    "senderName": "Sender name from email settings",
    "senderEmail": "Sender email from email settings",
    "currentDate": "Current date",
    "daysUntilWedding": "Days until wedding",
}


def get_system_settings(db: Session) -> dict:
    """Site settings row merged with the guest-wide RSVP deadline."""
    site = db.query(SiteSettings).first()
    guest_settings = db.query(GuestSettings).first()
    settings = {}
    if site:
        settings = {column.name: getattr(site, column.name) for column in SiteSettings.__table__.columns}
    if guest_settings and guest_settings.rsvp_deadline:
        settings["rsvp_deadline"] = guest_settings.rsvp_deadline
    return settings


def _days_until(value) -> str:
    wedding = parse_datetime(value)
    if wedding is None:
        return ""
    days = math.ceil((wedding - utcnow()).total_seconds() / 86400)
    return f"{days} days" if days else ""


def build_template_variables(
    guest: dict,
    settings: Optional[dict] = None,
    sender: Optional[str] = None,
    plus_one_name: Optional[str] = None,
) -> dict:
    """
    Build the placeholder mapping for ``guest`` (a plain dict of guest columns).

    ``settings`` is the merged system settings dict and ``sender`` the
    resolved "Name <email>" from address.
    """
    settings = settings or {}
    sender_name, sender_email = split_sender(sender) if sender else ("", "")
    language = guest.get("preferred_language") or "en"
    group_label = guest.get("group_label") or ""
    status = guest.get("rsvp_status") or "pending"
    is_plus_one = not guest.get("is_primary", True) or "plus one" in group_label.lower()
    code = guest.get("code") or ""
    rsvp_link = f"{SITE_URL}/{language}/rsvp/{code}"

    return {
        # Guest properties
        "guestName": guest.get("name") or "",
        "name": guest.get("name") or "",
        "groupLabel": group_label,
        "code": code,
        "rsvpLink": rsvp_link,
        "plusOneName": plus_one_name or "",
        "rsvpDeadline": format_rsvp_deadline(guest.get("rsvp_deadline"), language),
        "email": guest.get("email") or "",
        "preferredLanguage": language,
        "attending": guest.get("attending"),
        "rsvp_status": status,
        "can_bring_plus_one": bool(guest.get("can_bring_plus_one")) and not is_plus_one,
        "dietary": guest.get("dietary") or "",
        "notes": guest.get("notes") or "",
        # Conditional flags
        "hasPlusOne": bool(plus_one_name),
        "isPlusOne": is_plus_one,
        "hasResponded": guest.get("responded_at") is not None,
        "isAttending": status == "attending",
        "isNotAttending": status == "not_attending",
        "isPending": status == "pending",
        "isBrideFamily": group_label == "Bride's Family",
        "isGroomFamily": group_label == "Groom's Family",
        "isEnglishSpeaker": language == "en",
        "isLithuanianSpeaker": language == "lt",
        # System properties
        "siteUrl": SITE_URL,
        "weddingDate": format_long_date(settings.get("wedding_date")),
        "venueName": settings.get("venue_name") or "",
        "venueAddress": settings.get("venue_address") or "",
        "eventStartDate": format_long_date(settings.get("event_start_date")),
        "eventEndDate": format_long_date(settings.get("event_end_date")),
        "eventTime": settings.get("event_time") or "",
        "brideName": settings.get("bride_name") or "",
        "groomName": settings.get("groom_name") or "",
        "contactEmail": settings.get("contact_email") or "",
        "contactPhone": settings.get("contact_phone") or "",
        "rsvpDeadlineDate": format_long_date(settings.get("rsvp_deadline")),
        "eventType": settings.get("event_type") or "",
        "dressCode": settings.get("dress_code") or "",
        "specialInstructions": settings.get("special_instructions") or "",
        "websiteUrl": settings.get("website_url") or SITE_URL,
        "appTitle": settings.get("app_title") or "Wedding Site",
        "senderName": sender_name,
        "senderEmail": sender_email,
        "currentDate": format_long_date(utcnow()),
        "daysUntilWedding": _days_until(settings.get("wedding_date")),
    }


def guest_to_dict(guest: Guest) -> dict:
    return {column.name: getattr(guest, column.name) for column in Guest.__table__.columns}


def get_template_variables(db: Session, guest: Guest, plus_one_name: Optional[str] = None) -> dict:
    """Template variables for a guest row, looking up settings and sender."""
    if plus_one_name is None and guest.group_id:
        plus_one = (
            db.query(Guest)
            .filter(Guest.group_id == guest.group_id, Guest.is_primary.is_(False))
            .order_by(Guest.id)
            .first()
        )
        plus_one_name = plus_one.name if plus_one else ""
    return build_template_variables(
        guest_to_dict(guest),
        settings=get_system_settings(db),
        sender=get_sender_info(db),
        plus_one_name=plus_one_name,
    )
