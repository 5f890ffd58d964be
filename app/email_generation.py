"""
Turn a message or template plus a guest into a ready-to-send email.
"""

import json
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .email_service import EmailDeliveryError, compile_mjml_to_html, get_sender_info, mask_email, send_email
from .email_templates import body_to_html, get_base_template, normalize_style
from .models import Guest, Template
from .template_variables import get_template_variables
from .templating import render_template

logger = logging.getLogger(__name__)

ATTENDING_TEMPLATE = "Thank You - Attending"
NOT_ATTENDING_TEMPLATE = "Thank You - Not Attending"

RSVP_SUBJECT_FALLBACKS = {
    "en": {
        "attending": "Thank you for your RSVP, {{guestName}}!",
        "not_attending": "Thank you for your RSVP, {{guestName}}",
    },
    "lt": {
        "attending": "Ačiū už jūsų RSVP, {{guestName}}!",
        "not_attending": "Ačiū už jūsų RSVP, {{guestName}}",
    },
}


def resolve_template_subject(
    template, language: str, context: Optional[str] = None, rsvp_status: Optional[str] = None
) -> str:
    """
    Subject for ``language``: the per-language column, then the legacy
    ``subject`` column (plain text or a JSON ``{"en", "lt"}`` object), then a
    built-in RSVP confirmation fallback. Other contexts fall back to "".
    """
    lang = "lt" if language == "lt" else "en"
    localized = getattr(template, f"subject_{lang}", None)
    if localized and localized.strip():
        return localized.strip()

    legacy = getattr(template, "subject", None)
    if legacy and legacy.strip():
        try:
            parsed = json.loads(legacy)
        except (TypeError, ValueError):
            parsed = None
        if isinstance(parsed, dict):
            subject = parsed.get(lang) or parsed.get("en") or ""
            if subject.strip():
                return subject.strip()
        else:
            return legacy.strip()

    if context == "rsvp_confirmation":
        key = "not_attending" if rsvp_status == "not_attending" else "attending"
        logger.warning(f"⚠️ No subject on template, using default RSVP {key} subject")
        return RSVP_SUBJECT_FALLBACKS[lang][key]

    logger.warning(f"⚠️ No subject found for context={context} language={lang}")
    return ""


def build_email(
    subject_template: str,
    body_template: str,
    variables: dict,
    style: Optional[str] = None,
    language: str = "en",
) -> dict:
    """Render subject/body with ``variables`` and wrap the body in the MJML layout."""
    subject = render_template(subject_template, variables)
    body = render_template(body_template, variables)

    location = ", ".join(v for v in (variables.get("venueName"), variables.get("venueAddress")) if v)
    mjml_content = get_base_template(
        body_to_html(body),
        style=normalize_style(style),
        language=language,
        bride_name=variables.get("brideName"),
        groom_name=variables.get("groomName"),
        site_url=variables.get("websiteUrl") or variables.get("siteUrl"),
        info_date=variables.get("weddingDate") or None,
        info_location=location or None,
        info_time=variables.get("eventTime") or None,
        rsvp_code=variables.get("code") or None,
    )
    return {"subject": subject, "body": body, "html": compile_mjml_to_html(mjml_content)}


def build_guest_email(db: Session, guest: Guest, subject: str, body_en: str, body_lt: str, style=None) -> dict:
    language = "lt" if guest.preferred_language == "lt" else "en"
    body = body_lt if language == "lt" and body_lt else body_en
    variables = get_template_variables(db, guest)
    return build_email(subject, body, variables, style=style, language=language)


async def send_confirmation_email(db: Session, guest: Guest) -> Optional[dict]:
    """
    Send the RSVP thank-you email matching the guest's status.

    Guests without an email address and missing templates are skipped with a
    log line. Delivery errors propagate to the caller.
    """
    if not guest.email:
        logger.warning(f"⚠️ Guest {guest.id} has no email, skipping confirmation")
        return None

    name = NOT_ATTENDING_TEMPLATE if guest.rsvp_status == "not_attending" else ATTENDING_TEMPLATE
    template = db.query(Template).filter(Template.name == name).first()
    if not template:
        logger.error(f"❌ Confirmation template not found: {name}")
        return None

    language = "lt" if guest.preferred_language == "lt" else "en"
    subject = resolve_template_subject(
        template, language, context="rsvp_confirmation", rsvp_status=guest.rsvp_status
    )
    email = build_guest_email(db, guest, subject, template.body_en, template.body_lt, template.style)
    response = await send_email(
        to=guest.email,
        subject=email["subject"],
        html=email["html"],
        from_address=get_sender_info(db),
    )
    logger.info(f"✅ RSVP confirmation sent to {mask_email(guest.email)}")
    return response


async def send_confirmation_email_safely(db: Session, guest: Guest) -> None:
    """Confirmation email whose failure never reaches the RSVP response."""
    try:
        await send_confirmation_email(db, guest)
    except EmailDeliveryError as e:
        logger.warning(f"⚠️ Failed to send RSVP confirmation for guest {guest.id}: {e}")
    except Exception as e:
        logger.error(f"❌ Unexpected error sending RSVP confirmation for guest {guest.id}: {e}")


async def send_confirmation_email_task(guest_id: int) -> None:
    """Background task variant; opens its own session."""
    from .database import SessionLocal

    db = SessionLocal()
    try:
        guest = db.query(Guest).filter(Guest.id == guest_id).first()
        if guest:
            await send_confirmation_email_safely(db, guest)
    finally:
        db.close()
