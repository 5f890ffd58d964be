"""Public RSVP router - guest lookup and response submission"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import get_optional_guest, set_guest_session
from ...config import RSVP_LOOKUP_MAX, RSVP_LOOKUP_WINDOW_SECONDS
from ...database import get_db
from ...email_generation import send_confirmation_email_safely
from ...email_templates import get_available_styles
from ...errors import AppError, ValidationError
from ...models import Guest
from ...rate_limiter import create_rate_limiter
from .schemas import RsvpSubmission
from .service import RsvpService, check_business_rules

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rsvp", tags=["RSVP"])

rsvp_lookup_limit = create_rate_limiter(
    limit=RSVP_LOOKUP_MAX,
    window_seconds=RSVP_LOOKUP_WINDOW_SECONDS,
    key_prefix="rsvp_lookup",
    message="Too many RSVP lookups, please try again later.",
)


def get_rsvp_service(db: Session = Depends(get_db)) -> RsvpService:
    """Dependency injection for RsvpService"""
    return RsvpService(db)


@router.get("/session")
async def get_session(guest: Optional[Guest] = Depends(get_optional_guest)):
    """Minimal auth info for the guest holding a valid RSVP session cookie"""
    if not guest:
        raise AppError(401, "Not authenticated", "UNAUTHORIZED")
    return {
        "auth": {
            "name": guest.name,
            "group_label": guest.group_label,
            "rsvp_status": guest.rsvp_status,
            "code": guest.code,
        }
    }


@router.get("/template-styles")
async def get_template_styles():
    return {"success": True, "styles": get_available_styles()}


@router.get("/{code}")
async def lookup_rsvp(
    code: str,
    response: Response,
    _: None = Depends(rsvp_lookup_limit),
    service: RsvpService = Depends(get_rsvp_service),
):
    """Fetch a guest (and plus-one) by invitation code and start a guest session"""
    if not code.strip():
        raise ValidationError("Code is required")
    guest = service.get_guest_by_code(code)
    set_guest_session(response, guest)
    return {
        "success": True,
        "guest": service.lookup_payload(guest),
        "auth": {
            "name": guest.name,
            "group_label": guest.group_label,
            "rsvp_status": guest.rsvp_status,
        },
    }


@router.post("")
async def submit_rsvp(
    data: RsvpSubmission,
    db: Session = Depends(get_db),
    service: RsvpService = Depends(get_rsvp_service),
):
    """Public RSVP submission by invitation code"""
    guest = service.get_guest_by_code(data.code)
    check_business_rules(guest, data.plus_one_name)

    guest = service.apply_rsvp(
        guest,
        attending=data.attending,
        dietary=data.dietary,
        notes=data.notes,
        plus_one_name=data.plus_one_name,
        plus_one_dietary=data.plus_one_dietary,
        replace_details=True,
    )

    if data.wants_email:
        await send_confirmation_email_safely(db, guest)

    return {"success": True}
