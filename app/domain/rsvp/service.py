"""RSVP service - Business logic for guest responses"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import AppError, NotFoundError
from ...models import Guest
from ...utils.dates import format_date_with_time, parse_datetime, to_iso, utcnow
from ...utils.sanitization import sanitize_string
from ..guests.repository import GuestRepository
from .status import ATTENDING, attending_to_status, deadline_passed

logger = logging.getLogger(__name__)

_UNSET = object()


def check_business_rules(guest: Guest, plus_one_name: Optional[str]) -> None:
    """Plus-one permission (400) and RSVP deadline (403)."""
    if plus_one_name and plus_one_name.strip() and not guest.can_bring_plus_one:
        raise AppError(400, "This guest is not allowed a plus one", "BAD_REQUEST")
    if deadline_passed(guest.rsvp_deadline):
        raise AppError(403, "RSVP deadline has passed", "FORBIDDEN")


class RsvpService:
    """Service layer shared by the public RSVP form and admin RSVP edits"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = GuestRepository()

    def get_guest_by_code(self, code: str) -> Guest:
        guest = self.repo.get_primary_by_code(self.db, code)
        if not guest:
            logger.info("🔍 RSVP lookup for unknown code")
            raise NotFoundError("Guest not found")
        return guest

    def lookup_payload(self, guest: Guest) -> dict:
        plus_one = self.repo.find_plus_one(self.db, guest.group_id)
        language = guest.preferred_language or "en"
        return {
            "id": guest.id,
            "group_id": guest.group_id,
            "group_label": guest.group_label,
            "name": guest.name,
            "email": guest.email,
            "code": guest.code,
            "can_bring_plus_one": bool(guest.can_bring_plus_one),
            "is_primary": bool(guest.is_primary),
            "preferred_language": language,
            "attending": guest.attending,
            "rsvp_status": guest.rsvp_status,
            "dietary": guest.dietary,
            "notes": guest.notes,
            "responded_at": to_iso(guest.responded_at),
            "plus_one_name": plus_one.name if plus_one else "",
            "plus_one_dietary": plus_one.dietary if plus_one else "",
            "rsvp_deadline": to_iso(guest.rsvp_deadline),
            "rsvp_deadline_formatted": format_date_with_time(guest.rsvp_deadline, language),
        }

    def handle_plus_one(self, primary: Guest, name: Optional[str], dietary: Optional[str]) -> str:
        """
        Create, update or delete the primary's plus-one.
        Returns the action taken: created, updated, deleted or none.
        """
        existing = self.repo.find_plus_one(self.db, primary.group_id, exclude_id=primary.id)
        name = (name or "").strip()

        if not name:
            if existing:
                self.repo.remove_plus_one(self.db, existing)
                logger.info(f"🗑️ Plus-one removed for group {primary.group_id}")
                return "deleted"
            return "none"

        if existing:
            existing.name = name
            existing.dietary = dietary or None
            existing.updated_at = utcnow()
            self.db.flush()
            return "updated"

        self.repo.add_plus_one(self.db, primary, name, dietary or None)
        logger.info(f"➕ Plus-one added for group {primary.group_id}")
        return "created"

    def apply_rsvp(
        self,
        guest: Guest,
        attending: Any = _UNSET,
        dietary: Optional[str] = None,
        notes: Optional[str] = None,
        plus_one_name: Optional[str] = None,
        plus_one_dietary: Optional[str] = None,
        rsvp_deadline: Any = _UNSET,
        replace_details: bool = False,
    ) -> Guest:
        """
        Write an RSVP in one transaction: attendance, status, details,
        plus-one changes and plus-one attendance sync. Rolls back on failure.

        ``replace_details`` clears dietary/notes that are not supplied (the
        public form always sends the full set); admin edits leave them as-is.
        Plus-one handling only applies when ``guest`` is a primary.
        """
        try:
            if guest.is_primary and guest.group_id is None:
                guest.group_id = guest.id

            provided = attending is not _UNSET and attending is not None
            attending_value = attending if provided else guest.attending
            guest.attending = attending_value
            guest.rsvp_status = attending_to_status(attending_value, guest.rsvp_status, provided)

            if attending_value is False:
                guest.dietary = None
                guest.notes = None
            else:
                if dietary is not None or replace_details:
                    guest.dietary = sanitize_string(dietary)
                if notes is not None or replace_details:
                    guest.notes = sanitize_string(notes)

            if rsvp_deadline is not _UNSET:
                guest.rsvp_deadline = parse_datetime(rsvp_deadline) if rsvp_deadline else None

            now = utcnow()
            guest.responded_at = now
            guest.updated_at = now
            self.db.flush()

            if guest.is_primary:
                self.handle_plus_one(guest, sanitize_string(plus_one_name), sanitize_string(plus_one_dietary))
                if guest.rsvp_status == ATTENDING:
                    self.repo.sync_plus_one_attending(self.db, guest.group_id, True)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save RSVP for guest {guest.id}: {e}")
            raise AppError(500, "Failed to save RSVP", "INTERNAL_ERROR") from e

        self.db.refresh(guest)
        logger.info(f"✅ RSVP saved for guest {guest.id}: {guest.rsvp_status}")
        return guest
