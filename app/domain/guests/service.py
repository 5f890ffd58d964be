"""Guest service - Business logic for the admin guest list"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationError
from ...models import Guest
from ...utils.dates import format_date_with_time, parse_datetime, to_iso, utcnow
from ..rsvp.status import attending_to_status
from .repository import GuestRepository
from .schemas import GuestCreate, GuestUpdate

logger = logging.getLogger(__name__)


def serialize_guest(guest: Guest, plus_one: Optional[Guest] = None) -> dict:
    return {
        "id": guest.id,
        "group_id": guest.group_id,
        "group_label": guest.group_label,
        "name": guest.name,
        "email": guest.email,
        "code": guest.code,
        "can_bring_plus_one": bool(guest.can_bring_plus_one),
        "is_primary": bool(guest.is_primary),
        "preferred_language": guest.preferred_language,
        "attending": guest.attending,
        "rsvp_status": guest.rsvp_status,
        "dietary": guest.dietary,
        "notes": guest.notes,
        "rsvp_deadline": to_iso(guest.rsvp_deadline),
        "rsvp_deadline_formatted": format_date_with_time(guest.rsvp_deadline, guest.preferred_language or "en"),
        "responded_at": to_iso(guest.responded_at),
        "updated_at": to_iso(guest.updated_at),
        "plus_one": (
            {"id": plus_one.id, "name": plus_one.name, "dietary": plus_one.dietary} if plus_one else None
        ),
        "has_plus_one": plus_one is not None,
        "plus_one_name": plus_one.name if plus_one else None,
        "plus_one_dietary": plus_one.dietary if plus_one else None,
    }


class GuestService:
    """Service layer for guest business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = GuestRepository()

    def list_guests(
        self,
        attending: Optional[bool] = None,
        group_id: Optional[int] = None,
        rsvp_status: Optional[str] = None,
        sort_by: Optional[str] = None,
        page: Optional[int] = 1,
        per_page: int = 40,
    ) -> dict:
        backfilled = self.repo.backfill_group_ids(self.db)
        if backfilled:
            logger.info(f"🔧 Backfilled group_id for {backfilled} primary guests")

        guests, total = self.repo.list_guests(
            self.db, attending, group_id, rsvp_status, sort_by, page, per_page
        )
        primary_groups = [g.group_id for g in guests if g.is_primary and g.group_id is not None]
        plus_ones = self.repo.plus_ones_by_group(self.db, primary_groups)
        return {
            "guests": [
                serialize_guest(g, plus_ones.get(g.group_id) if g.is_primary else None) for g in guests
            ],
            "total": total,
        }

    def get_guest(self, guest_id: int) -> Guest:
        guest = self.repo.get_by_id(self.db, guest_id)
        if not guest:
            raise NotFoundError(f"Guest with ID {guest_id} not found")
        return guest

    def get_guest_detail(self, guest_id: int) -> dict:
        guest = self.get_guest(guest_id)
        plus_one = self.repo.find_plus_one(self.db, guest.group_id) if guest.is_primary else None
        return serialize_guest(guest, plus_one)

    def create_guest(self, data: GuestCreate) -> Guest:
        if self.repo.get_by_code(self.db, data.code):
            raise ValidationError("Guest code already exists")
        try:
            guest = self.repo.create(
                self.db,
                group_id=data.group_id,
                group_label=data.group_label,
                name=data.name,
                email=data.email,
                code=data.code,
                can_bring_plus_one=bool(data.can_bring_plus_one),
                is_primary=True if data.is_primary is None else data.is_primary,
                preferred_language=data.preferred_language or "en",
                rsvp_deadline=parse_datetime(data.rsvp_deadline),
            )
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Guest code already exists") from e
        logger.info(f"✅ Guest created: {guest.id} ({guest.group_label})")
        return guest

    def update_guest(self, guest_id: int, data: GuestUpdate) -> Guest:
        guest = self.get_guest(guest_id)
        fields = data.model_fields_set

        duplicate = self.repo.get_by_code(self.db, data.code)
        if duplicate and duplicate.id != guest.id:
            raise ValidationError("Guest code already exists")

        guest.name = data.name
        guest.group_label = data.group_label
        guest.code = data.code
        if "email" in fields:
            guest.email = data.email
        if data.can_bring_plus_one is not None:
            guest.can_bring_plus_one = data.can_bring_plus_one
        if data.is_primary is not None:
            guest.is_primary = data.is_primary
        if data.preferred_language and "preferred_language" in fields:
            guest.preferred_language = data.preferred_language
        if "rsvp_deadline" in fields:
            guest.rsvp_deadline = parse_datetime(data.rsvp_deadline)
        if "dietary" in fields:
            guest.dietary = data.dietary
        if "notes" in fields:
            guest.notes = data.notes

        if "attending" in fields and data.attending is not None:
            guest.attending = data.attending
            guest.rsvp_status = attending_to_status(data.attending, guest.rsvp_status, True)
            if data.attending is False:
                guest.dietary = None
                guest.notes = None

        guest.updated_at = utcnow()
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Guest code already exists") from e
        self.db.refresh(guest)
        return guest

    def delete_guest(self, guest_id: int) -> None:
        guest = self.get_guest(guest_id)
        self.repo.delete(self.db, guest)
        logger.info(f"🗑️ Guest deleted: {guest_id}")

    def analytics(self) -> dict:
        now = utcnow()
        guests = self.repo.all_guests(self.db)

        no_shows = 0
        late_responses = 0
        response_days = []
        for guest in guests:
            deadline = parse_datetime(guest.rsvp_deadline)
            updated = parse_datetime(guest.updated_at)
            if guest.rsvp_status == "pending" and deadline and deadline < now:
                no_shows += 1
            if guest.rsvp_status in ("attending", "not_attending") and deadline and updated and updated > deadline:
                late_responses += 1
            created = parse_datetime(guest.created_at)
            if created and updated:
                response_days.append((updated - created).total_seconds() / 86400)

        return {
            "stats": self.repo.status_counts(self.db),
            "dietary": self.repo.dietary_breakdown(self.db),
            "no_shows": no_shows,
            "late_responses": late_responses,
            "avg_response_time_days": round(sum(response_days) / len(response_days), 2) if response_days else 0.0,
            "emailsSent": self.repo.emails_sent_count(self.db),
        }
