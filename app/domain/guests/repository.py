"""Guest repository - Database operations for guests and their plus-ones"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Guest, MessageRecipient
from ...utils.dates import utcnow


class GuestRepository:
    """Repository for guest database operations"""

    @staticmethod
    def get_by_id(db: Session, guest_id: int) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.id == guest_id).first()

    @staticmethod
    def get_primary_by_code(db: Session, code: str) -> Optional[Guest]:
        """Case-insensitive lookup of the primary guest holding ``code``."""
        normalized = (code or "").strip().upper()
        if not normalized:
            return None
        return (
            db.query(Guest)
            .filter(func.upper(Guest.code) == normalized, Guest.is_primary.is_(True))
            .first()
        )

    @staticmethod
    def get_by_code(db: Session, code: str) -> Optional[Guest]:
        return db.query(Guest).filter(func.upper(Guest.code) == code.strip().upper()).first()

    @staticmethod
    def list_guests(
        db: Session,
        attending: Optional[bool] = None,
        group_id: Optional[int] = None,
        rsvp_status: Optional[str] = None,
        sort_by: Optional[str] = None,
        page: Optional[int] = None,
        per_page: int = 40,
    ) -> tuple[list[Guest], int]:
        query = db.query(Guest)
        if attending is not None:
            query = query.filter(Guest.attending.is_(attending))
        if group_id is not None:
            query = query.filter(Guest.group_id == group_id)
        if rsvp_status:
            query = query.filter(Guest.rsvp_status == rsvp_status)

        total = query.count()

        if sort_by == "name":
            query = query.order_by(Guest.name.asc())
        elif sort_by == "updated_at":
            query = query.order_by(Guest.updated_at.desc(), Guest.id.desc())
        else:
            query = query.order_by(Guest.group_id.asc(), Guest.id.asc())

        if page:
            query = query.offset((page - 1) * per_page).limit(per_page)
        return query.all(), total

    @staticmethod
    def backfill_group_ids(db: Session) -> int:
        """Primary guests without a group point at themselves."""
        guests = db.query(Guest).filter(Guest.group_id.is_(None), Guest.is_primary.is_(True)).all()
        for guest in guests:
            guest.group_id = guest.id
        if guests:
            db.commit()
        return len(guests)

    @staticmethod
    def create(db: Session, **data) -> Guest:
        guest = Guest(**data)
        db.add(guest)
        db.flush()
        if guest.is_primary and guest.group_id is None:
            guest.group_id = guest.id
        db.commit()
        db.refresh(guest)
        return guest

    @staticmethod
    def delete(db: Session, guest: Guest) -> None:
        db.query(MessageRecipient).filter(MessageRecipient.guest_id == guest.id).delete(
            synchronize_session=False
        )
        db.delete(guest)
        db.commit()

    # ------------------------------------------------------------------
    # Plus-ones (dependent guests sharing the primary's group id)
    # ------------------------------------------------------------------

    @staticmethod
    def find_plus_one(db: Session, group_id: Optional[int], exclude_id: Optional[int] = None) -> Optional[Guest]:
        if group_id is None:
            return None
        query = db.query(Guest).filter(Guest.group_id == group_id, Guest.is_primary.is_(False))
        if exclude_id is not None:
            query = query.filter(Guest.id != exclude_id)
        return query.order_by(Guest.id.asc()).first()

    @staticmethod
    def plus_ones_by_group(db: Session, group_ids: list[int]) -> dict[int, Guest]:
        if not group_ids:
            return {}
        rows = (
            db.query(Guest)
            .filter(Guest.group_id.in_(group_ids), Guest.is_primary.is_(False))
            .order_by(Guest.id.asc())
            .all()
        )
        result = {}
        for row in rows:
            result.setdefault(row.group_id, row)
        return result

    @staticmethod
    def add_plus_one(db: Session, primary: Guest, name: str, dietary: Optional[str]) -> Guest:
        """Insert a dependent guest. Does not commit."""
        plus_one = Guest(
            group_id=primary.group_id,
            group_label=primary.group_label,
            name=name,
            code=None,
            is_primary=False,
            can_bring_plus_one=False,
            preferred_language=primary.preferred_language or "en",
            rsvp_status="pending",
            dietary=dietary,
            rsvp_deadline=primary.rsvp_deadline,
        )
        db.add(plus_one)
        db.flush()
        return plus_one

    @staticmethod
    def remove_plus_one(db: Session, plus_one: Guest) -> None:
        """Delete a plus-one and its delivery records. Does not commit."""
        db.query(MessageRecipient).filter(MessageRecipient.guest_id == plus_one.id).delete(
            synchronize_session=False
        )
        db.delete(plus_one)
        db.flush()

    @staticmethod
    def sync_plus_one_attending(db: Session, group_id: Optional[int], attending: bool) -> int:
        """Mirror the primary's attendance onto its plus-ones. Does not commit."""
        if group_id is None:
            return 0
        plus_ones = db.query(Guest).filter(Guest.group_id == group_id, Guest.is_primary.is_(False)).all()
        now = utcnow()
        for plus_one in plus_ones:
            plus_one.attending = attending
            plus_one.rsvp_status = "attending" if attending else "not_attending"
            plus_one.updated_at = now
        db.flush()
        return len(plus_ones)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    @staticmethod
    def status_counts(db: Session) -> dict:
        stats = {"total": 0, "attending": 0, "not_attending": 0, "pending": 0}
        for status, count in db.query(Guest.rsvp_status, func.count(Guest.id)).group_by(Guest.rsvp_status):
            stats[status] = count
            stats["total"] += count
        return stats

    @staticmethod
    def dietary_breakdown(db: Session) -> dict:
        rows = (
            db.query(Guest.dietary, func.count(Guest.id))
            .filter(Guest.dietary.isnot(None), Guest.dietary != "")
            .group_by(Guest.dietary)
        )
        return {dietary: count for dietary, count in rows}

    @staticmethod
    def all_guests(db: Session) -> list[Guest]:
        return db.query(Guest).all()

    @staticmethod
    def emails_sent_count(db: Session) -> int:
        return (
            db.query(func.count(MessageRecipient.id))
            .filter(MessageRecipient.delivery_status == "sent")
            .scalar()
            or 0
        )
