"""Settings service - single-row settings tables"""

import logging

from sqlalchemy.orm import Session

from ...models import EmailSettings, Guest, GuestSettings, SiteSettings
from ...security_utils import mask_sensitive_data
from ...utils.dates import parse_datetime, to_sql_datetime, utcnow
from .schemas import SITE_SETTING_FIELDS, EmailSettingsUpdate, GuestSettingsUpdate, SiteSettingsUpdate

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    # Email provider

    def get_email_settings(self) -> dict:
        row = self.db.query(EmailSettings).order_by(EmailSettings.id).first()
        if not row:
            return {
                "provider": "resend",
                "api_key": "",
                "has_api_key": False,
                "from_name": None,
                "from_email": None,
                "sender_name": None,
                "sender_email": None,
                "enabled": False,
            }
        return {
            "id": row.id,
            "provider": row.provider,
            "api_key": mask_sensitive_data(row.api_key),
            "has_api_key": bool(row.api_key),
            "from_name": row.from_name,
            "from_email": row.from_email,
            "sender_name": row.sender_name,
            "sender_email": row.sender_email,
            "enabled": bool(row.enabled),
        }

    def update_email_settings(self, data: EmailSettingsUpdate) -> None:
        row = self.db.query(EmailSettings).order_by(EmailSettings.id).first()
        if not row:
            row = EmailSettings()
            self.db.add(row)

        row.provider = data.provider or "resend"
        # Masked keys echoed back from GET leave the stored key unchanged
        if data.api_key and "*" not in data.api_key:
            row.api_key = data.api_key
        row.from_name = data.from_name
        row.from_email = data.from_email
        row.sender_name = data.sender_name
        row.sender_email = data.sender_email
        row.enabled = bool(data.enabled)
        row.updated_at = utcnow()
        self.db.commit()
        logger.info(f"✅ Email settings updated (provider={row.provider}, enabled={row.enabled})")

    # Guest-wide RSVP window

    def get_guest_settings(self) -> dict:
        row = self.db.query(GuestSettings).order_by(GuestSettings.id).first()
        if not row:
            return {"rsvp_open": False, "rsvp_deadline": None}
        return {"rsvp_open": bool(row.rsvp_open), "rsvp_deadline": to_sql_datetime(row.rsvp_deadline)}

    def update_guest_settings(self, data: GuestSettingsUpdate) -> dict:
        """Save the RSVP window and copy the deadline onto every guest"""
        deadline = parse_datetime(data.rsvp_deadline)
        row = self.db.query(GuestSettings).order_by(GuestSettings.id).first()
        if not row:
            row = GuestSettings()
            self.db.add(row)
        row.rsvp_open = bool(data.rsvp_open)
        row.rsvp_deadline = deadline
        row.updated_at = utcnow()

        updated = self.db.query(Guest).update({Guest.rsvp_deadline: deadline}, synchronize_session=False)
        self.db.commit()
        logger.info(f"📅 Guest settings saved, deadline applied to {updated} guests")
        return {"rsvp_open": bool(data.rsvp_open), "rsvp_deadline": data.rsvp_deadline}

    # Site properties

    def get_site_settings(self) -> dict:
        row = self.db.query(SiteSettings).order_by(SiteSettings.id).first()
        return {field: getattr(row, field) if row else None for field in SITE_SETTING_FIELDS}

    def update_site_settings(self, data: SiteSettingsUpdate) -> dict:
        row = self.db.query(SiteSettings).order_by(SiteSettings.id).first()
        if not row:
            row = SiteSettings()
            self.db.add(row)
        for key, value in data.values.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self.db.commit()
        logger.info(f"✅ Site settings updated: {', '.join(data.values) or 'no changes'}")
        return self.get_site_settings()
