"""
Message service - drafts, immediate sends, scheduling and the scheduled
dispatch run used by the worker.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...email_generation import build_guest_email
from ...email_service import EmailDeliveryError, get_quota_status, get_sender_info, mask_email, send_email
from ...errors import AppError, NotFoundError
from ...models import Guest, Message, MessageRecipient
from ...template_variables import build_template_variables, get_system_settings
from ...templating import render_template
from ...utils.dates import parse_datetime, to_iso, utcnow
from .repository import MessageRepository
from .schemas import MessageCreate, MessageUpdate, PreviewRequest, ScheduleRequest

logger = logging.getLogger(__name__)


def serialize_message(message: Message) -> dict:
    return {
        "id": message.id,
        "subject": message.subject,
        "body_en": message.body_en,
        "body_lt": message.body_lt,
        "style": message.style,
        "status": message.status,
        "scheduled_for": to_iso(message.scheduled_for),
        "sent_at": to_iso(message.sent_at),
        "created_at": to_iso(message.created_at),
        "updated_at": to_iso(message.updated_at),
    }


async def deliver_to_guest(
    db: Session,
    message: Message,
    guest: Guest,
    sender: str,
    email: Optional[str] = None,
) -> dict:
    """
    Render ``message`` for ``guest`` and send it.
    Returns {status, provider_id, error}; delivery failures are reported, not raised.
    """
    to = email or guest.email
    if not to:
        return {"status": "failed", "provider_id": None, "error": "No email address"}
    try:
        email_content = build_guest_email(
            db, guest, message.subject, message.body_en, message.body_lt, message.style
        )
        response = await send_email(
            to=to, subject=email_content["subject"], html=email_content["html"], from_address=sender
        )
    except EmailDeliveryError as e:
        logger.warning(f"⚠️ Message {message.id} failed for {mask_email(to)}: {e}")
        return {"status": "failed", "provider_id": None, "error": str(e)}
    return {"status": "sent", "provider_id": response.get("id"), "error": None}


class MessageService:
    """Service layer for guest messaging"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MessageRepository()

    def list_messages(self) -> list[dict]:
        return [serialize_message(m) for m in self.repo.list_messages(self.db)]

    def get_message(self, message_id: int) -> Message:
        message = self.repo.get_by_id(self.db, message_id)
        if not message:
            raise NotFoundError("Message not found")
        return message

    def _get_draft(self, message_id: int, action: str) -> Message:
        message = self.get_message(message_id)
        if message.status != "draft":
            raise AppError(400, f"Only draft messages can be {action}", "BAD_REQUEST")
        return message

    def create_message(self, data: MessageCreate) -> Message:
        message = self.repo.create(
            self.db,
            subject=data.subject,
            body_en=data.body_en,
            body_lt=data.body_lt,
            style=data.style or "elegant",
        )
        logger.info(f"✅ Draft message created: {message.id}")
        return message

    def update_message(self, message_id: int, data: MessageUpdate) -> Message:
        message = self._get_draft(message_id, "updated")
        message.subject = data.subject
        message.body_en = data.body_en
        message.body_lt = data.body_lt
        if data.style:
            message.style = data.style
        message.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(message)
        return message

    def delete_message(self, message_id: int) -> None:
        message = self._get_draft(message_id, "deleted")
        self.repo.delete(self.db, message)
        logger.info(f"🗑️ Message deleted: {message_id}")

    async def send_message(self, message_id: int, guest_ids: Optional[list[int]] = None) -> list[dict]:
        """Send a draft now to the selected guests (or everyone) and mark it sent"""
        message = self._get_draft(message_id, "sent")
        guests = self.repo.target_guests(self.db, guest_ids)
        sender = get_sender_info(self.db)
        logger.info(f"📨 Sending message {message.id} to {len(guests)} guest(s)")

        results = []
        for guest in guests:
            outcome = await deliver_to_guest(self.db, message, guest, sender)
            self.repo.add_recipient(
                self.db,
                message,
                guest,
                outcome["status"],
                error=outcome["error"],
                provider_id=outcome["provider_id"],
                sent_at=utcnow() if outcome["status"] == "sent" else None,
            )
            self.db.commit()
            result = {"guest_id": guest.id, "status": outcome["status"]}
            if outcome["error"]:
                result["error"] = outcome["error"]
            results.append(result)

        message.status = "sent"
        message.sent_at = utcnow()
        message.updated_at = message.sent_at
        self.db.commit()

        sent = sum(1 for r in results if r["status"] == "sent")
        logger.info(f"✅ Message {message.id} sent: {sent} delivered, {len(results) - sent} failed")
        return results

    def schedule_message(self, message_id: int, data: ScheduleRequest) -> dict:
        """Queue pending recipients for guests with email and mark the message scheduled"""
        message = self._get_draft(message_id, "scheduled")
        guests = [g for g in self.repo.target_guests(self.db, data.guest_ids) if g.email]

        for guest in guests:
            self.repo.add_recipient(self.db, message, guest, "pending")
        message.scheduled_for = parse_datetime(data.scheduled_for)
        message.status = "scheduled"
        message.updated_at = utcnow()
        self.db.commit()

        logger.info(f"📅 Message {message.id} scheduled for {data.scheduled_for} ({len(guests)} recipients)")
        return {"success": True, "scheduled_for": data.scheduled_for, "recipients": len(guests)}

    def delivery_logs(self, message_id: int) -> list[dict]:
        return [
            {
                "id": recipient.id,
                "guest_id": recipient.guest_id,
                "name": guest.name,
                "group_label": guest.group_label,
                "email": recipient.email or guest.email,
                "delivery_status": recipient.delivery_status,
                "error_message": recipient.delivery_error,
                "resend_message_id": recipient.resend_message_id,
                "created_at": to_iso(recipient.created_at),
            }
            for recipient, guest in self.repo.delivery_logs(self.db, message_id)
        ]

    def delivery_stats(self, message_id: int) -> dict:
        return self.repo.delivery_stats(self.db, message_id)

    def latest_delivery(self) -> dict:
        message = self.repo.latest(self.db)
        if not message:
            raise NotFoundError("No messages found")
        return {"message_id": message.id, **self.repo.delivery_stats(self.db, message.id)}

    def quota(self) -> dict:
        return get_quota_status()

    def preview(self, data: PreviewRequest) -> dict:
        """Render a template for an ad-hoc guest dict without sending anything"""
        guest = data.guest
        language = "lt" if guest.get("preferred_language") == "lt" else "en"
        variables = build_template_variables(
            guest,
            settings=get_system_settings(self.db),
            sender=get_sender_info(self.db),
            plus_one_name=guest.get("plus_one_name"),
        )
        body_template = data.template.body_lt if language == "lt" else data.template.body_en
        return {
            "subject": render_template(data.template.subject or "", variables),
            "body": render_template(body_template or "", variables),
        }


async def dispatch_scheduled_messages(db: Session) -> dict:
    """
    Send every scheduled message whose ``scheduled_for`` has passed.

    Each pending recipient is attempted once; failures are recorded on the
    recipient row and not retried. Messages with no pending recipients are
    skipped. Returns summary counts.
    """
    repo = MessageRepository()
    now = utcnow()
    due = [
        m for m in repo.scheduled_messages(db)
        if m.scheduled_for and parse_datetime(m.scheduled_for) <= now
    ]
    summary = {"messages": 0, "sent": 0, "failed": 0}

    if not due:
        logger.info("✅ No scheduled messages ready to send")
        return summary

    logger.info(f"📬 Found {len(due)} scheduled message(s) to send")
    for message in due:
        recipients = repo.pending_recipients(db, message.id)
        if not recipients:
            logger.info(f"⚠️ No pending recipients for message {message.id}, skipping")
            continue

        sender = get_sender_info(db)
        for recipient in recipients:
            outcome = await _deliver_recipient(db, message, recipient, sender)
            recipient.delivery_status = outcome["status"]
            recipient.delivery_error = outcome["error"]
            recipient.resend_message_id = outcome["provider_id"]
            recipient.updated_at = utcnow()
            if outcome["status"] == "sent":
                recipient.sent_at = recipient.updated_at
                summary["sent"] += 1
            else:
                summary["failed"] += 1
            db.commit()

        message.status = "sent"
        message.sent_at = utcnow()
        message.updated_at = message.sent_at
        db.commit()
        summary["messages"] += 1
        logger.info(f"✅ Finished sending scheduled message {message.id}")

    logger.info(
        f"📝 Scheduler summary: {summary['sent'] + summary['failed']} deliveries, "
        f"{summary['sent']} sent, {summary['failed']} failed"
    )
    return summary


async def _deliver_recipient(db: Session, message: Message, recipient: MessageRecipient, sender: str) -> dict:
    guest = recipient.guest
    if guest is None:
        return {"status": "failed", "provider_id": None, "error": "Guest not found"}
    return await deliver_to_guest(db, message, guest, sender, email=recipient.email)
