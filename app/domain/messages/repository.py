"""Message repository - Database operations for messages and their recipients"""

from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Guest, Message, MessageRecipient


class MessageRepository:
    """Repository for message database operations"""

    @staticmethod
    def list_messages(db: Session) -> list[Message]:
        return db.query(Message).order_by(Message.created_at.desc(), Message.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, message_id: int) -> Optional[Message]:
        return db.query(Message).filter(Message.id == message_id).first()

    @staticmethod
    def latest(db: Session) -> Optional[Message]:
        return db.query(Message).order_by(Message.created_at.desc(), Message.id.desc()).first()

    @staticmethod
    def create(db: Session, **data) -> Message:
        message = Message(status="draft", **data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def delete(db: Session, message: Message) -> None:
        db.delete(message)
        db.commit()

    @staticmethod
    def target_guests(db: Session, guest_ids: Optional[list[int]] = None) -> list[Guest]:
        """Guests selected by id, or every guest when no ids are given"""
        query = db.query(Guest)
        if guest_ids:
            query = query.filter(Guest.id.in_(guest_ids))
        return query.order_by(Guest.id).all()

    @staticmethod
    def add_recipient(
        db: Session,
        message: Message,
        guest: Guest,
        status: str,
        error: Optional[str] = None,
        provider_id: Optional[str] = None,
        sent_at=None,
    ) -> MessageRecipient:
        """Add a recipient row; flushed, the caller commits"""
        recipient = MessageRecipient(
            message_id=message.id,
            guest_id=guest.id,
            email=guest.email,
            delivery_status=status,
            delivery_error=error,
            resend_message_id=provider_id,
            sent_at=sent_at,
        )
        db.add(recipient)
        db.flush()
        return recipient

    @staticmethod
    def scheduled_messages(db: Session) -> list[Message]:
        return db.query(Message).filter(Message.status == "scheduled").order_by(Message.id).all()

    @staticmethod
    def pending_recipients(db: Session, message_id: int) -> list[MessageRecipient]:
        return (
            db.query(MessageRecipient)
            .filter(
                MessageRecipient.message_id == message_id,
                MessageRecipient.delivery_status == "pending",
            )
            .order_by(MessageRecipient.id)
            .all()
        )

    @staticmethod
    def delivery_logs(db: Session, message_id: int) -> list[tuple]:
        """Recipient rows joined with the guest's name, label and email"""
        return (
            db.query(MessageRecipient, Guest)
            .join(Guest, Guest.id == MessageRecipient.guest_id)
            .filter(MessageRecipient.message_id == message_id)
            .order_by(MessageRecipient.created_at.desc(), MessageRecipient.id.desc())
            .all()
        )

    @staticmethod
    def delivery_stats(db: Session, message_id: int) -> dict:
        sent, failed, total = (
            db.query(
                func.sum(case((MessageRecipient.delivery_status == "sent", 1), else_=0)),
                func.sum(case((MessageRecipient.delivery_status == "failed", 1), else_=0)),
                func.count(MessageRecipient.id),
            )
            .filter(MessageRecipient.message_id == message_id)
            .one()
        )
        return {"sentCount": int(sent or 0), "failedCount": int(failed or 0), "total": int(total or 0)}
