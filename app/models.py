from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    """Admin account (the couple)."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Guest(Base):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    # Primary guests point at themselves; dependents (plus-ones) share the primary's id
    group_id = Column(Integer, nullable=True, index=True)
    group_label = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    code = Column(String(64), unique=True, index=True, nullable=True)  # null for dependents
    can_bring_plus_one = Column(Boolean, default=False, nullable=False)
    is_primary = Column(Boolean, default=True, nullable=False)
    preferred_language = Column(String(5), default="en", nullable=False)
    attending = Column(Boolean, nullable=True)
    rsvp_status = Column(String(20), default="pending", nullable=False)  # pending, attending, not_attending
    dietary = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    rsvp_deadline = Column(DateTime(timezone=True), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Message(Base):
    """Bulk email campaign written in both languages."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String(500), nullable=False)
    body_en = Column(Text, nullable=False)
    body_lt = Column(Text, nullable=False)
    style = Column(String(20), default="elegant", nullable=False)
    status = Column(String(20), default="draft", nullable=False)  # draft, scheduled, sent
    scheduled_for = Column(DateTime(timezone=True), nullable=True, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    recipients = relationship("MessageRecipient", back_populates="message", cascade="all, delete-orphan")


class MessageRecipient(Base):
    __tablename__ = "message_recipients"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    delivery_status = Column(String(20), default="pending", nullable=False)  # pending, sent, failed
    delivery_error = Column(Text, nullable=True)
    resend_message_id = Column(String(255), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    message = relationship("Message", back_populates="recipients")
    guest = relationship("Guest")


class Template(Base):
    __tablename__ = "templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    subject = Column(String(500), nullable=False)
    subject_en = Column(String(500), nullable=True)
    subject_lt = Column(String(500), nullable=True)
    body_en = Column(Text, nullable=False)
    body_lt = Column(Text, nullable=False)
    style = Column(String(20), default="elegant", nullable=False)
    category = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class EmailSettings(Base):
    __tablename__ = "email_settings"

    id = Column(Integer, primary_key=True, index=True)
    provider = Column(String(50), default="resend", nullable=False)
    api_key = Column(String(255), nullable=True)
    from_name = Column(String(255), nullable=True)
    from_email = Column(String(255), nullable=True)
    sender_name = Column(String(255), nullable=True)
    sender_email = Column(String(255), nullable=True)
    enabled = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class GuestSettings(Base):
    __tablename__ = "guest_settings"

    id = Column(Integer, primary_key=True, index=True)
    rsvp_open = Column(Boolean, default=False, nullable=False)
    rsvp_deadline = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SiteSettings(Base):
    """Single row of wedding-wide properties used in emails and pages."""

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    wedding_date = Column(String(255), nullable=True)
    venue_name = Column(String(255), nullable=True)
    venue_address = Column(Text, nullable=True)
    event_start_date = Column(String(255), nullable=True)
    event_end_date = Column(String(255), nullable=True)
    event_time = Column(String(255), nullable=True)
    bride_name = Column(String(255), nullable=True)
    groom_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(255), nullable=True)
    rsvp_deadline = Column(String(255), nullable=True)
    event_type = Column(String(255), nullable=True)
    dress_code = Column(String(255), nullable=True)
    special_instructions = Column(Text, nullable=True)
    website_url = Column(String(255), nullable=True)
    app_title = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Page(Base):
    __tablename__ = "pages"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    requires_rsvp = Column(Boolean, default=False, nullable=False)
    show_in_nav = Column(Boolean, default=True, nullable=False)
    nav_order = Column(Integer, default=0, nullable=False)
    header_image_url = Column(String(500), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    translations = relationship(
        "PageTranslation", back_populates="page", cascade="all, delete-orphan", passive_deletes=True
    )


class PageTranslation(Base):
    __tablename__ = "page_translations"

    id = Column(Integer, primary_key=True, index=True)
    page_id = Column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    locale = Column(String(5), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(JSON, nullable=False, default=list)  # list of content blocks
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    page = relationship("Page", back_populates="translations")


class SurveyBlock(Base):
    __tablename__ = "survey_blocks"

    id = Column(Integer, primary_key=True, index=True)
    page_id = Column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=True, index=True)
    locale = Column(String(5), default="en", nullable=False)
    question = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)  # radio, checkbox, text
    options = Column(JSON, nullable=True)
    is_required = Column(Boolean, default=False, nullable=False)
    is_anonymous = Column(Boolean, default=True, nullable=False)
    requires_rsvp = Column(Boolean, default=False, nullable=False)
    block_order = Column(Integer, default=0, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    page = relationship("Page")
    responses = relationship(
        "SurveyResponse", back_populates="survey", cascade="all, delete-orphan", passive_deletes=True
    )


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    id = Column(Integer, primary_key=True, index=True)
    survey_block_id = Column(
        Integer, ForeignKey("survey_blocks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="SET NULL"), nullable=True)
    response_text = Column(Text, nullable=True)
    response_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    survey = relationship("SurveyBlock", back_populates="responses")
    guest = relationship("Guest")


class Image(Base):
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)
    storage_key = Column(String(500), nullable=False)
    url = Column(String(1000), nullable=True)  # None when served by presigned URL
    alt_text = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
