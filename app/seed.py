"""
Seed the database with admin users, demo guests, email settings and the
default bilingual templates.

Run with: python -m app.seed

Every step skips rows that already exist, so re-running is safe.
"""

import logging
import os
import random

from sqlalchemy.orm import Session

from . import models  # noqa: F401 - register models before create_all
from .database import Base, SessionLocal, engine
from .models import EmailSettings, Guest, Template, User
from .security_utils import generate_rsvp_code, hash_password_bcrypt

logger = logging.getLogger(__name__)

ADMIN_USERS = [
    {"name": "Jeffrey", "email": "jeffrey@example.com", "password": os.getenv("SEED_JEFFREY_PASSWORD", "password123")},
    {"name": "Brigita", "email": "brigita@example.com", "password": os.getenv("SEED_BRIGITA_PASSWORD", "wedding2024")},
]

GUEST_GROUPS = [
    {
        "group_label": "Jeffrey & Brigita",
        "guests": [{"name": "Jeffrey", "email": "jeffrey@example.com"}, {"name": "Brigita"}],
    },
    {
        "group_label": "The Doe Family",
        "guests": [{"name": "John Doe", "email": "john@example.com"}, {"name": "Jane Doe"}],
    },
    {
        "group_label": "Alice",
        "guests": [{"name": "Alice", "email": "alice@example.com", "can_bring_plus_one": True}],
    },
    {
        "group_label": "The Smiths",
        "guests": [{"name": "Anna Smith", "email": "anna.smith@example.com"}, {"name": "Mark Smith"}],
    },
    {
        "group_label": "Emma & Liam",
        "guests": [{"name": "Emma", "email": "emma@example.com"}, {"name": "Liam"}],
    },
    {
        "group_label": "Robert",
        "guests": [{"name": "Robert", "email": "robert@example.com"}],
    },
    {
        "group_label": "Sofia & Mateo",
        "guests": [{"name": "Sofia", "email": "sofia@example.com"}, {"name": "Mateo"}],
    },
    {
        "group_label": "Olivia",
        "guests": [{"name": "Olivia", "email": "olivia@example.com", "can_bring_plus_one": True}],
    },
]

DEFAULT_TEMPLATES = [
    {
        "name": "Wedding Invitation",
        "subject_en": "You're Invited to Our Wedding, {{guestName}}!",
        "subject_lt": "Jūs esate pakviestas į mūsų vestuves, {{guestName}}!",
        "body_en": """Dear {{guestName}},

We are delighted to invite you to celebrate our wedding with us!

**Wedding Details:**
{{#if weddingDate}}
**Date:** {{weddingDate}}
{{/if}}
{{#if venueName}}
**Venue:** {{venueName}}
{{/if}}
{{#if venueAddress}}
**Address:** {{venueAddress}}
{{/if}}
{{#if eventTime}}
**Time:** {{eventTime}}
{{/if}}

{{#if hasPlusOne}}
You are welcome to bring a plus one: {{plusOneName}}
{{/if}}

**Please RSVP:** We kindly request your response by {{rsvpDeadline}} to help us plan our special day.

**RSVP Link:** {{rsvpLink}}

We can't wait to celebrate with you!

Best regards,
{{brideName}} & {{groomName}}""",
        "body_lt": """Brangus {{guestName}},

Mums labai malonu pakviesti jus švęsti mūsų vestuves!

**Vestuvių informacija:**
{{#if weddingDate}}
**Data:** {{weddingDate}}
{{/if}}
{{#if venueName}}
**Vieta:** {{venueName}}
{{/if}}
{{#if venueAddress}}
**Adresas:** {{venueAddress}}
{{/if}}
{{#if eventTime}}
**Laikas:** {{eventTime}}
{{/if}}

{{#if hasPlusOne}}
Galite atsinešti svečią: {{plusOneName}}
{{/if}}

**Prašome RSVP:** Maloniai prašome atsakyti iki {{rsvpDeadline}}, kad galėtume planuoti mūsų ypatingą dieną.

**RSVP nuoroda:** {{rsvpLink}}

Nekantriai laukiame švęsti su jumis!

Su meile,
{{brideName}} & {{groomName}}""",
        "style": "elegant",
        "category": "invitation",
    },
    {
        "name": "Thank You - Attending",
        "subject_en": "Thank you for your RSVP, {{guestName}}!",
        "subject_lt": "Ačiū už jūsų RSVP, {{guestName}}!",
        "body_en": """Dear {{guestName}},

Thank you so much for confirming your attendance at our wedding!

{{#if hasPlusOne}}
We're delighted that {{plusOneName}} will also be joining us!
{{/if}}

{{#if dietary}}
We've noted your dietary preference: {{dietary}}
{{/if}}

{{#if notes}}
Thank you for your note: "{{notes}}"
{{/if}}

We're looking forward to celebrating with you on our special day!

Best regards,
{{brideName}} & {{groomName}}""",
        "body_lt": """Brangus {{guestName}},

Labai ačiū, kad patvirtinote savo dalyvavimą mūsų vestuvėse!

{{#if hasPlusOne}}
Mums labai malonu, kad {{plusOneName}} taip pat prisijungs prie mūsų!
{{/if}}

{{#if dietary}}
Pastebėjome jūsų mitybos pageidavimą: {{dietary}}
{{/if}}

{{#if notes}}
Ačiū už jūsų pastabą: "{{notes}}"
{{/if}}

Nekantriai laukiame švęsti su jumis mūsų ypatingoje dienoje!

Su meile,
{{brideName}} & {{groomName}}""",
        "style": "friendly",
        "category": "confirmation",
    },
    {
        "name": "Thank You - Not Attending",
        "subject_en": "Thank you for your RSVP, {{guestName}}",
        "subject_lt": "Ačiū už jūsų RSVP, {{guestName}}",
        "body_en": """Dear {{guestName}},

Thank you for letting us know that you won't be able to attend our wedding.

{{#if notes}}
We appreciate your note: "{{notes}}"
{{/if}}

We understand and will miss you on our special day. We hope to celebrate with you on another occasion!

Best regards,
{{brideName}} & {{groomName}}""",
        "body_lt": """Brangus {{guestName}},

Ačiū, kad pranešėte, kad negalėsite dalyvauti mūsų vestuvėse.

{{#if notes}}
Vertiname jūsų pastabą: "{{notes}}"
{{/if}}

Suprantame ir mums trūks jūsų mūsų ypatingoje dienoje. Tikimės švęsti su jumis kitu atveju!

Su meile,
{{brideName}} & {{groomName}}""",
        "style": "friendly",
        "category": "confirmation",
    },
]


def seed_admin_users(db: Session) -> int:
    created = 0
    for user in ADMIN_USERS:
        email = user["email"].lower()
        if db.query(User).filter(User.email == email).first():
            continue
        db.add(User(name=user["name"], email=email, password_hash=hash_password_bcrypt(user["password"])))
        created += 1
    db.commit()
    logger.info(f"👤 Admin users seeded ({created} new)")
    return created


def unique_guest_code(db: Session) -> str:
    """Generate codes until one is not already taken"""
    while True:
        code = generate_rsvp_code()
        if not db.query(Guest.id).filter(Guest.code == code).first():
            return code


def seed_guest_groups(db: Session) -> int:
    """Each group's first guest is the primary and holds the group's RSVP code"""
    created = 0
    for group in GUEST_GROUPS:
        if db.query(Guest.id).filter(Guest.group_label == group["group_label"]).first():
            continue
        code = unique_guest_code(db)
        primary = None
        for index, guest in enumerate(group["guests"]):
            is_primary = index == 0
            row = Guest(
                group_id=primary.id if primary else None,
                group_label=group["group_label"],
                name=guest["name"],
                email=guest.get("email"),
                code=code if is_primary else None,
                can_bring_plus_one=guest.get("can_bring_plus_one", False),
                is_primary=is_primary,
                preferred_language=guest.get("preferred_language") or random.choice(["en", "lt"]),
                rsvp_status="pending",
            )
            db.add(row)
            if is_primary:
                # Groups are keyed by the primary guest's id
                db.flush()
                row.group_id = row.id
                primary = row
            created += 1
        db.flush()
    db.commit()
    logger.info(f"💌 Guests seeded ({created} new)")
    return created


def seed_email_settings(db: Session) -> bool:
    if db.query(EmailSettings).first():
        return False
    db.add(
        EmailSettings(
            provider="resend",
            api_key=None,
            sender_name="Wedding Admin",
            sender_email="admin@example.com",
            enabled=False,
        )
    )
    db.commit()
    logger.info("📧 Default email settings seeded")
    return True


def seed_default_templates(db: Session) -> int:
    """Insert the pre-built templates that are missing by name"""
    created = 0
    for data in DEFAULT_TEMPLATES:
        if db.query(Template.id).filter(Template.name == data["name"]).first():
            continue
        db.add(Template(subject=data["subject_en"], **data))
        created += 1
        logger.info(f"✅ Template \"{data['name']}\" inserted")
    db.commit()
    return created


def run_seed(db: Session) -> dict:
    return {
        "users": seed_admin_users(db),
        "guests": seed_guest_groups(db),
        "email_settings": seed_email_settings(db),
        "templates": seed_default_templates(db),
    }


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        logger.info("🌱 Starting seeder...")
        summary = run_seed(db)
        logger.info(f"🎉 Seeding completed: {summary}")
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
