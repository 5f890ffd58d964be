import asyncio
from datetime import datetime, timedelta, timezone

from app.domain.messages.service import dispatch_scheduled_messages
from app.models import Message, MessageRecipient

DRAFT = {
    "subject": "Save the date, {{guestName}}",
    "body_en": "Hello {{guestName}}, see you on {{weddingDate}}",
    "body_lt": "Labas {{guestName}}",
}


def _future(hours=2):
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).strftime("%Y-%m-%d %H:%M:%S")


def _create_draft(admin_client, **overrides):
    response = admin_client.post("/api/messages", json={**DRAFT, **overrides})
    assert response.status_code == 200
    return response.json()["id"]


def test_create_requires_all_fields(admin_client):
    response = admin_client.post("/api/messages", json={"subject": "Hi", "body_en": "Hello"})
    assert response.status_code == 400
    assert response.json()["message"] == "All fields are required"


def test_create_rejects_unknown_style(admin_client):
    response = admin_client.post("/api/messages", json={**DRAFT, "style": "neon"})
    assert response.status_code == 400


def test_create_list_and_get(admin_client):
    message_id = _create_draft(admin_client)

    listing = admin_client.get("/api/messages").json()
    assert [m["id"] for m in listing["messages"]] == [message_id]
    assert listing["messages"][0]["status"] == "draft"

    detail = admin_client.get(f"/api/messages/{message_id}").json()
    assert detail["message"]["subject"] == DRAFT["subject"]
    assert admin_client.get("/api/messages/9999").status_code == 404


def test_update_draft(admin_client):
    message_id = _create_draft(admin_client)
    response = admin_client.put(f"/api/messages/{message_id}", json={**DRAFT, "subject": "Updated"})
    assert response.status_code == 200
    assert response.json()["message"]["subject"] == "Updated"


def test_send_to_selected_guests(admin_client, db, make_guest, fake_resend):
    alice = make_guest(code="A1")
    make_guest(code="B1", name="Bob", email="bob@example.com")
    message_id = _create_draft(admin_client)

    response = admin_client.post(f"/api/messages/{message_id}/send", json={"guestIds": [alice.id]})

    assert response.status_code == 200
    assert response.json()["results"] == [{"guest_id": alice.id, "status": "sent"}]
    assert fake_resend.sent[0]["subject"] == "Save the date, Alice"
    assert "Hello Alice" in fake_resend.sent[0]["html"]

    db.expire_all()
    message = db.get(Message, message_id)
    assert message.status == "sent"
    assert message.sent_at is not None
    recipient = db.query(MessageRecipient).one()
    assert recipient.delivery_status == "sent"
    assert recipient.resend_message_id == "email_1"


def test_send_to_everyone_records_failures(admin_client, make_guest, fake_resend):
    make_guest(code="A1")
    no_email = make_guest(code="B1", name="Bob", email=None)
    message_id = _create_draft(admin_client)

    results = admin_client.post(f"/api/messages/{message_id}/send").json()["results"]

    assert len(results) == 2
    failed = next(r for r in results if r["guest_id"] == no_email.id)
    assert failed == {"guest_id": no_email.id, "status": "failed", "error": "No email address"}

    stats = admin_client.get(f"/api/messages/{message_id}/stats").json()
    assert stats["sentCount"] == 1
    assert stats["failedCount"] == 1
    assert stats["total"] == 2

    logs = admin_client.get(f"/api/messages/{message_id}/logs").json()["logs"]
    assert {log["delivery_status"] for log in logs} == {"sent", "failed"}
    assert any(log["error_message"] == "No email address" for log in logs)


def test_lithuanian_guests_get_lithuanian_body(admin_client, make_guest, fake_resend):
    make_guest(code="A1", name="Rūta", preferred_language="lt")
    message_id = _create_draft(admin_client)
    admin_client.post(f"/api/messages/{message_id}/send")
    assert "Labas Rūta" in fake_resend.sent[0]["html"]


def test_only_drafts_can_be_sent_or_deleted(admin_client, make_guest):
    make_guest(code="A1")
    message_id = _create_draft(admin_client)
    admin_client.post(f"/api/messages/{message_id}/send")

    resend = admin_client.post(f"/api/messages/{message_id}/send")
    assert resend.status_code == 400
    assert resend.json()["message"] == "Only draft messages can be sent"

    delete = admin_client.delete(f"/api/messages/{message_id}")
    assert delete.status_code == 400


def test_delete_draft(admin_client):
    message_id = _create_draft(admin_client)
    assert admin_client.delete(f"/api/messages/{message_id}").json() == {"success": True}
    assert admin_client.get(f"/api/messages/{message_id}").status_code == 404


def test_schedule_validation(admin_client):
    message_id = _create_draft(admin_client)

    missing = admin_client.post(f"/api/messages/{message_id}/schedule", json={})
    assert missing.status_code == 400
    assert missing.json()["message"] == "scheduled_for field is required"

    past = admin_client.post(f"/api/messages/{message_id}/schedule", json={"scheduled_for": "2000-01-01 00:00:00"})
    assert past.status_code == 400
    assert past.json()["message"] == "scheduled_for must be a valid future datetime"


def test_schedule_creates_pending_recipients(admin_client, db, make_guest):
    make_guest(code="A1")
    make_guest(code="B1", name="Bob", email=None)
    message_id = _create_draft(admin_client)
    when = _future()

    response = admin_client.post(f"/api/messages/{message_id}/schedule", json={"scheduled_for": when})

    assert response.status_code == 200
    assert response.json() == {"success": True, "scheduled_for": when, "recipients": 1}
    db.expire_all()
    assert db.get(Message, message_id).status == "scheduled"
    assert [r.delivery_status for r in db.query(MessageRecipient).all()] == ["pending"]


def test_dispatch_sends_due_messages_once(db, make_guest, fake_resend):
    guest = make_guest(code="A1")
    due = Message(
        subject="Reminder",
        body_en="Hi {{guestName}}",
        body_lt="Labas {{guestName}}",
        status="scheduled",
        scheduled_for=datetime.now(timezone.utc) - timedelta(minutes=5),
    )
    later = Message(
        subject="Later",
        body_en="Later",
        body_lt="Vėliau",
        status="scheduled",
        scheduled_for=datetime.now(timezone.utc) + timedelta(days=1),
    )
    db.add_all([due, later])
    db.flush()
    for message in (due, later):
        db.add(MessageRecipient(message_id=message.id, guest_id=guest.id, email=guest.email, delivery_status="pending"))
    db.commit()

    summary = asyncio.run(dispatch_scheduled_messages(db))

    assert summary == {"messages": 1, "sent": 1, "failed": 0}
    assert len(fake_resend.sent) == 1
    db.expire_all()
    assert db.get(Message, due.id).status == "sent"
    assert db.get(Message, later.id).status == "scheduled"

    # A second run finds nothing left to send
    assert asyncio.run(dispatch_scheduled_messages(db)) == {"messages": 0, "sent": 0, "failed": 0}


def test_dispatch_records_failures_without_retry(db, make_guest, fake_resend):
    guest = make_guest(code="A1")
    message = Message(
        subject="Reminder",
        body_en="Hi",
        body_lt="Labas",
        status="scheduled",
        scheduled_for=datetime.now(timezone.utc) - timedelta(minutes=1),
    )
    db.add(message)
    db.flush()
    db.add(MessageRecipient(message_id=message.id, guest_id=guest.id, email=guest.email, delivery_status="pending"))
    db.commit()
    fake_resend.errors = [RuntimeError("provider down")]

    summary = asyncio.run(dispatch_scheduled_messages(db))

    assert summary["failed"] == 1
    db.expire_all()
    recipient = db.query(MessageRecipient).one()
    assert recipient.delivery_status == "failed"
    assert "provider down" in recipient.delivery_error


def test_latest_delivery(admin_client, make_guest):
    assert admin_client.get("/api/messages/latest-delivery").status_code == 404

    make_guest(code="A1")
    message_id = _create_draft(admin_client)
    admin_client.post(f"/api/messages/{message_id}/send")

    data = admin_client.get("/api/messages/latest-delivery").json()
    assert data["message_id"] == message_id
    assert data["sentCount"] == 1


def test_quota(admin_client):
    data = admin_client.get("/api/messages/quota").json()
    assert data["success"] is True
    assert data["quota"]["daily"]["sent"] == 0


def test_preview_renders_without_sending(admin_client, fake_resend):
    response = admin_client.post(
        "/api/messages/preview",
        json={
            "template": {"subject": "Hi {{guestName}}", "body_en": "EN {{code}}", "body_lt": "LT {{code}}"},
            "guest": {"name": "Alice", "code": "A1", "preferred_language": "lt"},
        },
    )
    assert response.status_code == 200
    assert response.json()["subject"] == "Hi Alice"
    assert response.json()["body"] == "LT A1"
    assert fake_resend.sent == []


def test_preview_requires_template_and_guest(admin_client):
    response = admin_client.post("/api/messages/preview", json={"template": {"subject": "x"}})
    assert response.status_code == 400
    assert response.json()["message"] == "Template and guest info are required"
