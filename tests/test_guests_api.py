from datetime import datetime, timezone

from app.models import Guest, Message, MessageRecipient


def test_guest_endpoints_require_admin_session(client):
    response = client.get("/api/guests")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_create_and_fetch_guest(admin_client):
    response = admin_client.post(
        "/api/guests",
        json={
            "group_label": " The Does ",
            "name": "John Doe",
            "email": "john@example.com",
            "code": "DOE001",
            "can_bring_plus_one": 1,
            "preferred_language": "lt",
        },
    )
    assert response.status_code == 201
    guest_id = response.json()["id"]

    detail = admin_client.get(f"/api/guests/{guest_id}").json()
    assert detail["group_label"] == "The Does"
    assert detail["group_id"] == guest_id
    assert detail["can_bring_plus_one"] is True
    assert detail["preferred_language"] == "lt"
    assert detail["rsvp_status"] == "pending"
    assert detail["has_plus_one"] is False


def test_create_guest_validation(admin_client):
    missing = admin_client.post("/api/guests", json={"name": "John", "group_label": "Does"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "code is required"

    bad_email = admin_client.post(
        "/api/guests", json={"name": "John", "group_label": "Does", "code": "X1", "email": "nope"}
    )
    assert bad_email.status_code == 400
    assert bad_email.json()["message"] == "Invalid email format"

    bad_flag = admin_client.post(
        "/api/guests", json={"name": "John", "group_label": "Does", "code": "X1", "can_bring_plus_one": "yes"}
    )
    assert bad_flag.status_code == 400
    assert bad_flag.json()["message"] == "can_bring_plus_one must be a boolean or 0/1"


def test_duplicate_code_rejected(admin_client, make_guest):
    make_guest(code="DUP001")
    response = admin_client.post("/api/guests", json={"name": "X", "group_label": "Y", "code": "dup001"})
    assert response.status_code == 400
    assert response.json()["message"] == "Guest code already exists"
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_get_missing_guest(admin_client):
    response = admin_client.get("/api/guests/9999")
    assert response.status_code == 404


def test_list_guests_includes_plus_one(admin_client, make_guest):
    make_guest(code="A1", name="Alice", plus_one_name="Sam", can_bring_plus_one=True)
    make_guest(code="B1", name="Bob", email="bob@example.com")

    data = admin_client.get("/api/guests").json()

    assert data["total"] == 3
    alice = next(g for g in data["guests"] if g["name"] == "Alice")
    assert alice["plus_one_name"] == "Sam"
    assert alice["has_plus_one"] is True


def test_list_guests_filters_and_sorting(admin_client, make_guest):
    make_guest(code="A1", name="Zed", rsvp_status="attending", attending=True)
    make_guest(code="B1", name="Amy", email="amy@example.com")

    attending = admin_client.get("/api/guests", params={"attending": "true"}).json()
    assert [g["name"] for g in attending["guests"]] == ["Zed"]

    by_name = admin_client.get("/api/guests", params={"sort_by": "name"}).json()
    assert [g["name"] for g in by_name["guests"]] == ["Amy", "Zed"]

    paged = admin_client.get("/api/guests", params={"page": 2, "per_page": 1}).json()
    assert paged["total"] == 2
    assert len(paged["guests"]) == 1


def test_update_guest_attendance_recomputes_status(admin_client, db, make_guest):
    guest = make_guest(code="A1", dietary="vegan")
    response = admin_client.put(
        f"/api/guests/{guest.id}",
        json={"name": "Alice B", "group_label": "Alice's Group", "code": "A1", "attending": False},
    )
    assert response.status_code == 200

    db.expire_all()
    updated = db.get(Guest, guest.id)
    assert updated.name == "Alice B"
    assert updated.rsvp_status == "not_attending"
    assert updated.dietary is None


def test_update_guest_code_conflict(admin_client, make_guest):
    make_guest(code="A1")
    other = make_guest(code="B1", name="Bob", email="bob@example.com")
    response = admin_client.put(
        f"/api/guests/{other.id}", json={"name": "Bob", "group_label": "Bob's Group", "code": "a1"}
    )
    assert response.status_code == 400


def test_delete_guest_removes_delivery_records(admin_client, db, make_guest):
    guest = make_guest(code="A1")
    message = Message(subject="Hi", body_en="Hi", body_lt="Labas", status="sent")
    db.add(message)
    db.flush()
    db.add(MessageRecipient(message_id=message.id, guest_id=guest.id, delivery_status="sent"))
    db.commit()

    assert admin_client.delete(f"/api/guests/{guest.id}").json() == {"success": True}

    db.expire_all()
    assert db.get(Guest, guest.id) is None
    assert db.query(MessageRecipient).count() == 0


def test_admin_rsvp_update_by_path(admin_client, db, make_guest, confirmation_templates, fake_resend):
    guest = make_guest(code="A1", can_bring_plus_one=True)

    response = admin_client.put(
        f"/api/guests/{guest.id}/rsvp",
        json={"attending": True, "plus_one_name": "Sam", "send_email": True},
    )

    assert response.status_code == 200
    db.expire_all()
    group = db.query(Guest).filter(Guest.group_id == guest.id).order_by(Guest.id).all()
    assert [g.rsvp_status for g in group] == ["attending", "attending"]
    # Background task runs before the test client returns
    assert len(fake_resend.sent) == 1


def test_admin_rsvp_email_only_when_explicitly_true(admin_client, make_guest, confirmation_templates, fake_resend):
    guest = make_guest(code="A1")
    admin_client.put(f"/api/guests/{guest.id}/rsvp", json={"attending": True, "send_email": "true"})
    assert fake_resend.sent == []


def test_admin_rsvp_by_body_requires_id(admin_client):
    response = admin_client.post("/api/guests/rsvp", json={"attending": True})
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required field: id"


def test_admin_rsvp_by_body_sets_deadline(admin_client, db, make_guest):
    guest = make_guest(code="A1")
    response = admin_client.post(
        "/api/guests/rsvp", json={"id": guest.id, "attending": False, "rsvp_deadline": "2099-01-01 00:00:00"}
    )
    assert response.status_code == 200
    db.expire_all()
    updated = db.get(Guest, guest.id)
    assert updated.rsvp_status == "not_attending"
    assert updated.rsvp_deadline.year == 2099


def test_analytics(admin_client, make_guest):
    make_guest(code="A1", rsvp_status="attending", attending=True, dietary="vegan")
    make_guest(code="B1", name="Bob", email="bob@example.com", rsvp_status="not_attending", attending=False)
    make_guest(code="C1", name="Cy", email="cy@example.com")

    data = admin_client.get("/api/guests/analytics").json()

    assert data["success"] is True
    assert data["stats"] == {"total": 3, "attending": 1, "not_attending": 1, "pending": 1}
    assert data["dietary"] == {"vegan": 1}
    assert data["emailsSent"] == 0
    assert "avg_response_time_days" in data


def test_admin_rsvp_on_plus_one_row_keeps_the_group(admin_client, db, make_guest):
    primary = make_guest(code="A1", plus_one_name="Sam", can_bring_plus_one=True)
    plus_one = db.query(Guest).filter(Guest.group_id == primary.id, Guest.is_primary.is_(False)).one()

    response = admin_client.put(f"/api/guests/{plus_one.id}/rsvp", json={"attending": True})

    assert response.status_code == 200
    db.expire_all()
    updated = db.get(Guest, plus_one.id)
    assert updated is not None
    assert updated.rsvp_status == "attending"
    assert updated.group_id == primary.id
    assert db.get(Guest, primary.id).rsvp_status == "pending"
    assert db.query(Guest).count() == 2


def test_admin_rsvp_rejects_unparsable_deadline(admin_client, db, make_guest):
    guest = make_guest(code="A1", rsvp_deadline=datetime(2099, 1, 1, tzinfo=timezone.utc))

    response = admin_client.put(
        f"/api/guests/{guest.id}/rsvp", json={"attending": True, "rsvp_deadline": "not-a-date"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "rsvp_deadline must be a valid date"
    db.expire_all()
    updated = db.get(Guest, guest.id)
    assert updated.rsvp_deadline.year == 2099
    assert updated.rsvp_status == "pending"


def test_admin_rsvp_keeps_details_not_supplied(admin_client, db, make_guest):
    guest = make_guest(code="A1", dietary="vegan", notes="Front row please")

    admin_client.put(f"/api/guests/{guest.id}/rsvp", json={"attending": True})

    db.expire_all()
    updated = db.get(Guest, guest.id)
    assert updated.dietary == "vegan"
    assert updated.notes == "Front row please"
