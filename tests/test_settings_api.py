from app.models import EmailSettings, Guest


def test_email_settings_defaults(admin_client):
    data = admin_client.get("/api/settings/email").json()
    assert data["provider"] == "resend"
    assert data["has_api_key"] is False
    assert data["enabled"] is False


def test_email_settings_mask_api_key(admin_client, db):
    response = admin_client.post(
        "/api/settings/email",
        json={
            "api_key": "re_1234567890",
            "from_name": "Jeffrey & Brigita",
            "from_email": "hello@wedding.example",
            "enabled": True,
        },
    )
    assert response.json() == {"success": True}

    data = admin_client.get("/api/settings/email").json()
    assert data["api_key"] == "*********7890"
    assert data["has_api_key"] is True
    assert data["from_email"] == "hello@wedding.example"


def test_masked_key_does_not_overwrite_stored_key(admin_client, db):
    admin_client.post("/api/settings/email", json={"api_key": "re_secret_key", "enabled": True})
    masked = admin_client.get("/api/settings/email").json()["api_key"]

    admin_client.post("/api/settings/email", json={"api_key": masked, "enabled": True, "from_name": "New"})

    db.expire_all()
    row = db.query(EmailSettings).one()
    assert row.api_key == "re_secret_key"
    assert row.from_name == "New"


def test_email_settings_validate_addresses(admin_client):
    response = admin_client.post("/api/settings/email", json={"from_email": "not-an-email"})
    assert response.status_code == 400


def test_guest_settings_apply_deadline_to_all_guests(admin_client, db, make_guest):
    make_guest(code="A1")
    make_guest(code="B1", name="Bob", email="bob@example.com")

    assert admin_client.get("/api/settings/guests").json() == {"rsvp_open": False, "rsvp_deadline": None}

    response = admin_client.post(
        "/api/settings/guests", json={"rsvp_open": True, "rsvp_deadline": "2099-06-01 12:00:00"}
    )
    assert response.json() == {"rsvp_open": True, "rsvp_deadline": "2099-06-01 12:00:00"}

    data = admin_client.get("/api/settings/guests").json()
    assert data == {"rsvp_open": True, "rsvp_deadline": "2099-06-01 12:00:00"}

    db.expire_all()
    assert {g.rsvp_deadline.year for g in db.query(Guest).all()} == {2099}


def test_guest_settings_reject_bad_deadline(admin_client):
    response = admin_client.post("/api/settings/guests", json={"rsvp_deadline": "someday"})
    assert response.status_code == 400
    assert response.json()["message"] == "rsvp_deadline must be a valid date"


def test_site_settings_partial_update(admin_client):
    empty = admin_client.get("/api/settings/site").json()
    assert empty["settings"]["venue_name"] is None

    response = admin_client.put("/api/settings/site", json={"venue_name": "Old Mill", "bride_name": "Brigita"})
    assert response.status_code == 200
    assert response.json()["settings"]["venue_name"] == "Old Mill"

    admin_client.put("/api/settings/site", json={"groom_name": "Jeffrey"})
    settings = admin_client.get("/api/settings/site").json()["settings"]
    assert settings["venue_name"] == "Old Mill"
    assert settings["groom_name"] == "Jeffrey"


def test_site_settings_reject_unknown_keys(admin_client):
    response = admin_client.put("/api/settings/site", json={"favourite_colour": "gold"})
    assert response.status_code == 400
    assert response.json()["message"] == "Unknown setting: favourite_colour"


def test_site_settings_feed_template_variables(admin_client, db, make_guest, fake_resend):
    admin_client.put("/api/settings/site", json={"venue_name": "Old Mill", "wedding_date": "2099-08-15"})
    make_guest(code="A1")
    message_id = admin_client.post(
        "/api/messages",
        json={"subject": "Details", "body_en": "{{venueName}} on {{weddingDate}}", "body_lt": "x"},
    ).json()["id"]

    admin_client.post(f"/api/messages/{message_id}/send")

    assert "Old Mill on August 15, 2099" in fake_resend.sent[0]["html"]
