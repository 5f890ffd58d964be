PAGE = {
    "slug": "our-story",
    "is_published": True,
    "translations": [
        {"locale": "en", "title": "Our Story", "content": [{"type": "rich-text", "html": "<p>Hello</p>"}]},
        {"locale": "lt", "title": "Mūsų istorija", "content": [{"type": "divider"}]},
    ],
}


def _create(admin_client, **overrides):
    response = admin_client.post("/api/admin/pages", json={**PAGE, **overrides})
    assert response.status_code == 201
    return response.json()


def test_admin_pages_require_session(client):
    assert client.get("/api/admin/pages").status_code == 401


def test_create_page_with_translations(admin_client):
    page = _create(admin_client)

    assert page["slug"] == "our-story"
    assert page["is_published"] is True
    assert {t["locale"] for t in page["translations"]} == {"en", "lt"}
    assert [p["slug"] for p in admin_client.get("/api/admin/pages").json()] == ["our-story"]


def test_duplicate_slug_rejected(admin_client):
    _create(admin_client)
    response = admin_client.post("/api/admin/pages", json=PAGE)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "SLUG_EXISTS"


def test_invalid_slug_rejected(admin_client):
    response = admin_client.post("/api/admin/pages", json={**PAGE, "slug": "Our Story!"})
    assert response.status_code == 400


def test_invalid_block_rejected(admin_client):
    response = admin_client.post(
        "/api/admin/pages",
        json={**PAGE, "translations": [{"locale": "en", "title": "x", "content": [{"type": "carousel"}]}]},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_BLOCK_DATA"
    assert admin_client.get("/api/admin/pages").json() == []


def test_update_page_upserts_translation(admin_client):
    page = _create(admin_client)

    response = admin_client.put(
        f"/api/admin/pages/{page['id']}",
        json={"nav_order": 3, "translations": [{"locale": "en", "title": "Story", "content": []}]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["nav_order"] == 3
    english = next(t for t in data["translations"] if t["locale"] == "en")
    assert english["title"] == "Story"
    assert len(data["translations"]) == 2


def test_public_page_in_requested_locale(client, admin_client):
    _create(admin_client)

    data = client.get("/api/pages/our-story", params={"locale": "lt"}).json()

    assert data["locale"] == "lt"
    assert data["title"] == "Mūsų istorija"
    assert data["content"] == [{"type": "divider"}]


def test_public_page_falls_back_to_english(client, admin_client):
    _create(admin_client, translations=PAGE["translations"][:1])
    data = client.get("/api/pages/our-story", params={"locale": "lt"}).json()
    assert data["locale"] == "en"
    assert data["title"] == "Our Story"


def test_unpublished_page_is_hidden(client, admin_client):
    _create(admin_client, is_published=False)
    response = client.get("/api/pages/our-story")
    assert response.status_code == 404
    assert response.json()["message"] == "Page not found or unpublished"


def test_rsvp_gated_page(client, admin_client, make_guest):
    _create(admin_client, slug="schedule", requires_rsvp=True)

    anonymous = client.get("/api/pages/schedule")
    assert anonymous.status_code == 403
    assert anonymous.json()["error"]["code"] == "RSVP_REQUIRED"
    assert anonymous.json()["reason"] == "no_session"

    make_guest(code="ABC123")
    client.get("/api/rsvp/ABC123")
    pending = client.get("/api/pages/schedule")
    assert pending.status_code == 403
    assert pending.json()["reason"] == "pending"

    client.post("/api/rsvp", json={"code": "ABC123", "attending": True, "send_email": False})
    assert client.get("/api/pages/schedule").status_code == 200


def test_soft_deleted_page_disappears(client, admin_client):
    page = _create(admin_client)
    assert admin_client.delete(f"/api/admin/pages/{page['id']}").json() == {"success": True}

    assert client.get("/api/pages/our-story").status_code == 404
    assert admin_client.get("/api/admin/pages").json() == []
    listed = admin_client.get("/api/admin/pages", params={"includeDeleted": "true"}).json()
    assert listed[0]["deleted_at"] is not None


def test_navigation_lists_published_pages(client, admin_client):
    _create(admin_client, nav_order=2)
    _create(admin_client, slug="travel", nav_order=1, translations=[{"locale": "en", "title": "Travel", "content": []}])
    _create(admin_client, slug="draft", is_published=False)

    pages = client.get("/api/pages", params={"locale": "lt"}).json()["pages"]

    assert [p["slug"] for p in pages] == ["travel", "our-story"]
    assert pages[0]["title"] == "Travel"
    assert pages[1]["title"] == "Mūsų istorija"
