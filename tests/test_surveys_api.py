RADIO = {
    "question": "Which meal?",
    "type": "radio",
    "options": ["Fish", "Beef", "Vegetarian"],
    "locale": "en",
}


def _create(admin_client, **overrides):
    response = admin_client.post("/api/admin/surveys", json={**RADIO, **overrides})
    assert response.status_code == 201, response.json()
    return response.json()


def test_create_survey(admin_client):
    survey = _create(admin_client, is_required=1)

    assert survey["type"] == "radio"
    assert survey["options"] == ["Fish", "Beef", "Vegetarian"]
    assert survey["is_required"] is True
    assert survey["is_anonymous"] is True


def test_create_reports_every_problem(admin_client):
    response = admin_client.post(
        "/api/admin/surveys", json={"question": " ", "type": "radio", "options": [], "locale": "fr"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "INVALID_SURVEY"
    assert body["message"] == (
        "question must be a non-empty string, "
        "options must be a non-empty array for radio/checkbox, "
        "locale must be 'en' or 'lt'"
    )


def test_text_survey_rejects_options(admin_client):
    response = admin_client.post(
        "/api/admin/surveys", json={"question": "Song?", "type": "text", "options": ["a"], "locale": "en"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "options must be empty for text surveys"


def test_unknown_page_rejected(admin_client):
    response = admin_client.post("/api/admin/surveys", json={**RADIO, "page_id": 999})
    assert response.status_code == 400


def test_invalid_id(admin_client):
    response = admin_client.get("/api/admin/surveys/abc")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ID"


def test_update_switching_to_text_clears_options(admin_client):
    survey = _create(admin_client)
    response = admin_client.put(f"/api/admin/surveys/{survey['id']}", json={"type": "text"})
    assert response.status_code == 200
    assert response.json()["options"] == []


def test_soft_delete_restore_and_destroy(admin_client):
    survey = _create(admin_client)
    url = f"/api/admin/surveys/{survey['id']}"

    admin_client.delete(url)
    listing = admin_client.get("/api/admin/surveys").json()
    assert listing["data"] == []
    assert listing["meta"]["total"] == 0
    with_deleted = admin_client.get("/api/admin/surveys", params={"includeDeleted": "true"}).json()
    assert with_deleted["meta"]["includeDeleted"] is True
    assert with_deleted["data"][0]["deleted_at"] is not None

    restored = admin_client.put(f"{url}/restore").json()
    assert restored["deleted_at"] is None

    assert admin_client.delete(f"{url}/destroy").json() == {"success": True}
    assert admin_client.get(url).status_code == 404


def test_respond_with_label_or_index(client, admin_client):
    survey = _create(admin_client)
    url = f"/api/surveys/{survey['id']}/respond"

    assert client.post(url, json={"response": "Beef"}).json() == {"success": True}
    assert client.post(url, json={"response": 3}).status_code == 200

    data = admin_client.get(f"/api/admin/surveys/{survey['id']}/responses").json()
    assert sorted(r["response_text"] for r in data["data"]) == ["Beef", "Vegetarian"]
    assert data["meta"]["total"] == 2


def test_invalid_answer_rejected(client, admin_client):
    survey = _create(admin_client, is_required=True)
    url = f"/api/surveys/{survey['id']}/respond"

    for answer in ("Pasta", 0, 4, None):
        response = client.post(url, json={"response": answer})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_RESPONSE"


def test_checkbox_answers(client, admin_client):
    survey = _create(admin_client, type="checkbox", options=["Bus", "Car", "Train"])
    url = f"/api/surveys/{survey['id']}/respond"

    assert client.post(url, json={"response": ["Bus", 3]}).status_code == 200
    assert client.post(url, json={"response": "Bus"}).status_code == 400

    [row] = admin_client.get(f"/api/admin/surveys/{survey['id']}/responses").json()["data"]
    assert row["response_json"] == ["Bus", "Train"]


def test_named_survey_requires_guest_session(client, admin_client, make_guest):
    survey = _create(admin_client, is_anonymous=False)
    url = f"/api/surveys/{survey['id']}/respond"

    anonymous = client.post(url, json={"response": "Fish"})
    assert anonymous.status_code == 401
    assert anonymous.json()["error"]["code"] == "AUTH_REQUIRED"

    guest = make_guest(code="ABC123")
    client.get("/api/rsvp/ABC123")
    assert client.post(url, json={"response": "Fish"}).status_code == 200

    guest_only = admin_client.get(
        f"/api/admin/surveys/{survey['id']}/responses", params={"filter": "guest"}
    ).json()["data"]
    assert guest_only[0]["guest_id"] == guest.id
    assert guest_only[0]["guest_name"] == "Alice"


def test_rsvp_gated_survey(client, admin_client, make_guest):
    survey = _create(admin_client, requires_rsvp=True)
    url = f"/api/surveys/{survey['id']}/respond"

    response = client.post(url, json={"response": "Fish"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "RSVP_REQUIRED"

    make_guest(code="ABC123", rsvp_status="attending", attending=True)
    client.get("/api/rsvp/ABC123")
    assert client.post(url, json={"response": "Fish"}).status_code == 200


def test_deleted_survey_cannot_be_answered(client, admin_client):
    survey = _create(admin_client)
    admin_client.delete(f"/api/admin/surveys/{survey['id']}")
    assert client.post(f"/api/surveys/{survey['id']}/respond", json={"response": "Fish"}).status_code == 404


def test_responses_are_rate_limited(client, admin_client):
    survey = _create(admin_client)
    url = f"/api/surveys/{survey['id']}/respond"

    for _ in range(5):
        assert client.post(url, json={"response": "Fish"}).status_code == 200
    response = client.post(url, json={"response": "Fish"})

    assert response.status_code == 429
    assert response.json()["message"] == "Too many submissions. Try again later."

    other = _create(admin_client, question="Dessert?")
    assert client.post(f"/api/surveys/{other['id']}/respond", json={"response": "Fish"}).status_code == 200


def test_csv_export_and_delete_responses(client, admin_client):
    survey = _create(admin_client)
    client.post(f"/api/surveys/{survey['id']}/respond", json={"response": "Fish"})
    base = f"/api/admin/surveys/{survey['id']}/responses"

    export = admin_client.get(base, params={"format": "csv"})
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    lines = export.text.strip().splitlines()
    assert lines[0] == "id,survey_block_id,guest_id,guest_name,response_text,created_at"
    assert ",Fish," in lines[1]

    assert admin_client.delete(base).json() == {"success": True, "deleted": 1}
    assert admin_client.get(base).json()["data"] == []
