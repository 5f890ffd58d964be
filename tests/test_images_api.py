def _upload(admin_client, name="Venue Photo.JPG", content=b"\xff\xd8jpegdata", alt_text="The venue"):
    return admin_client.post(
        "/api/admin/images",
        files={"image": (name, content, "image/jpeg")},
        data={"alt_text": alt_text},
    )


def test_images_require_admin(client):
    assert client.get("/api/admin/images").status_code == 401


def test_upload_stores_object_and_record(admin_client, fake_r2):
    response = _upload(admin_client)

    assert response.status_code == 201
    image = response.json()
    assert image["filename"] == "Venue-Photo.jpg"
    assert image["alt_text"] == "The venue"
    [key] = fake_r2.objects
    assert key.startswith("images/")
    assert key.endswith("_Venue-Photo.jpg")
    assert fake_r2.objects[key] == b"\xff\xd8jpegdata"
    # No public bucket URL configured, so a signed URL is returned
    assert image["url"] == f"https://r2.example/{key}?signature=test"


def test_upload_rejects_bad_files(admin_client, fake_r2):
    wrong_type = _upload(admin_client, name="notes.txt")
    assert wrong_type.status_code == 400
    assert wrong_type.json()["error"]["code"] == "INVALID_FILE"

    empty = _upload(admin_client, content=b"")
    assert empty.status_code == 400
    assert empty.json()["message"] == "Image file is empty"

    assert fake_r2.objects == {}


def test_list_images(admin_client):
    _upload(admin_client, name="a.png")
    _upload(admin_client, name="b.png")
    assert {i["filename"] for i in admin_client.get("/api/admin/images").json()} == {"a.png", "b.png"}


def test_rename_keeps_extension_and_moves_object(admin_client, fake_r2):
    image = _upload(admin_client).json()
    [old_key] = fake_r2.objects

    response = admin_client.put(
        f"/api/admin/images/{image['id']}", json={"filename": "ceremony.png", "alt_text": "Ceremony"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["filename"] == "ceremony.jpg"
    assert data["alt_text"] == "Ceremony"
    assert old_key not in fake_r2.objects
    [new_key] = fake_r2.objects
    assert new_key.endswith("_ceremony.jpg")


def test_delete_image(admin_client, fake_r2):
    image = _upload(admin_client).json()

    response = admin_client.delete(f"/api/admin/images/{image['id']}")

    assert response.status_code == 204
    assert fake_r2.objects == {}
    assert admin_client.get("/api/admin/images").json() == []
    assert admin_client.delete(f"/api/admin/images/{image['id']}").status_code == 404
