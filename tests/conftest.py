import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway SQLite file before anything imports app.config
_TMP_DIR = Path(tempfile.mkdtemp(prefix="wedding_rsvp_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["SITE_URL"] = "https://wedding.example"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
for _var in ("REDIS_URL", "REDIS_HOST", "R2_PUBLIC_URL"):
    os.environ.pop(_var, None)

from fastapi.testclient import TestClient  # noqa: E402

from app import email_generation, email_service  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Guest, Template, User  # noqa: E402
from app.rate_limiter import reset_rate_limits  # noqa: E402
from app.security_utils import hash_password_bcrypt  # noqa: E402
from app.utils import image_storage  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse"


@pytest.fixture(scope="session", autouse=True)
def _create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_state():
    """Empty every table and reset in-process counters between tests"""
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    reset_rate_limits()
    email_service.quota_tracker.reset()
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeResend:
    """Stands in for resend.Emails.send; records every payload"""

    def __init__(self):
        self.sent = []
        self.errors = []

    def __call__(self, params):
        if self.errors:
            raise self.errors.pop(0)
        self.sent.append(params)
        return {"id": f"email_{len(self.sent)}"}


@pytest.fixture(autouse=True)
def fake_resend(monkeypatch):
    fake = FakeResend()
    monkeypatch.setattr(email_service.resend.Emails, "send", fake)
    monkeypatch.setattr(email_service.config, "RESEND_API_KEY", "re_test_key")

    # Skip MJML compilation; the layout source stands in for the HTML
    monkeypatch.setattr(email_generation, "compile_mjml_to_html", lambda mjml: mjml)

    async def no_sleep(_seconds):
        return None

    monkeypatch.setattr(email_service.asyncio, "sleep", no_sleep)
    return fake


class FakeR2:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, **kwargs):
        self.objects[Key] = Body

    def copy_object(self, Bucket, Key, CopySource):
        self.objects[Key] = self.objects[CopySource["Key"]]

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://r2.example/{Params['Key']}?signature=test"


@pytest.fixture(autouse=True)
def fake_r2(monkeypatch):
    fake = FakeR2()
    monkeypatch.setattr(image_storage, "get_r2_client", lambda: fake)
    return fake


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_user(db):
    user = User(name="Admin", email=ADMIN_EMAIL, password_hash=hash_password_bcrypt(ADMIN_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin_client(client, admin_user):
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture()
def make_guest(db):
    """Create a primary guest (and optionally a plus-one in the same group)"""

    def _make(code="ABC123", name="Alice", email="alice@example.com", plus_one_name=None, **fields):
        data = {
            "group_label": fields.pop("group_label", f"{name}'s Group"),
            "name": name,
            "email": email,
            "code": code,
            "is_primary": True,
            "preferred_language": fields.pop("preferred_language", "en"),
            "rsvp_status": fields.pop("rsvp_status", "pending"),
        }
        data.update(fields)
        guest = Guest(**data)
        db.add(guest)
        db.flush()
        guest.group_id = guest.id
        if plus_one_name:
            db.add(
                Guest(
                    group_id=guest.id,
                    group_label=guest.group_label,
                    name=plus_one_name,
                    is_primary=False,
                    preferred_language=guest.preferred_language,
                    rsvp_status="pending",
                )
            )
        db.commit()
        db.refresh(guest)
        return guest

    return _make


@pytest.fixture()
def confirmation_templates(db):
    from app.seed import seed_default_templates

    seed_default_templates(db)
    return db.query(Template).all()
