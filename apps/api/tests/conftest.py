"""
Pytest configuration and fixtures

Tests run against a throw-away SQLite file. The schema is created from the
ORM metadata once per session and every table is emptied after each test,
so nothing leaks between tests.
"""
import os
import sys
import tempfile
from uuid import uuid4

# Must be set before anything imports core.config
_DB_DIR = tempfile.mkdtemp(prefix="coachlink-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["SENTRY_DSN"] = ""

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

from core.account_security import reset_all
from core.database import Base, SessionLocal, engine
from core.security import create_access_token, get_password_hash
from models import User, UserRole

TEST_PASSWORD = "Str0ngPass!"
# bcrypt is slow on purpose; hash the shared test password once
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    reset_all()


@pytest.fixture
def client():
    from main import app

    return TestClient(app)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Factory: make_user(role="client", **fields) -> committed User."""

    def _make(role: str = UserRole.CLIENT.value, **fields) -> User:
        fields.setdefault("username", f"{role}_{uuid4().hex[:8]}")
        fields.setdefault("name", fields["username"].title())
        fields.setdefault("validated", True)
        user = User(role=role, password_hash=_TEST_PASSWORD_HASH, **fields)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def trainer(make_user):
    return make_user(UserRole.TRAINER.value)


@pytest.fixture
def athlete(make_user):
    """A client account (named to avoid clashing with the `client` fixture)."""
    return make_user(UserRole.CLIENT.value)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN.value)


@pytest.fixture
def paired(db_session, trainer, athlete):
    """`athlete` coached by `trainer`."""
    athlete.assigned_trainer_id = trainer.id
    db_session.commit()
    return trainer, athlete


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def fake_media(monkeypatch):
    """Replace the remote media store; records what was uploaded and deleted."""
    from services import media_storage

    calls = {"uploads": [], "deleted": []}

    def _upload(content, filename, *, folder, resource_type="image", transformation=None):
        calls["uploads"].append({"filename": filename, "folder": folder, "resource_type": resource_type})
        public_id = f"{folder}/{uuid4().hex}"
        return media_storage.StoredMedia(
            url=f"https://res.cloudinary.com/demo/{resource_type}/upload/v1/{public_id}.jpg",
            public_id=public_id,
            resource_type=resource_type,
        )

    def _delete(url, resource_type="image"):
        calls["deleted"].append(url)
        return True

    monkeypatch.setattr(media_storage, "upload", _upload)
    monkeypatch.setattr(media_storage, "delete_by_url", _delete)
    return calls


@pytest.fixture
def password():
    """Plain-text password of every user built by make_user."""
    return TEST_PASSWORD
