"""Shared test fixtures for jellyfish-core."""

import os
import sqlite3
import tempfile
from pathlib import Path

# Settings are read when jellyfish_core.config is imported, and importing
# jellyfish_core.main bootstraps a database, so point both at a scratch
# location before any jellyfish_core import.
os.environ.setdefault("JF_DATABASE_PATH", str(Path(tempfile.mkdtemp()) / "jellyfish.db"))
os.environ.setdefault("JF_BCRYPT_WORK_FACTOR", "4")
os.environ.setdefault("JF_LOG_LEVEL", "WARNING")

import pytest

from jellyfish_core.auth import token as auth_token
from jellyfish_core.config import settings
from jellyfish_core.main import app, initialize_database

PASSWORD = "TestPass123"


@pytest.fixture
def test_db():
    """Create in-memory test database with schema."""
    schema_path = Path(__file__).parent.parent / "jellyfish_core" / "schema" / "schema.sql"

    db = sqlite3.connect(":memory:")
    db.row_factory = sqlite3.Row
    db.execute("PRAGMA foreign_keys = ON")

    with open(schema_path, "r") as f:
        db.executescript(f.read())
    db.commit()

    yield db

    db.close()


@pytest.fixture
def client():
    """Create test client backed by a fresh, bootstrapped database.

    Each test gets its own temp file database with the default cards loaded.
    """
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    original_db_path = settings.database_path
    try:
        settings.database_path = db_path
        initialize_database()

        app.config['TESTING'] = True
        with app.test_client() as client:
            yield client

    finally:
        settings.database_path = original_db_path
        try:
            os.unlink(db_path)
        except OSError:
            pass


@pytest.fixture
def kernel(client):
    """The kernel of the app under test."""
    return app.extensions["jellyfish"]["kernel"]


@pytest.fixture
def worker(client):
    """The action worker of the app under test."""
    return app.extensions["jellyfish"]["worker"]


@pytest.fixture
def admin_session(kernel):
    return kernel.sessions["admin"]


def create_user(kernel, worker, username, password=PASSWORD):
    """Create a community user through the actions and log it in.

    Returns a dict with the user card, a session id and the password.
    """
    admin = kernel.sessions["admin"]
    created = worker.execute(admin, {
        "action": "action-create-user",
        "card": "user",
        "type": "type@1.0.0",
        "arguments": {
            "username": username,
            "email": f"{username}@jellyfish.io",
            "password": password,
        },
    })
    session = worker.execute(admin, {
        "action": "action-create-session",
        "card": created["id"],
        "type": created["type"],
        "arguments": {"password": password},
    })
    return {
        "user": kernel.get_card_by_id(admin, created["id"]),
        "session": session["id"],
        "password": password,
    }


@pytest.fixture
def make_user(kernel, worker):
    """Factory fixture: make_user("alice") creates and logs in a community user."""
    def _make(username, password=PASSWORD):
        return create_user(kernel, worker, username, password)
    return _make


@pytest.fixture
def test_user(kernel, worker):
    """A community user named jane, with an open session."""
    return create_user(kernel, worker, "jane")


@pytest.fixture
def other_user(kernel, worker):
    """A second community user named bob."""
    return create_user(kernel, worker, "bob")


@pytest.fixture
def jwt_token(test_user):
    """A JWT token for the test user's session."""
    return auth_token.generate_access_token(test_user["session"], test_user["user"]["slug"])


@pytest.fixture
def auth_headers(jwt_token):
    """Authentication headers for the test user."""
    return {"Authorization": f"Bearer {jwt_token}"}
