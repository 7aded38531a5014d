"""Tests for Core API database interface.

Behavior-focused tests using real SQLite.
No mocks - testing observable behavior.
"""

import os
import sqlite3
import tempfile
from pathlib import Path

import pytest

from jellyfish_core.config import settings
from jellyfish_core.db import Core, _create_connection, get_core, get_schema_version, init_db

SCHEMA_PATH = Path(__file__).parent.parent.parent / "jellyfish_core" / "schema" / "schema.sql"


@pytest.fixture
def db_path():
    """Temp database file with the schema applied."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    with sqlite3.connect(path) as conn:
        with open(SCHEMA_PATH, "r") as f:
            conn.executescript(f.read())
        conn.commit()
    yield path
    os.unlink(path)


def _connect(path):
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def _card(slug):
    return {"slug": slug, "type": "card@1.0.0", "version": "1.0.0", "data": {}}


# ============================================================================
# _create_connection tests
# ============================================================================

def test_create_connection_returns_connection():
    """_create_connection() should return a valid SQLite connection."""
    conn = _create_connection()
    assert isinstance(conn, sqlite3.Connection)
    assert conn.row_factory == sqlite3.Row
    conn.close()


def test_create_connection_enables_foreign_keys():
    """_create_connection() should enable foreign key constraints."""
    conn = _create_connection()
    result = conn.execute("PRAGMA foreign_keys").fetchone()
    assert result[0] == 1
    conn.close()


# ============================================================================
# get_core() tests
# ============================================================================

def test_get_core_autocommit_mode():
    """get_core(atomic=False) should return Core instance."""
    core = get_core(atomic=False)
    assert isinstance(core, Core)
    assert core._atomic is False


def test_get_core_atomic_mode():
    """get_core(atomic=True) should return Core instance."""
    core = get_core(atomic=True)
    assert isinstance(core, Core)
    assert core._atomic is True


# ============================================================================
# Core.card property tests
# ============================================================================

def test_core_card_property_returns_card_operations(test_db):
    """Core.card should return CardOperations instance."""
    core = Core(test_db, atomic=False)
    card_ops = core.card
    assert hasattr(card_ops, "get_by_id")
    assert hasattr(card_ops, "insert")
    assert hasattr(card_ops, "upsert")


def test_core_card_property_is_cached(test_db):
    """Core.card should cache CardOperations instance."""
    core = Core(test_db, atomic=False)
    assert core.card is core.card


# ============================================================================
# Core context manager tests (atomic mode)
# ============================================================================

def test_core_autocommit_cannot_be_context_manager(test_db):
    """Core with atomic=False should refuse the with-statement."""
    core = Core(test_db, atomic=False)
    with pytest.raises(RuntimeError, match="atomic=True"):
        with core:
            pass


def test_core_atomic_context_manager_commits_on_success(db_path):
    """Core context manager should commit on successful exit."""
    with Core(_connect(db_path), atomic=True) as core:
        inserted = core.card.insert(_card("card-committed"))

    verify = _connect(db_path)
    row = verify.execute("SELECT slug FROM cards WHERE id = ?", (inserted["id"],)).fetchone()
    verify.close()
    assert row["slug"] == "card-committed"


def test_core_atomic_context_manager_rolls_back_on_error(db_path):
    """Core context manager should roll back when the block raises."""
    with pytest.raises(ValueError):
        with Core(_connect(db_path), atomic=True) as core:
            core.card.insert(_card("card-rolled-back"))
            raise ValueError("abort")

    verify = _connect(db_path)
    row = verify.execute("SELECT id FROM cards WHERE slug = 'card-rolled-back'").fetchone()
    verify.close()
    assert row is None


def test_core_atomic_context_manager_closes_connection(db_path):
    conn = _connect(db_path)
    with Core(conn, atomic=True):
        pass
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")


# ============================================================================
# init_db tests
# ============================================================================

def test_init_db_creates_schema_and_is_idempotent(monkeypatch, tmp_path):
    """init_db() should create the tables once and leave them alone after."""
    monkeypatch.setattr(settings, "database_path", str(tmp_path / "nested" / "fresh.db"))

    init_db()
    init_db()

    assert get_schema_version() == "20261019"
    core = get_core()
    tables = {
        row[0] for row in core._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    }
    assert {"cards", "_schema_metadata"} <= tables
