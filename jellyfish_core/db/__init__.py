"""Database module for Jellyfish Core.

This module provides the Core API for database operations.
Core encapsulates connection management and provides access to card operations.

ARCHITECTURE:
- Core owns its connection (no Flask g.db dependency)
- Connection closes on context exit (atomic=True) or when the Core is collected
- Card storage lives in CardOperations, reached through core.card

USAGE:

    # Read (autocommit, connection released with the Core):
    core = get_core()
    card = core.card.get_by_id(card_id)

    # Write several rows together:
    with get_core(atomic=True) as core:
        link = core.card.insert({...})
        core.card.stamp_linked_at(source_id, "has contact", link["created_at"])

Permission checks and schema validation are NOT done here; they belong to
jellyfish_core.kernel, which is the only layer that deals with sessions.
"""

from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING
import sqlite3
from ..config import settings

# Context-local storage for the active atomic Core
_core_context: ContextVar["Core"] = ContextVar("_core_context", default=None)

if TYPE_CHECKING:
    from .card import CardOperations


class Core:
    """
    Database Core with card operations.

    Maintains its own connection and transaction state.

    Connection Lifecycle:
    - atomic=True: Connection closes on __exit__ from context manager
    - atomic=False: Connection closes when the Core is garbage collected
    """

    def __init__(self, connection: sqlite3.Connection, atomic: bool = False):
        """Initialize Core with a database connection.

        Args:
            connection: SQLite connection with row_factory set to sqlite3.Row
            atomic: If True, Core MUST be used as context manager.
                    If False, Core has autocommit semantics.
        """
        self._conn = connection
        self._atomic = atomic
        self._card_ops = None

    @property
    def card(self) -> "CardOperations":
        """Card operations.

        Lazy-loaded to avoid circular import issues.
        Operations are created on first access and cached.
        """
        if self._card_ops is None:
            from .card import CardOperations
            self._card_ops = CardOperations(self._conn)
        return self._card_ops

    def __enter__(self) -> "Core":
        """Enter context manager for atomic transaction.

        Raises:
            RuntimeError: If Core was not created with atomic=True
        """
        if not self._atomic:
            raise RuntimeError(
                "Core must be created with atomic=True for context manager use. "
                "Use: with db.get_core(atomic=True) as core:"
            )
        _core_context.set(self)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager, committing or rolling back transaction."""
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            # Always clear context and close connection
            _core_context.set(None)
            self._conn.close()

    def __del__(self):
        """Close the connection if it is still open.

        Called during garbage collection, when the connection may already be
        closed; sqlite3 raises ProgrammingError in that case.
        """
        if hasattr(self, "_conn") and self._conn:
            try:
                self._conn.close()
            except sqlite3.ProgrammingError:
                pass


def _create_connection() -> sqlite3.Connection:
    """Create a fresh database connection.

    Returns:
        SQLite connection with row_factory set to sqlite3.Row
        and foreign keys enabled.
    """
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_core(atomic: bool = False) -> Core:
    """
    Get a database Core instance.

    Args:
        atomic: If True, returns a Core that MUST be used as context manager.
                All writes made inside the with-block commit together.
                If False (default), returns a Core meant for reads.

    Returns:
        Core instance with card operations
    """
    conn = _create_connection()
    return Core(conn, atomic=atomic)


# ============================================================================
# DATABASE INITIALIZATION
# ============================================================================

def init_db():
    """Initialize database by running schema.sql if not already initialized."""
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with sqlite3.connect(str(db_path)) as db:
        # Check if database is already initialized
        cursor = db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='_schema_metadata'"
        )
        if cursor.fetchone():
            return

        schema_path = Path(__file__).parent.parent / "schema" / "schema.sql"
        with open(schema_path, "r") as f:
            schema_sql = f.read()
        db.executescript(schema_sql)
        db.commit()


def get_schema_version() -> str:
    """Get current schema version from _schema_metadata table."""
    core = get_core()
    row = core._conn.execute(
        "SELECT value FROM _schema_metadata WHERE key = 'version'"
    ).fetchone()
    return row[0] if row else "unknown"
