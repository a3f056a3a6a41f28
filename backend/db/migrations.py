"""Database initialisation helpers.

``init_db(conn)`` is idempotent: safe to call on an existing database.  The
schema version it creates is recorded in ``schema_version`` so a later
release can tell which layout an existing file was built with.

These are *schema* helpers.  Converting legacy note content into the
sectioned format is a data operation and lives in
:mod:`backend.content.migrator`.
"""

from __future__ import annotations

import sqlite3

from backend.config import settings

# Layout written by schema.sql.
SCHEMA_VERSION = 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_schema() -> str:
    """Load schema.sql from the package directory."""
    return settings.schema_path.read_text(encoding="utf-8")


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the schema-version table and record :data:`SCHEMA_VERSION`."""
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version  INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (strftime('%s', 'now'))
            )
            """
        )
        conn.execute(
            "INSERT OR IGNORE INTO schema_version(version) VALUES (?)",
            (SCHEMA_VERSION,),
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes and record the schema version.

    This function is **idempotent**: every DDL statement uses ``IF NOT EXISTS``
    so calling it multiple times on the same database is safe.

    Args:
        conn: An open, configured SQLite connection.
    """
    # executescript() issues an implicit COMMIT first, which is fine for a
    # DDL-only script.
    conn.executescript(_read_schema())
    _ensure_version_table(conn)


def current_version(conn: sqlite3.Connection) -> int:
    """Return the recorded schema version (0 for an uninitialised database)."""
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) FROM schema_version"
    ).fetchone()
    return row[0] if row else 0
