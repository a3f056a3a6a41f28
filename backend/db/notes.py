"""CRUD operations for the ``notes`` and ``note_sections`` tables."""

from __future__ import annotations

import json
import sqlite3
import uuid
from time import time
from typing import Any, Optional, Sequence

from backend.db.models import Note, Section, SectionDraft


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load_content(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # Pre-JSON rows stored bare text.  A bare row that happens to parse
        # as JSON (``42``, ``true``, ``null``) cannot be told apart from an
        # encoded value and loads as that value; create_note always encodes,
        # so only rows written by other tools are affected.
        return raw


def _row_to_section(row: sqlite3.Row) -> Section:
    return Section(
        id=row["id"],
        note_id=row["note_id"],
        user_prompt=row["user_prompt"],
        generated_content=row["generated_content"],
        is_edited=bool(row["is_edited"]),
        tokens_used=row["tokens_used"],
        isp_task_id=row["isp_task_id"],
    )


def _row_to_note(row: sqlite3.Row, sections: list[Section]) -> Note:
    return Note(
        id=row["id"],
        title=row["title"],
        content=_load_content(row["content"]),
        note_type=row["note_type"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        sections=sections,
    )


def _sections_for(conn: sqlite3.Connection, note_id: str) -> list[Section]:
    rows = conn.execute(
        "SELECT * FROM note_sections WHERE note_id = ? ORDER BY order_index, created_at",
        (note_id,),
    ).fetchall()
    return [_row_to_section(r) for r in rows]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_note(
    conn: sqlite3.Connection,
    title: str,
    sections: Sequence[SectionDraft] = (),
    content: Any = None,
    note_type: str = "general",
    note_id: Optional[str] = None,
    created_at: Optional[int] = None,
) -> Note:
    """Insert a note together with its sections and return it.

    The note row and every section row are written in one transaction, so a
    note is never visible without the sections it was created with.

    Args:
        conn: Open DB connection.
        title: Display title.
        sections: Section drafts, stored in the given order.
        content: Raw legacy payload (imports only).  New notes leave this
            ``None`` and carry their text in *sections*.
        note_type: Free-form category, ``general`` by default.
        note_id: Explicit UUID override (auto-generated when omitted).
        created_at: Explicit creation timestamp (imports keep the original).

    Returns:
        The newly created :class:`~backend.db.models.Note`.
    """
    nid = note_id or str(uuid.uuid4())
    now = int(time())
    created = created_at if created_at is not None else now
    content_json = None if content is None else json.dumps(content)

    with conn:
        conn.execute(
            """
            INSERT INTO notes (id, title, content, note_type, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (nid, title, content_json, note_type, created, max(now, created)),
        )
        for index, draft in enumerate(sections):
            conn.execute(
                """
                INSERT INTO note_sections (
                    id, note_id, user_prompt, generated_content, is_edited,
                    tokens_used, isp_task_id, order_index, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    nid,
                    draft.user_prompt,
                    draft.generated_content,
                    int(draft.is_edited),
                    draft.tokens_used,
                    draft.isp_task_id,
                    index,
                    now,
                    now,
                ),
            )

    return get_note(conn, nid)  # type: ignore[return-value]


def get_note(conn: sqlite3.Connection, note_id: str) -> Optional[Note]:
    """Fetch a note with its sections.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM notes WHERE id = ?", (note_id,)).fetchone()
    if row is None:
        return None
    return _row_to_note(row, _sections_for(conn, note_id))


SORT_FIELDS: tuple[str, ...] = ("updated_at", "created_at", "title", "note_type")


def _filters(search: Optional[str], note_type: Optional[str]) -> tuple[str, list[Any]]:
    """Build the WHERE clause shared by :func:`list_notes` and :func:`count_notes`."""
    clauses: list[str] = []
    params: list[Any] = []
    if search:
        pattern = f"%{search}%"
        clauses.append(
            """
            (title LIKE ? OR content LIKE ? OR EXISTS (
                SELECT 1 FROM note_sections s
                WHERE s.note_id = notes.id
                  AND (s.generated_content LIKE ? OR s.user_prompt LIKE ?)
            ))
            """
        )
        params.extend([pattern] * 4)
    if note_type:
        clauses.append("note_type = ?")
        params.append(note_type)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def list_notes(
    conn: sqlite3.Connection,
    limit: Optional[int] = None,
    offset: int = 0,
    search: Optional[str] = None,
    note_type: Optional[str] = None,
    sort_by: str = "updated_at",
    descending: bool = True,
) -> list[Note]:
    """Return notes (with sections), most recently updated first by default.

    Args:
        conn: Open DB connection.
        limit: Maximum number of notes (all when ``None``).
        offset: Number of matching notes to skip.
        search: Case-insensitive substring matched against the title, the
            raw legacy content and every section's prompt and text.
        note_type: Only notes of this type.
        sort_by: One of :data:`SORT_FIELDS`; anything else sorts by
            ``updated_at``.
        descending: Sort direction.
    """
    where, params = _filters(search, note_type)
    field = sort_by if sort_by in SORT_FIELDS else "updated_at"
    direction = "DESC" if descending else "ASC"
    sql = f"SELECT * FROM notes {where} ORDER BY {field} {direction}, created_at {direction}, id"  # noqa: S608
    if limit is not None or offset:
        sql += " LIMIT ? OFFSET ?"
        params.extend([-1 if limit is None else limit, offset])
    rows = conn.execute(sql, params).fetchall()
    return [_row_to_note(r, _sections_for(conn, r["id"])) for r in rows]


def count_notes(
    conn: sqlite3.Connection,
    search: Optional[str] = None,
    note_type: Optional[str] = None,
) -> int:
    """Number of notes matching the same filters as :func:`list_notes`."""
    where, params = _filters(search, note_type)
    row = conn.execute(f"SELECT COUNT(*) FROM notes {where}", params).fetchone()  # noqa: S608
    return row[0]


def delete_note(conn: sqlite3.Connection, note_id: str) -> None:
    """Delete a note (and its sections via CASCADE).

    This is a no-op if the note does not exist.
    """
    with conn:
        conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))


def get_section(conn: sqlite3.Connection, section_id: str) -> Optional[Section]:
    """Fetch a single section by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM note_sections WHERE id = ?", (section_id,)
    ).fetchone()
    return _row_to_section(row) if row else None


def update_section(conn: sqlite3.Connection, section_id: str, **kwargs: Any) -> Section:
    """Update fields on a section.

    Allowed keyword arguments: ``generated_content``, ``is_edited``.  The
    section's own ``updated_at`` is refreshed; the parent note is left alone.

    Raises:
        ValueError: If ``section_id`` does not exist or no valid fields are given.
    """
    if get_section(conn, section_id) is None:
        raise ValueError(f"Section not found: {section_id!r}")

    allowed = {"generated_content", "is_edited"}
    updates: dict[str, Any] = {}
    for key, value in kwargs.items():
        if key not in allowed:
            raise ValueError(f"Cannot update field {key!r}")
        updates[key] = int(value) if key == "is_edited" else value

    if not updates:
        raise ValueError("No valid fields provided to update_section()")

    updates["updated_at"] = int(time())
    set_clause = ", ".join(f"{col} = ?" for col in updates)
    values = list(updates.values()) + [section_id]

    with conn:
        conn.execute(
            f"UPDATE note_sections SET {set_clause} WHERE id = ?", values  # noqa: S608
        )

    return get_section(conn, section_id)  # type: ignore[return-value]
