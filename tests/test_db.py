"""Database layer tests.

All tests use an in-memory SQLite database so they are:
- Fast (no disk I/O)
- Isolated (each fixture gets a fresh DB)
- Side-effect free (nothing written to ~/.swiftnotes_data)
"""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from backend.content.errors import StorageFailure
from backend.db.connection import get_connection
from backend.db.isp_tasks import create_task, delete_task, get_task, list_tasks
from backend.db.migrations import SCHEMA_VERSION, current_version, init_db
from backend.db.models import Note, SectionDraft, to_epoch
from backend.db.notes import (
    count_notes,
    create_note,
    delete_note,
    get_note,
    get_section,
    list_notes,
    update_section,
)
from backend.db.store import SqliteNoteStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


def _drafts(*texts: str) -> list[SectionDraft]:
    return [SectionDraft(generated_content=t, user_prompt=f"Prompt {i}") for i, t in enumerate(texts)]


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_wal_mode(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA journal_mode").fetchone()
        # In-memory DBs always return 'memory', on-disk returns 'wal'
        assert row[0] in ("wal", "memory")

    def test_on_disk_db_created_in_workspace(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("backend.config.settings.workspace_dir", tmp_path / "ws")
        connection = get_connection()
        init_db(connection)
        connection.close()
        assert (tmp_path / "ws" / "notes.db").exists()


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        }
        assert {"notes", "note_sections", "isp_tasks", "schema_version"} <= tables

    def test_init_db_records_schema_version(self, conn: sqlite3.Connection) -> None:
        assert current_version(conn) == SCHEMA_VERSION

    def test_second_init_keeps_one_version_row(self, conn: sqlite3.Connection) -> None:
        init_db(conn)
        rows = conn.execute("SELECT version FROM schema_version").fetchall()
        assert [r[0] for r in rows] == [SCHEMA_VERSION]

    def test_uninitialised_version_table_reads_zero(self) -> None:
        connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
        connection.execute("CREATE TABLE schema_version (version INTEGER PRIMARY KEY)")
        assert current_version(connection) == 0
        connection.close()

    def test_init_db_is_idempotent(self, conn: sqlite3.Connection) -> None:
        create_note(conn, "Keep me", _drafts("text"))
        init_db(conn)
        assert len(list_notes(conn)) == 1


# ---------------------------------------------------------------------------
# notes
# ---------------------------------------------------------------------------

class TestNotes:
    def test_create_with_sections_preserves_order(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Session", _drafts("first", "second", "third"))
        assert [s.generated_content for s in note.sections] == ["first", "second", "third"]
        assert all(s.note_id == note.id for s in note.sections)
        assert note.content is None

    def test_legacy_content_round_trips_through_json(self, conn: sqlite3.Connection) -> None:
        payload = {"sections": 3, "extra": [1, 2]}
        note = create_note(conn, "Old", content=payload)
        assert get_note(conn, note.id).content == payload

    def test_plain_string_content(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Old", content="Patient showed improvement.")
        assert get_note(conn, note.id).content == "Patient showed improvement."

    def test_bare_text_row_loads_as_string(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            "INSERT INTO notes (id, title, content, created_at, updated_at) VALUES (?, ?, ?, 1, 1)",
            ("raw-1", "Raw", "not json at all"),
        )
        assert get_note(conn, "raw-1").content == "not json at all"

    def test_bare_row_that_parses_as_json_loads_as_value(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            "INSERT INTO notes (id, title, content, created_at, updated_at) VALUES (?, ?, ?, 1, 1)",
            ("raw-2", "Raw", "42"),
        )
        assert get_note(conn, "raw-2").content == 42

    def test_numeric_looking_string_content_stays_a_string(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Old", content="42")
        assert get_note(conn, note.id).content == "42"

    def test_explicit_id_and_created_at(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Import", note_id="fixed-id", created_at=1_600_000_000)
        assert note.id == "fixed-id"
        assert note.created_at == 1_600_000_000
        assert note.updated_at >= note.created_at

    def test_get_missing_returns_none(self, conn: sqlite3.Connection) -> None:
        assert get_note(conn, "nope") is None

    def test_list_orders_by_updated_at(self, conn: sqlite3.Connection) -> None:
        create_note(conn, "Old", note_id="old")
        create_note(conn, "New", note_id="new")
        conn.execute("UPDATE notes SET updated_at = 1 WHERE id = 'old'")
        conn.execute("UPDATE notes SET updated_at = 2 WHERE id = 'new'")
        assert [n.id for n in list_notes(conn)] == ["new", "old"]
        assert [n.id for n in list_notes(conn, limit=1)] == ["new"]

    def test_delete_missing_is_noop(self, conn: sqlite3.Connection) -> None:
        delete_note(conn, "nope")
        assert list_notes(conn) == []

    def test_delete_cascades_to_sections(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Gone", _drafts("a", "b"))
        section_id = note.sections[0].id
        delete_note(conn, note.id)
        assert get_note(conn, note.id) is None
        assert get_section(conn, section_id) is None

    def test_update_section(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Edit", _drafts("before"))
        section = update_section(conn, note.sections[0].id, generated_content="after", is_edited=True)
        assert section.generated_content == "after"
        assert section.is_edited is True

    def test_update_missing_section_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Section not found"):
            update_section(conn, "missing", generated_content="x")

    def test_update_unknown_field_raises(self, conn: sqlite3.Connection) -> None:
        note = create_note(conn, "Edit", _drafts("text"))
        with pytest.raises(ValueError, match="Cannot update field"):
            update_section(conn, note.sections[0].id, user_prompt="x")


class TestListFilters:
    @pytest.fixture()
    def seeded(self, conn: sqlite3.Connection) -> sqlite3.Connection:
        create_note(conn, "Morning walk", _drafts("Walked to the park"), note_id="a", created_at=100)
        create_note(conn, "Lunch", content={"content": "Ate the whole sandwich"}, note_id="b", created_at=200)
        create_note(conn, "Bath time", _drafts("Needed help"), note_type="hygiene", note_id="c", created_at=300)
        for nid, updated in (("a", 10), ("b", 30), ("c", 20)):
            conn.execute("UPDATE notes SET updated_at = ? WHERE id = ?", (updated, nid))
        return conn

    def test_search_matches_title(self, seeded: sqlite3.Connection) -> None:
        assert [n.id for n in list_notes(seeded, search="walk")] == ["a"]

    def test_search_matches_section_text_and_prompt(self, seeded: sqlite3.Connection) -> None:
        assert [n.id for n in list_notes(seeded, search="needed help")] == ["c"]
        assert {n.id for n in list_notes(seeded, search="Prompt 0")} == {"a", "c"}

    def test_search_matches_legacy_content(self, seeded: sqlite3.Connection) -> None:
        assert [n.id for n in list_notes(seeded, search="sandwich")] == ["b"]

    def test_note_type_filter(self, seeded: sqlite3.Connection) -> None:
        assert [n.id for n in list_notes(seeded, note_type="hygiene")] == ["c"]
        assert list_notes(seeded, search="walk", note_type="hygiene") == []

    def test_sort_by_title_ascending(self, seeded: sqlite3.Connection) -> None:
        notes = list_notes(seeded, sort_by="title", descending=False)
        assert [n.title for n in notes] == ["Bath time", "Lunch", "Morning walk"]

    def test_sort_by_created_at(self, seeded: sqlite3.Connection) -> None:
        assert [n.id for n in list_notes(seeded, sort_by="created_at")] == ["c", "b", "a"]

    def test_unknown_sort_field_falls_back_to_updated_at(self, seeded: sqlite3.Connection) -> None:
        notes = list_notes(seeded, sort_by="title; DROP TABLE notes")
        assert [n.id for n in notes] == ["b", "c", "a"]

    def test_limit_and_offset(self, seeded: sqlite3.Connection) -> None:
        assert [n.id for n in list_notes(seeded, limit=2)] == ["b", "c"]
        assert [n.id for n in list_notes(seeded, limit=2, offset=2)] == ["a"]
        assert [n.id for n in list_notes(seeded, offset=1)] == ["c", "a"]

    def test_count_uses_same_filters(self, seeded: sqlite3.Connection) -> None:
        assert count_notes(seeded) == 3
        assert count_notes(seeded, search="the") == 2
        assert count_notes(seeded, note_type="hygiene") == 1
        assert count_notes(seeded, note_type="missing") == 0


# ---------------------------------------------------------------------------
# isp tasks
# ---------------------------------------------------------------------------

class TestIspTasks:
    def test_create_appends_in_order(self, conn: sqlite3.Connection) -> None:
        a = create_task(conn, "Walk with support")
        b = create_task(conn, "Brush teeth", structured_data={"goal": "daily"})
        assert (a.order_index, b.order_index) == (0, 1)
        assert [t.id for t in list_tasks(conn)] == [a.id, b.id]
        assert get_task(conn, b.id).structured_data == {"goal": "daily"}

    def test_delete_leaves_citing_sections(self, conn: sqlite3.Connection) -> None:
        task = create_task(conn, "Dress independently")
        note = create_note(
            conn, "Cites task", [SectionDraft(generated_content="x", isp_task_id=task.id)]
        )
        delete_task(conn, task.id)
        assert get_task(conn, task.id) is None
        assert get_note(conn, note.id).sections[0].isp_task_id == task.id


# ---------------------------------------------------------------------------
# models
# ---------------------------------------------------------------------------

class TestModels:
    def test_to_epoch(self) -> None:
        assert to_epoch(1700000000) == 1700000000
        assert to_epoch("1970-01-01T00:01:00Z") == 60
        assert to_epoch("garbage") == 0
        assert to_epoch(None) == 0
        assert to_epoch(True) == 0

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_to_epoch_non_finite_is_zero(self, value: float) -> None:
        assert to_epoch(value) == 0

    def test_note_from_dict_with_nan_timestamp(self) -> None:
        note = Note.from_dict({"id": "x", "created_at": float("nan"), "updated_at": float("inf")})
        assert (note.created_at, note.updated_at) == (0, 0)

    def test_note_from_dict_drops_malformed_sections(self) -> None:
        note = Note.from_dict(
            {
                "id": "n1",
                "title": "T",
                "sections": [{"id": "s1", "generated_content": "ok"}, "junk", 3],
                "created_at": 10,
                "updated_at": 5,
            }
        )
        assert [s.id for s in note.sections] == ["s1"]
        assert note.updated_at == 10

    def test_note_from_dict_sections_not_a_list(self) -> None:
        note = Note.from_dict({"id": "n1", "title": "T", "sections": 3})
        assert note.sections == []


# ---------------------------------------------------------------------------
# SqliteNoteStore
# ---------------------------------------------------------------------------

class TestSqliteNoteStore:
    async def test_save_and_get(self, conn: sqlite3.Connection) -> None:
        store = SqliteNoteStore(conn)
        saved = await store.save_note("Saved", _drafts("body"))
        fetched = await store.get_note(saved.id)
        assert fetched.sections[0].generated_content == "body"

    async def test_get_missing_raises_storage_failure(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(StorageFailure) as exc_info:
            await SqliteNoteStore(conn).get_note("missing")
        assert exc_info.value.status_code == 404

    async def test_update_missing_section_raises_storage_failure(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(StorageFailure):
            await SqliteNoteStore(conn).update_section("missing", "x", True)

    async def test_closed_connection_raises_storage_failure(self) -> None:
        connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
        init_db(connection)
        connection.close()
        with pytest.raises(StorageFailure):
            await SqliteNoteStore(connection).get_tasks()
