"""Tests for legacy note migration.

Storage is an in-memory fake so every write can be inspected.  pytest-asyncio
runs in ``auto`` mode, so ``async def`` tests are collected directly.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Generator, Optional, Sequence

import pytest

from backend.content.classifier import classify
from backend.content.errors import NotMigratable, StorageFailure
from backend.content.extractors import resolve_content
from backend.content.migrator import (
    MIGRATION_PROMPT,
    find_previous_migrations,
    migrate,
    migrated_title,
    plan_migration,
)
from backend.content.models import ShapeVariant
from backend.content.results import Err, Ok
from backend.db.connection import get_connection
from backend.db.migrations import init_db
from backend.db.models import Note, Section, SectionDraft
from backend.db.notes import create_note, get_note, list_notes
from backend.db.store import SqliteNoteStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class FakeStore:
    """Records saves; optionally fails every write."""

    def __init__(self, fail: Optional[StorageFailure] = None) -> None:
        self.fail = fail
        self.saved: list[tuple[str, list[SectionDraft]]] = []

    async def get_note(self, note_id: str) -> Note:
        raise StorageFailure("not used")

    async def save_note(self, title: str, sections: Sequence[SectionDraft]) -> Note:
        if self.fail:
            raise self.fail
        self.saved.append((title, list(sections)))
        new_id = f"new-{len(self.saved)}"
        return Note(
            id=new_id,
            title=title,
            created_at=1,
            updated_at=1,
            sections=[
                Section(id=f"{new_id}-s{i}", generated_content=s.generated_content)
                for i, s in enumerate(sections)
            ],
        )

    async def update_section(self, section_id: str, generated_content: str, is_edited: bool) -> None:
        raise StorageFailure("not used")


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


def _note(content: Any = None, note_id: str = "3f2a9c1e-aaaa-4000-8000-000000000000") -> Note:
    return Note(id=note_id, title="Old", created_at=1, updated_at=1, content=content)


# ---------------------------------------------------------------------------
# plan_migration
# ---------------------------------------------------------------------------

class TestPlanMigration:
    def test_plain_string_plan(self) -> None:
        result = plan_migration(_note("Patient showed improvement."))
        assert isinstance(result, Ok)
        plan = result.value
        assert plan.title == "Migrated Note 3f2a9c1e"
        assert len(plan.sections) == 1
        section = plan.sections[0]
        assert section.generated_content == "Patient showed improvement."
        assert section.user_prompt == MIGRATION_PROMPT
        assert section.is_edited is False
        assert section.tokens_used == 0
        assert section.isp_task_id is None

    def test_title_is_deterministic(self) -> None:
        assert migrated_title(_note("a")) == migrated_title(_note("b"))

    @pytest.mark.parametrize(
        "content",
        [{"sections": 3}, {"mood": "ok"}, None, ""],
    )
    def test_unrecoverable_shapes_rejected(self, content: Any) -> None:
        result = plan_migration(_note(content))
        assert isinstance(result, Err)
        assert isinstance(result.error, NotMigratable)


# ---------------------------------------------------------------------------
# migrate
# ---------------------------------------------------------------------------

class TestMigrate:
    async def test_plain_string_produces_sectioned_note_with_exact_text(self) -> None:
        store = FakeStore()
        result = await migrate(_note("Patient showed improvement."), store)
        assert result == Ok("new-1")
        title, sections = store.saved[0]
        assert title == "Migrated Note 3f2a9c1e"
        assert [s.generated_content for s in sections] == ["Patient showed improvement."]

    async def test_legacy_text_text_is_not_trimmed(self) -> None:
        store = FakeStore()
        await migrate(_note({"body": "  keep spacing \n"}), store)
        assert store.saved[0][1][0].generated_content == "  keep spacing \n"

    @pytest.mark.parametrize(
        "content, shape",
        [
            ({"sections": 3}, ShapeVariant.LEGACY_COUNT),
            ({"mood": "ok", "vitals": {"bp": "120/80"}}, ShapeVariant.LEGACY_STRUCTURED),
        ],
    )
    async def test_unrecoverable_shapes_rejected_without_write(
        self, content: dict[str, Any], shape: ShapeVariant
    ) -> None:
        store = FakeStore()
        result = await migrate(_note(content), store)
        assert isinstance(result, Err)
        assert isinstance(result.error, NotMigratable)
        assert result.error.shape == shape.value
        assert store.saved == []

    async def test_sectioned_note_not_migratable(self) -> None:
        note = _note()
        note.sections = [Section(id="s1", generated_content="x")]
        result = await migrate(note, FakeStore())
        assert isinstance(result, Err)

    async def test_storage_failure_is_returned(self) -> None:
        failure = StorageFailure("boom", status_code=500)
        result = await migrate(_note("text"), FakeStore(fail=failure))
        assert isinstance(result, Err)
        assert result.error is failure

    async def test_source_note_unchanged(self) -> None:
        note = _note({"content": "Recovered"})
        await migrate(note, FakeStore())
        assert note.content == {"content": "Recovered"}
        assert note.sections == []

    async def test_repeated_migration_creates_duplicates(self) -> None:
        store = FakeStore()
        note = _note("Twice")
        first = await migrate(note, store)
        second = await migrate(note, store)
        assert first.value != second.value
        assert len(store.saved) == 2


# ---------------------------------------------------------------------------
# Against the local database
# ---------------------------------------------------------------------------

class TestMigrateSqlite:
    async def test_round_trip(self, conn: sqlite3.Connection) -> None:
        source = create_note(conn, "Old", content="Patient showed improvement.")
        result = await migrate(source, SqliteNoteStore(conn))

        migrated = get_note(conn, result.value)
        assert classify(migrated) is ShapeVariant.SECTIONED
        segments = resolve_content(migrated).segments
        assert [s.display_text for s in segments] == ["Patient showed improvement."]
        assert get_note(conn, source.id).content == "Patient showed improvement."

    async def test_find_previous_migrations(self, conn: sqlite3.Connection) -> None:
        source = create_note(conn, "Old", content={"text": "Legacy"})
        assert find_previous_migrations(source, list_notes(conn)) == []

        result = await migrate(source, SqliteNoteStore(conn))
        previous = find_previous_migrations(source, list_notes(conn))
        assert [n.id for n in previous] == [result.value]

    async def test_lookalike_title_without_prompt_is_not_a_migration(self, conn: sqlite3.Connection) -> None:
        source = create_note(conn, "Old", content="Legacy")
        create_note(
            conn,
            migrated_title(source),
            [SectionDraft(generated_content="Legacy", user_prompt="Something else")],
        )
        assert find_previous_migrations(source, list_notes(conn)) == []
