"""Local-database implementation of the note storage collaborator.

Wraps the synchronous CRUD helpers in the async interface expected by
:mod:`backend.content`.  SQLite calls are short and local, so they run
inline rather than in a thread pool.
"""

from __future__ import annotations

import sqlite3
from typing import Sequence

from backend.content.errors import StorageFailure
from backend.db import isp_tasks as tasks_db
from backend.db import notes as notes_db
from backend.db.models import ISPTask, Note, SectionDraft


class SqliteNoteStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    async def get_note(self, note_id: str) -> Note:
        try:
            note = notes_db.get_note(self.conn, note_id)
        except sqlite3.Error as exc:
            raise StorageFailure(f"Failed to fetch note: {exc}") from exc
        if note is None:
            raise StorageFailure(f"Note not found: {note_id!r}", status_code=404)
        return note

    async def save_note(self, title: str, sections: Sequence[SectionDraft]) -> Note:
        try:
            return notes_db.create_note(self.conn, title=title, sections=sections)
        except sqlite3.Error as exc:
            raise StorageFailure(f"Failed to save note: {exc}") from exc

    async def update_section(
        self,
        section_id: str,
        generated_content: str,
        is_edited: bool,
    ) -> None:
        try:
            notes_db.update_section(
                self.conn,
                section_id,
                generated_content=generated_content,
                is_edited=is_edited,
            )
        except ValueError as exc:
            raise StorageFailure(str(exc), status_code=404) from exc
        except sqlite3.Error as exc:
            raise StorageFailure(f"Failed to update section: {exc}") from exc

    async def get_tasks(self) -> list[ISPTask]:
        try:
            return tasks_db.list_tasks(self.conn)
        except sqlite3.Error as exc:
            raise StorageFailure(f"Failed to fetch ISP tasks: {exc}") from exc
