"""Collaborator interfaces consumed by the migrator and the edit/commit path.

Two implementations ship with the backend:

* :class:`backend.db.store.SqliteNoteStore` for the local database.
* :class:`backend.client.http.HttpNoteStore` for the remote notes API.

Every method is a coroutine.  Any failure, including "not found", must be
raised as :class:`~backend.content.errors.StorageFailure`.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from backend.db.models import ISPTask, Note, SectionDraft


class NoteStore(Protocol):
    async def get_note(self, note_id: str) -> Note:
        ...

    async def save_note(self, title: str, sections: Sequence[SectionDraft]) -> Note:
        """Persist a new note and return it with its assigned ids."""
        ...

    async def update_section(
        self,
        section_id: str,
        generated_content: str,
        is_edited: bool,
    ) -> None:
        ...


class TaskSource(Protocol):
    async def get_tasks(self) -> list[ISPTask]:
        ...
