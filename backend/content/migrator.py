"""Legacy note migration.

Migration is additive: a legacy note is never rewritten.  Instead a fresh
sectioned note holding the recovered text is assembled and saved next to
it, so exports and audit trails that reference the old id keep working.

The flip side is that migrating the same note twice yields two copies.
Callers should check :func:`find_previous_migrations` and warn the user
before running it again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from backend.content.classifier import classify, recoverable_text
from backend.content.errors import ContentError, NotMigratable, StorageFailure
from backend.content.models import ShapeVariant
from backend.content.results import Err, Ok, Result
from backend.content.storage import NoteStore
from backend.db.models import Note, SectionDraft

logger = logging.getLogger(__name__)

MIGRATION_PROMPT = "Migrated from legacy format"
_TITLE_PREFIX = "Migrated Note"
_ID_PREFIX_LENGTH = 8


@dataclass
class MigrationPlan:
    """The new note a migration will create."""

    source_id: str
    title: str
    sections: list[SectionDraft] = field(default_factory=list)


def migrated_title(note: Note) -> str:
    """Title of the note created by migrating *note* (deterministic)."""
    return f"{_TITLE_PREFIX} {note.id[:_ID_PREFIX_LENGTH]}"


def plan_migration(note: Note) -> Result[MigrationPlan, NotMigratable]:
    """Build the replacement note for *note* without touching storage."""
    shape = classify(note)
    text = recoverable_text(note) if shape.migratable else None
    if text is None:
        return Err(NotMigratable(note.id, shape.value))

    section = SectionDraft(
        generated_content=text,
        user_prompt=MIGRATION_PROMPT,
        is_edited=False,
        tokens_used=0,
        isp_task_id=None,
    )
    return Ok(MigrationPlan(source_id=note.id, title=migrated_title(note), sections=[section]))


def find_previous_migrations(note: Note, notes: Iterable[Note]) -> list[Note]:
    """Return notes in *notes* that look like earlier migrations of *note*."""
    title = migrated_title(note)
    return [
        candidate
        for candidate in notes
        if candidate.id != note.id
        and candidate.title == title
        and classify(candidate) is ShapeVariant.SECTIONED
        and candidate.sections[0].user_prompt == MIGRATION_PROMPT
    ]


async def migrate(note: Note, store: NoteStore) -> Result[str, ContentError]:
    """Save a sectioned copy of a legacy *note* and return the new note id.

    Returns:
        ``Ok(new_id)`` on success, ``Err(NotMigratable)`` when the note has no
        single recoverable text (nothing is written), or
        ``Err(StorageFailure)`` exactly as raised by *store*.  Failed writes
        are not retried.
    """
    planned = plan_migration(note)
    if isinstance(planned, Err):
        logger.debug("Note %s not migratable: %s", note.id, planned.error)
        return planned

    plan = planned.value
    try:
        saved = await store.save_note(plan.title, plan.sections)
    except StorageFailure as exc:
        logger.error("Migration of note %s failed: %s", note.id, exc)
        return Err(exc)

    logger.info("Migrated legacy note %s -> %s", note.id, saved.id)
    return Ok(saved.id)
