"""One-line previews for note lists."""

from __future__ import annotations

from typing import Optional

from backend.config import settings
from backend.content.classifier import classify, recoverable_text
from backend.content.extractors import legacy_section_count
from backend.content.models import ShapeVariant
from backend.db.models import Note

# Keys tried, in order, for a preview of structured legacy data.
SUMMARY_KEYS: tuple[str, ...] = ("description", "summary", "notes", "details")


def _truncate(text: str, length: int) -> str:
    return text[:length] + ("..." if len(text) > length else "")


def content_preview(note: Note, length: Optional[int] = None) -> str:
    length = settings.preview_length if length is None else length
    shape = classify(note)

    if shape is ShapeVariant.SECTIONED:
        first = note.sections[0]
        return _truncate(first.generated_content or first.user_prompt or "", length)

    if shape.migratable:
        return _truncate(recoverable_text(note) or "", length)

    if shape is ShapeVariant.LEGACY_COUNT:
        count = legacy_section_count(note)
        plural = "" if count == 1 else "s"
        return f"Legacy note with {count} section{plural} (content not migrated)"

    if shape is ShapeVariant.LEGACY_STRUCTURED:
        if isinstance(note.content, dict):
            for key in SUMMARY_KEYS:
                value = note.content.get(key)
                if isinstance(value, str) and value:
                    return _truncate(value, length)
        return "Legacy note format - click to view details"

    return "No preview available"
