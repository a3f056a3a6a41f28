"""Per-shape content extractors.

Each extractor turns a note of one shape into an ordered list of
:class:`~backend.content.models.Segment`.  Extractors are pure and total:
handed a note that does not actually have the requested shape they return
whatever they can find (usually nothing) instead of raising.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

from backend.content.classifier import (
    SECTION_COUNT_KEY,
    classify,
    find_text_key,
    is_number,
)
from backend.content.models import ResolvedContent, Segment, ShapeVariant
from backend.db.models import Note

Extractor = Callable[[Note], list[Segment]]


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def key_label(key: str) -> str:
    """``"session_summary"`` -> ``"Session Summary"``.

    Only the first letter of each word is raised; the rest is kept as is.
    """
    words = str(key).replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def format_value(value: Any) -> str:
    """Strings verbatim, everything else pretty-printed as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def legacy_section_count(note: Note) -> Optional[int]:
    """The historical section count of a Legacy-count note, else ``None``."""
    content = note.content
    if not isinstance(content, dict):
        return None
    count = content.get(SECTION_COUNT_KEY)
    if not is_number(count):
        return None
    return int(count)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

def _extract_sectioned(note: Note) -> list[Segment]:
    return [
        Segment(
            id=section.id,
            user_prompt=section.user_prompt,
            display_text=section.generated_content or "",
            is_edited=section.is_edited,
            source_task_id=section.isp_task_id,
            tokens_used=section.tokens_used,
            recoverable=True,
        )
        for section in note.sections
    ]


def _extract_nothing(note: Note) -> list[Segment]:
    return []


def _extract_legacy_text(note: Note) -> list[Segment]:
    key = find_text_key(note.content)
    if key is None:
        return []
    return [
        Segment(
            id=f"{note.id}:{key}",
            user_prompt=None,
            display_text=note.content[key],
            recoverable=True,
        )
    ]


def _extract_legacy_structured(note: Note) -> list[Segment]:
    content = note.content
    if isinstance(content, dict):
        items = [
            (key, value)
            for key, value in content.items()
            if not (key == SECTION_COUNT_KEY and is_number(value))
        ]
    elif content is None or isinstance(content, str):
        items = []
    else:
        items = [("content", content)]

    return [
        Segment(
            id=f"{note.id}:{key}",
            user_prompt=None,
            display_text=f"{key_label(key)}: {format_value(value)}",
            recoverable=False,
        )
        for key, value in items
    ]


def _extract_plain_string(note: Note) -> list[Segment]:
    if not isinstance(note.content, str) or not note.content:
        return []
    return [
        Segment(
            id=f"{note.id}:content",
            user_prompt=None,
            display_text=note.content,
            recoverable=True,
        )
    ]


EXTRACTORS: dict[ShapeVariant, Extractor] = {
    ShapeVariant.SECTIONED: _extract_sectioned,
    ShapeVariant.LEGACY_COUNT: _extract_nothing,
    ShapeVariant.LEGACY_TEXT: _extract_legacy_text,
    ShapeVariant.LEGACY_STRUCTURED: _extract_legacy_structured,
    ShapeVariant.PLAIN_STRING: _extract_plain_string,
    ShapeVariant.EMPTY: _extract_nothing,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(note: Note, shape: ShapeVariant) -> list[Segment]:
    """Return the display segments of *note* read as *shape*."""
    return EXTRACTORS[shape](note)


def _notice(shape: ShapeVariant, count: Optional[int]) -> Optional[str]:
    if shape is ShapeVariant.LEGACY_COUNT:
        plural = "" if count == 1 else "s"
        return (
            f"This note was created in an older format and indicates it had "
            f"{count} section{plural}, but the actual content data is not "
            f"available in the current format."
        )
    if shape is ShapeVariant.LEGACY_TEXT:
        return "This note uses an older format but contains readable content."
    if shape is ShapeVariant.LEGACY_STRUCTURED:
        return "This note contains structured data from an older format."
    if shape is ShapeVariant.EMPTY:
        return "No content available for this note"
    return None


def resolve_content(note: Note) -> ResolvedContent:
    """Classify *note* and extract its segments in one step (the read path)."""
    shape = classify(note)
    count = legacy_section_count(note) if shape is ShapeVariant.LEGACY_COUNT else None
    return ResolvedContent(
        shape=shape,
        segments=extract(note, shape),
        legacy_section_count=count,
        notice=_notice(shape, count),
        raw_content=note.content,
    )
