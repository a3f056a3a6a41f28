"""Content shape classifier.

Notes were never stamped with a format version, so the shape of a note's
content is inferred from what it looks like.  The rules below are checked
top to bottom and the first match wins; the final rule matches everything,
which makes :func:`classify` total.

To support a newly discovered legacy layout, add a :class:`ShapeRule` above
the catch-all and a matching extractor in :mod:`backend.content.extractors`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from backend.content.models import ShapeVariant
from backend.db.models import Note

# Keys that carried the whole note text in the pre-sections format,
# in lookup priority order.
TEXT_KEYS: tuple[str, ...] = ("content", "text", "body")

# Legacy key holding the number of sections a note once had.
SECTION_COUNT_KEY = "sections"


# ---------------------------------------------------------------------------
# Shape checks (shared with the extractors and the migrator)
# ---------------------------------------------------------------------------

def is_number(value: Any) -> bool:
    # bool is an int subclass but never meant a count.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def find_text_key(content: Any) -> Optional[str]:
    """Return the first text-bearing key of a legacy dict holding a non-empty string."""
    if not isinstance(content, dict):
        return None
    for key in TEXT_KEYS:
        value = content.get(key)
        if isinstance(value, str) and value:
            return key
    return None


def recoverable_text(note: Note) -> Optional[str]:
    """Return the single text blob of a Legacy-text or Plain-string note.

    The text is returned exactly as stored: no trimming or normalisation.
    """
    content = note.content
    if isinstance(content, str):
        return content or None
    key = find_text_key(content)
    return content[key] if key is not None else None


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _has_sections(note: Note) -> bool:
    return isinstance(note.sections, list) and len(note.sections) > 0


def _is_legacy_count(note: Note) -> bool:
    content = note.content
    return (
        isinstance(content, dict)
        and is_number(content.get(SECTION_COUNT_KEY))
        and find_text_key(content) is None
    )


def _is_legacy_text(note: Note) -> bool:
    return find_text_key(note.content) is not None


def _is_legacy_structured(note: Note) -> bool:
    content = note.content
    if isinstance(content, dict):
        return len(content) > 0
    if content is None or isinstance(content, str):
        return False
    # Lists, numbers and booleans: opaque payloads shown verbatim.
    return bool(content)


def _is_plain_string(note: Note) -> bool:
    return isinstance(note.content, str) and note.content != ""


@dataclass(frozen=True)
class ShapeRule:
    shape: ShapeVariant
    matches: Callable[[Note], bool]


SHAPE_RULES: tuple[ShapeRule, ...] = (
    ShapeRule(ShapeVariant.SECTIONED, _has_sections),
    ShapeRule(ShapeVariant.LEGACY_COUNT, _is_legacy_count),
    ShapeRule(ShapeVariant.LEGACY_TEXT, _is_legacy_text),
    ShapeRule(ShapeVariant.LEGACY_STRUCTURED, _is_legacy_structured),
    ShapeRule(ShapeVariant.PLAIN_STRING, _is_plain_string),
    ShapeRule(ShapeVariant.EMPTY, lambda note: True),
)


def classify(note: Note) -> ShapeVariant:
    """Return the shape of *note*'s content.  Never raises."""
    for rule in SHAPE_RULES:
        if rule.matches(note):
            return rule.shape
    # Unreachable while the catch-all rule is last.
    return ShapeVariant.EMPTY
