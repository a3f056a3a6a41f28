"""Value types for the note content read path."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ShapeVariant(str, Enum):
    """The historical layouts a note's content can take, in precedence order."""

    SECTIONED = "sectioned"
    LEGACY_COUNT = "legacy_count"
    LEGACY_TEXT = "legacy_text"
    LEGACY_STRUCTURED = "legacy_structured"
    PLAIN_STRING = "plain_string"
    EMPTY = "empty"

    @property
    def migratable(self) -> bool:
        """True for the shapes holding exactly one recoverable text blob."""
        return self in (ShapeVariant.LEGACY_TEXT, ShapeVariant.PLAIN_STRING)


@dataclass
class Segment:
    """One display-ready block of a note.

    Mutable on purpose: a committed edit is mirrored into the in-memory
    segment so the caller can re-render without reloading the note.
    """

    id: str
    display_text: str
    recoverable: bool
    user_prompt: Optional[str] = None
    is_edited: bool = False
    source_task_id: Optional[str] = None
    tokens_used: Optional[int] = None


@dataclass
class ResolvedContent:
    """Classification plus extraction for one note."""

    shape: ShapeVariant
    segments: list[Segment] = field(default_factory=list)
    # Only set for LEGACY_COUNT: how many sections the note once claimed.
    legacy_section_count: Optional[int] = None
    notice: Optional[str] = None
    raw_content: Any = None

    @property
    def is_empty(self) -> bool:
        return not self.segments
