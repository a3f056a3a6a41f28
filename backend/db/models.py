"""Dataclass models representing notes, sections and ISP tasks.

These are plain Python objects, not ORM models.  The DB layer and the HTTP
client serialise / deserialise to and from these types.

``Note.content`` is deliberately untyped: its shape depends on the format
era in which the note was written (see :mod:`backend.content.classifier`).
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional


def to_epoch(value: Any) -> int:
    """Coerce a timestamp (epoch int or ISO-8601 string) to epoch seconds."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str) and value:
        try:
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
        except ValueError:
            return 0
    return 0


@dataclass
class Section:
    id: str
    generated_content: str = ""
    user_prompt: Optional[str] = None
    is_edited: bool = False
    tokens_used: Optional[int] = None
    isp_task_id: Optional[str] = None
    note_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Section:
        """Build a Section from an API / export record (snake_case keys)."""
        tokens = raw.get("tokens_used")
        return cls(
            id=str(raw.get("id", "")),
            generated_content=raw.get("generated_content") or "",
            user_prompt=raw.get("user_prompt"),
            is_edited=bool(raw.get("is_edited", False)),
            tokens_used=tokens if isinstance(tokens, int) and tokens >= 0 else None,
            isp_task_id=raw.get("isp_task_id"),
            note_id=raw.get("note_id"),
        )


@dataclass
class Note:
    id: str
    title: str
    created_at: int
    updated_at: int
    content: Any = None
    sections: list[Section] = field(default_factory=list)
    note_type: str = "general"

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    def content_json(self) -> Optional[str]:
        """Serialise ``content`` to a JSON string for storage (None stays NULL)."""
        if self.content is None:
            return None
        return json.dumps(self.content)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Note:
        """Build a Note from an API / export record.

        Malformed ``sections`` (not a list, or non-object entries) are
        dropped rather than rejected so that legacy records always load.
        """
        raw_sections = raw.get("sections")
        sections = []
        if isinstance(raw_sections, list):
            sections = [Section.from_dict(s) for s in raw_sections if isinstance(s, dict)]
        created = to_epoch(raw.get("created_at"))
        updated = max(to_epoch(raw.get("updated_at")), created)
        return cls(
            id=str(raw.get("id", "")),
            title=raw.get("title") or "",
            created_at=created,
            updated_at=updated,
            content=raw.get("content"),
            sections=sections,
            note_type=raw.get("note_type") or "general",
        )


@dataclass
class ISPTask:
    id: str
    description: str
    structured_data: Optional[dict[str, Any]] = None
    order_index: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ISPTask:
        data = raw.get("structured_data")
        return cls(
            id=str(raw.get("id", "")),
            description=raw.get("description") or "",
            structured_data=data if isinstance(data, dict) else None,
            order_index=int(raw.get("order_index") or 0),
        )


@dataclass
class SectionDraft:
    """A section that has not been persisted yet (no id)."""

    generated_content: str
    user_prompt: Optional[str] = None
    is_edited: bool = False
    tokens_used: Optional[int] = 0
    isp_task_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
