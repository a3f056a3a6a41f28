"""Note export to JSON or plain text."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from backend.content.classifier import classify
from backend.content.models import ShapeVariant
from backend.db.models import Note

EXPORT_FORMATS = ("json", "txt")


@dataclass
class ExportDocument:
    body: str
    content_type: str
    filename: str


def _iso(epoch: int) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()


def _note_text(note: Note) -> str:
    lines = [
        f"Title: {note.title}",
        f"Type: {note.note_type}",
        f"Created: {_iso(note.created_at)}",
        f"Updated: {_iso(note.updated_at)}",
        "",
    ]
    if classify(note) is ShapeVariant.SECTIONED:
        lines.append("Content:")
        for index, section in enumerate(note.sections, start=1):
            lines.append(f"Section {index}:")
            lines.append(section.generated_content)
            lines.append("")
    elif note.content is not None:
        # Legacy content is exported raw so nothing is lost in the dump.
        lines.append("Content:")
        lines.append(json.dumps(note.content, indent=2, ensure_ascii=False))
        lines.append("")
    lines.append("---")
    lines.append("")
    return "\n".join(lines) + "\n"


def export_notes(
    notes: Iterable[Note],
    fmt: str = "json",
    now: Optional[datetime] = None,
) -> ExportDocument:
    """Render *notes* as an export document.

    Raises:
        ValueError: If *fmt* is not one of :data:`EXPORT_FORMATS`.
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format {fmt!r}")

    notes = list(notes)
    now = now or datetime.now(timezone.utc)
    stamp = now.date().isoformat()

    if fmt == "txt":
        return ExportDocument(
            body="".join(_note_text(n) for n in notes),
            content_type="text/plain",
            filename=f"notes-export-{stamp}.txt",
        )

    body = json.dumps(
        {
            "exportDate": now.isoformat(),
            "totalNotes": len(notes),
            "notes": [n.to_dict() for n in notes],
        },
        indent=2,
        ensure_ascii=False,
    )
    return ExportDocument(
        body=body,
        content_type="application/json",
        filename=f"notes-export-{stamp}.json",
    )
