"""Utilities for rendering notes in the CLI."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from backend.content import ResolvedContent, SegmentView, classify, content_preview
from backend.db.models import Note

RULE = "-" * 72


def _when(epoch: int) -> str:
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M")


def render_note_line(note: Note) -> str:
    """One list entry: short id, shape, title, then an indented preview."""
    return (
        f"  {note.id[:8]}  [{classify(note).value}]  {note.title!r}  ({_when(note.updated_at)})\n"
        f"      {content_preview(note)}"
    )


def render_note(note: Note, resolved: ResolvedContent, views: Iterable[SegmentView]) -> str:
    """Render a resolved note as plain text.

    Args:
        note: The stored note (for the header).
        resolved: Output of :func:`backend.content.resolve_content`.
        views: Segment views built from *resolved*.

    Returns:
        String representation of the note, segments in order.
    """
    lines: List[str] = [
        f"{note.title}",
        f"id: {note.id}   type: {note.note_type}   updated: {_when(note.updated_at)}",
    ]
    if resolved.notice:
        lines.append("")
        lines.append(f"! {resolved.notice}")

    for index, view in enumerate(views, start=1):
        segment = view.segment
        lines.append(RULE)

        header = f"[{index}] {segment.id}"
        if view.edited_badge:
            header += "  (Edited)"
        lines.append(header)

        if view.task:
            lines.append(f"Task: {view.task.description}")
        elif segment.source_task_id:
            lines.append(f"Task: {segment.source_task_id} (not found)")
        if segment.user_prompt:
            lines.append(f"Prompt: {segment.user_prompt}")

        lines.append("")
        lines.append(view.text)

        if segment.tokens_used:
            lines.append("")
            lines.append(f"Tokens: {segment.tokens_used}")

        actions = [
            name
            for name, allowed in (
                ("copy", view.can_copy),
                ("edit", view.can_edit),
                ("migrate", view.can_migrate),
            )
            if allowed
        ]
        lines.append(f"Actions: {', '.join(actions)}")

    if resolved.segments:
        lines.append(RULE)
    return "\n".join(lines)
