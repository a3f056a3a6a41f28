"""Per-segment affordances for the presentation layer.

Nothing here draws anything.  It decides, for each segment, which actions
a UI may offer and resolves the ISP task a section cites.  Task references
are looked up by id in a caller-supplied task list; a missing task only
hides the cross-reference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from backend.content.errors import StorageFailure
from backend.content.models import ResolvedContent, Segment, ShapeVariant
from backend.content.storage import TaskSource
from backend.db.models import ISPTask

logger = logging.getLogger(__name__)

COPY_OK = "Copied!"
COPY_FAILED = "Failed to copy"
NO_CONTENT = "No content generated"


@dataclass
class SegmentView:
    segment: Segment
    task: Optional[ISPTask] = None
    can_edit: bool = False
    can_migrate: bool = False
    can_copy: bool = True

    @property
    def has_content(self) -> bool:
        return bool(self.segment.display_text)

    @property
    def text(self) -> str:
        return self.segment.display_text if self.has_content else NO_CONTENT

    @property
    def edited_badge(self) -> bool:
        return self.segment.is_edited


def resolve_task(task_id: Optional[str], tasks: Iterable[ISPTask]) -> Optional[ISPTask]:
    if not task_id:
        return None
    for task in tasks:
        if task.id == task_id:
            return task
    return None


def build_views(resolved: ResolvedContent, tasks: Iterable[ISPTask] = ()) -> list[SegmentView]:
    """Wrap each resolved segment with its affordances.

    Editing needs a stored section to write to, so only sectioned notes are
    editable.  Recoverable legacy text offers migration instead; once
    migrated it becomes an editable section.  Non-recoverable segments get
    neither.
    """
    task_list = list(tasks)
    sectioned = resolved.shape is ShapeVariant.SECTIONED
    views = []
    for segment in resolved.segments:
        views.append(
            SegmentView(
                segment=segment,
                task=resolve_task(segment.source_task_id, task_list),
                can_edit=segment.recoverable and sectioned,
                can_migrate=segment.recoverable and resolved.shape.migratable,
            )
        )
    return views


def copy_segment(segment: Segment, write: Callable[[str], None]) -> str:
    """Hand the segment text to a clipboard writer and return UI feedback.

    The segment itself is never modified.
    """
    try:
        write(segment.display_text)
    except Exception as exc:  # noqa: BLE001 - clipboard backends raise anything
        logger.warning("Copy of segment %s failed: %s", segment.id, exc)
        return COPY_FAILED
    return COPY_OK


async def load_tasks(source: TaskSource) -> list[ISPTask]:
    """Fetch the tasks sections may cite.

    A failed fetch is logged and treated as "no tasks": it only hides the
    task references, the note itself still renders.
    """
    try:
        return await source.get_tasks()
    except StorageFailure as exc:
        logger.warning("Could not load ISP tasks: %s", exc)
        return []
