"""Note content resolution and legacy reconciliation.

Read path::

    from backend.content import resolve_content, build_views

    resolved = resolve_content(note)
    views = build_views(resolved, tasks)

Write paths (``async``, return ``Ok`` / ``Err``)::

    from backend.content import migrate, commit_edit
"""

from backend.content.classifier import classify
from backend.content.editor import commit_edit
from backend.content.errors import (
    ClassificationAmbiguous,
    ContentError,
    EmptyContent,
    NotMigratable,
    StorageFailure,
)
from backend.content.extractors import extract, resolve_content
from backend.content.migrator import find_previous_migrations, migrate, migrated_title
from backend.content.models import ResolvedContent, Segment, ShapeVariant
from backend.content.preview import content_preview
from backend.content.render import (
    SegmentView,
    build_views,
    copy_segment,
    load_tasks,
    resolve_task,
)
from backend.content.results import Err, Ok, Result

__all__ = [
    "classify",
    "extract",
    "resolve_content",
    "build_views",
    "copy_segment",
    "resolve_task",
    "load_tasks",
    "content_preview",
    "migrate",
    "migrated_title",
    "find_previous_migrations",
    "commit_edit",
    "ShapeVariant",
    "Segment",
    "SegmentView",
    "ResolvedContent",
    "Ok",
    "Err",
    "Result",
    "ContentError",
    "ClassificationAmbiguous",
    "NotMigratable",
    "StorageFailure",
    "EmptyContent",
]
