"""Error taxonomy for note content resolution, migration and editing.

Storage adapters *raise* :class:`StorageFailure`.  The migrator and the
edit/commit path catch it and hand every error back as an
:class:`~backend.content.results.Err` value instead of raising.
"""

from __future__ import annotations

from typing import Optional


class ContentError(Exception):
    """Base class for every error this package reports."""

    #: Stable machine-readable code used by the HTTP layer.
    code = "content_error"


class ClassificationAmbiguous(ContentError):
    """A note matched no shape or more than one shape.

    Never raised: the classifier ends with a catch-all rule, so every note
    matches exactly one shape.  Kept so callers can name the case.
    """

    code = "classification_ambiguous"


class NotMigratable(ContentError):
    """The note has no single unambiguous text blob to migrate."""

    code = "not_migratable"

    def __init__(self, note_id: str, shape: str) -> None:
        super().__init__(f"Note {note_id!r} has shape {shape!r} and cannot be migrated")
        self.note_id = note_id
        self.shape = shape


class EmptyContent(ContentError):
    """An edit was submitted with no text after trimming."""

    code = "empty_content"

    def __init__(self) -> None:
        super().__init__("Content cannot be empty")


class StorageFailure(ContentError):
    """The storage collaborator did not complete a read or write."""

    code = "storage_failure"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
