"""Single-section edit/commit path."""

from __future__ import annotations

import logging
from typing import Iterable

from backend.content.errors import ContentError, EmptyContent, StorageFailure
from backend.content.models import Segment
from backend.content.results import Err, Ok, Result
from backend.content.storage import NoteStore

logger = logging.getLogger(__name__)


async def commit_edit(
    section_id: str,
    new_text: str,
    store: NoteStore,
    segments: Iterable[Segment] = (),
) -> Result[None, ContentError]:
    """Persist a human edit of one section.

    The stored text is ``new_text.strip()`` and the section is flagged as
    edited.  On success the matching segment in *segments* (if any) is
    updated in place so the caller can re-render without a reload.  Note
    level fields such as ``updated_at`` are left to the store.

    Returns:
        ``Ok(None)``, ``Err(EmptyContent)`` without any write when the text
        is blank, or ``Err(StorageFailure)`` as raised by *store*.
    """
    text = new_text.strip() if isinstance(new_text, str) else ""
    if not text:
        logger.debug("Rejected blank edit for section %s", section_id)
        return Err(EmptyContent())

    try:
        await store.update_section(section_id, generated_content=text, is_edited=True)
    except StorageFailure as exc:
        logger.error("Saving section %s failed: %s", section_id, exc)
        return Err(exc)

    for segment in segments:
        if segment.id == section_id:
            segment.display_text = text
            segment.is_edited = True

    return Ok(None)
