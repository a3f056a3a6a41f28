"""Note endpoints: CRUD, resolved content, legacy migration and section edits.

Routes
------
POST   /notes                        Create a note (sections, or raw legacy content)
GET    /notes                        Page of notes with shape and preview
                                     (?search, note_type, sort_by, sort_order, page, limit)
GET    /notes/export                 Export notes (?format=json|txt)
PUT    /notes/sections/{section_id}  Commit an edit to one section
GET    /notes/{note_id}              Fetch a note with its sections
GET    /notes/{note_id}/content      Resolved display segments and affordances
POST   /notes/{note_id}/migrate      Copy a legacy note into the sectioned format
DELETE /notes/{note_id}              Delete a note (sections cascade)
"""

from __future__ import annotations

import math
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field

from backend.content import (
    ContentError,
    EmptyContent,
    Err,
    NotMigratable,
    StorageFailure,
    build_views,
    classify,
    commit_edit,
    content_preview,
    find_previous_migrations,
    load_tasks,
    migrate,
    resolve_content,
)
from backend.content.export import EXPORT_FORMATS, export_notes
from backend.db.models import Note, SectionDraft
from backend.db.notes import (
    count_notes,
    create_note,
    delete_note,
    get_note,
    get_section,
    list_notes,
)
from backend.db.store import SqliteNoteStore

router = APIRouter()

DUPLICATE_WARNING = "Migrating this note again will create another copy."


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class SectionCreate(BaseModel):
    generated_content: str = ""
    user_prompt: Optional[str] = None
    is_edited: bool = False
    tokens_used: Optional[int] = Field(default=0, ge=0)
    isp_task_id: Optional[str] = None


class NoteCreate(BaseModel):
    title: str
    sections: list[SectionCreate] = []
    content: Optional[Any] = None
    note_type: str = "general"


class SectionResponse(BaseModel):
    id: str
    user_prompt: Optional[str]
    generated_content: str
    is_edited: bool
    tokens_used: Optional[int]
    isp_task_id: Optional[str]


class NoteResponse(BaseModel):
    id: str
    title: str
    content: Optional[Any]
    note_type: str
    created_at: int
    updated_at: int
    sections: list[SectionResponse]


class NoteSummary(BaseModel):
    id: str
    title: str
    shape: str
    preview: str
    section_count: int
    created_at: int
    updated_at: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class NotePage(BaseModel):
    notes: list[NoteSummary]
    pagination: Pagination


class TaskRef(BaseModel):
    id: str
    description: str
    structured_data: Optional[dict[str, Any]] = None


class SegmentResponse(BaseModel):
    id: str
    user_prompt: Optional[str]
    display_text: str
    is_edited: bool
    source_task_id: Optional[str]
    recoverable: bool
    tokens_used: Optional[int]
    can_copy: bool
    can_edit: bool
    can_migrate: bool
    task: Optional[TaskRef] = None


class ResolvedResponse(BaseModel):
    note_id: str
    shape: str
    notice: Optional[str]
    legacy_section_count: Optional[int]
    raw_content: Optional[Any]
    segments: list[SegmentResponse]


class MigrateRequest(BaseModel):
    force: bool = False


class MigrateResponse(BaseModel):
    id: str
    source_id: str
    warning: str


class SectionEdit(BaseModel):
    generated_content: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _note_response(note: Note) -> dict[str, Any]:
    return {
        "id": note.id,
        "title": note.title,
        "content": note.content,
        "note_type": note.note_type,
        "created_at": note.created_at,
        "updated_at": note.updated_at,
        "sections": [
            {
                "id": s.id,
                "user_prompt": s.user_prompt,
                "generated_content": s.generated_content,
                "is_edited": s.is_edited,
                "tokens_used": s.tokens_used,
                "isp_task_id": s.isp_task_id,
            }
            for s in note.sections
        ],
    }


def _require_note(request: Request, note_id: str) -> Note:
    note = get_note(request.app.state.db, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"Note not found: {note_id!r}")
    return note


def _raise_for(error: ContentError) -> None:
    if isinstance(error, (NotMigratable, EmptyContent)):
        raise HTTPException(status_code=422, detail=str(error))
    if isinstance(error, StorageFailure) and error.status_code == 404:
        raise HTTPException(status_code=404, detail=str(error))
    raise HTTPException(status_code=502, detail=str(error))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=NoteResponse, status_code=201)
def create(body: NoteCreate, request: Request) -> dict[str, Any]:
    """Create a note.  ``content`` is only meant for importing legacy records."""
    conn = request.app.state.db
    note = create_note(
        conn,
        title=body.title,
        sections=[SectionDraft(**s.model_dump()) for s in body.sections],
        content=body.content,
        note_type=body.note_type,
    )
    return _note_response(note)


@router.get("", response_model=NotePage)
def list_all(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    note_type: Optional[str] = None,
    sort_by: str = "updated_at",
    sort_order: str = "desc",
) -> dict[str, Any]:
    """Return one page of notes, most recently updated first by default.

    ``search`` matches titles, legacy content and section text.  An unknown
    ``sort_by`` falls back to ``updated_at``.
    """
    conn = request.app.state.db
    total = count_notes(conn, search=search, note_type=note_type)
    notes = list_notes(
        conn,
        limit=limit,
        offset=(page - 1) * limit,
        search=search,
        note_type=note_type,
        sort_by=sort_by,
        descending=sort_order.lower() != "asc",
    )
    total_pages = math.ceil(total / limit)
    return {
        "notes": [
            {
                "id": n.id,
                "title": n.title,
                "shape": classify(n).value,
                "preview": content_preview(n),
                "section_count": len(n.sections),
                "created_at": n.created_at,
                "updated_at": n.updated_at,
            }
            for n in notes
        ],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


@router.get("/export")
def export(request: Request, format: str = "json") -> Response:
    """Download every note as a JSON or plain-text document."""
    if format.lower() not in EXPORT_FORMATS:
        raise HTTPException(status_code=422, detail=f"Unsupported export format {format!r}")
    document = export_notes(list_notes(request.app.state.db), format)
    return Response(
        content=document.body,
        media_type=document.content_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


@router.put("/sections/{section_id}", response_model=SectionResponse)
async def edit_section(section_id: str, body: SectionEdit, request: Request) -> dict[str, Any]:
    """Replace a section's text with a human edit and flag it as edited."""
    conn = request.app.state.db
    result = await commit_edit(section_id, body.generated_content, SqliteNoteStore(conn))
    if isinstance(result, Err):
        _raise_for(result.error)
    section = get_section(conn, section_id)
    return {
        "id": section.id,
        "user_prompt": section.user_prompt,
        "generated_content": section.generated_content,
        "is_edited": section.is_edited,
        "tokens_used": section.tokens_used,
        "isp_task_id": section.isp_task_id,
    }


@router.get("/{note_id}", response_model=NoteResponse)
def get_one(note_id: str, request: Request) -> dict[str, Any]:
    """Fetch a single note with its sections."""
    return _note_response(_require_note(request, note_id))


@router.get("/{note_id}/content", response_model=ResolvedResponse)
async def content(note_id: str, request: Request) -> dict[str, Any]:
    """Classify the note and return its display segments."""
    note = _require_note(request, note_id)
    resolved = resolve_content(note)
    views = build_views(resolved, await load_tasks(SqliteNoteStore(request.app.state.db)))
    return {
        "note_id": note.id,
        "shape": resolved.shape.value,
        "notice": resolved.notice,
        "legacy_section_count": resolved.legacy_section_count,
        "raw_content": resolved.raw_content,
        "segments": [
            {
                "id": v.segment.id,
                "user_prompt": v.segment.user_prompt,
                "display_text": v.segment.display_text,
                "is_edited": v.segment.is_edited,
                "source_task_id": v.segment.source_task_id,
                "recoverable": v.segment.recoverable,
                "tokens_used": v.segment.tokens_used,
                "can_copy": v.can_copy,
                "can_edit": v.can_edit,
                "can_migrate": v.can_migrate,
                "task": (
                    {
                        "id": v.task.id,
                        "description": v.task.description,
                        "structured_data": v.task.structured_data,
                    }
                    if v.task
                    else None
                ),
            }
            for v in views
        ],
    }


@router.post("/{note_id}/migrate", response_model=MigrateResponse, status_code=201)
async def migrate_note(
    note_id: str,
    request: Request,
    body: Optional[MigrateRequest] = None,
) -> dict[str, Any]:
    """Create a sectioned copy of a legacy note.

    Refuses with 409 when the note was migrated before, unless ``force`` is
    set; the source note is never modified.
    """
    conn = request.app.state.db
    note = _require_note(request, note_id)
    force = body.force if body else False

    previous = find_previous_migrations(note, list_notes(conn))
    if previous and not force:
        ids = ", ".join(p.id for p in previous)
        raise HTTPException(
            status_code=409,
            detail=f"Note already migrated as {ids}. {DUPLICATE_WARNING} Pass force=true to continue.",
        )

    result = await migrate(note, SqliteNoteStore(conn))
    if isinstance(result, Err):
        _raise_for(result.error)
    return {"id": result.value, "source_id": note.id, "warning": DUPLICATE_WARNING}


@router.delete("/{note_id}")
def remove(note_id: str, request: Request) -> Response:
    """Delete a note and its sections (via CASCADE)."""
    delete_note(request.app.state.db, note_id)
    return Response(status_code=204)
