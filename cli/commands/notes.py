"""Note commands: browse history, migrate legacy notes, edit sections."""

from __future__ import annotations

import asyncio
import json
import math
from pathlib import Path
from typing import Optional

import typer

from backend.client import HttpNoteStore
from backend.content import (
    Err,
    StorageFailure,
    build_views,
    commit_edit,
    find_previous_migrations,
    load_tasks,
    migrate,
    resolve_content,
)
from backend.content.export import EXPORT_FORMATS, export_notes
from backend.db import get_connection, init_db
from backend.db.models import Note, SectionDraft
from backend.db.notes import (
    SORT_FIELDS,
    count_notes,
    create_note,
    get_note,
    get_section,
    list_notes,
)
from backend.db.store import SqliteNoteStore

from cli.editor import edit_text
from cli.rendering import render_note, render_note_line

notes_app = typer.Typer(help="Browse, migrate and edit notes.", no_args_is_help=True)

_REMOTE_HELP = "Use the remote notes API instead of the local database."


def _open_db():
    conn = get_connection()
    init_db(conn)
    return conn


def _find_note(conn, ref: str) -> Note:
    """Look a note up by full id or by a unique id prefix (as shown by ``list``)."""
    note = get_note(conn, ref)
    if note:
        return note
    matches = [n for n in list_notes(conn) if n.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        typer.echo(f"❌ Note not found: {ref}")
    else:
        typer.echo(f"❌ Ambiguous id {ref!r} matches {len(matches)} notes.")
    raise typer.Exit(code=1)


def _fail(error: Exception) -> None:
    typer.echo(f"❌ {error}")
    raise typer.Exit(code=1)


@notes_app.command("list")
def notes_list(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match titles, legacy content and section text."),
    note_type: Optional[str] = typer.Option(None, "--type", help="Only notes of this type."),
    sort_by: str = typer.Option("updated_at", "--sort", help=f"Sort field: {' | '.join(SORT_FIELDS)}."),
    ascending: bool = typer.Option(False, "--asc", help="Oldest / A-Z first."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Notes per page."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number."),
) -> None:
    """List notes, most recently updated first."""
    conn = _open_db()
    try:
        total = count_notes(conn, search=search, note_type=note_type)
        notes = list_notes(
            conn,
            limit=limit,
            offset=(page - 1) * limit,
            search=search,
            note_type=note_type,
            sort_by=sort_by,
            descending=not ascending,
        )
    finally:
        conn.close()

    if not notes:
        typer.echo("No notes found.")
        return
    for note in notes:
        typer.echo(render_note_line(note))
    typer.echo(f"Page {page} of {math.ceil(total / limit)} ({total} notes)")


@notes_app.command("show")
def notes_show(
    note_id: str = typer.Argument(..., help="Note id (or unique prefix)."),
    remote: bool = typer.Option(False, "--remote", help=_REMOTE_HELP),
) -> None:
    """Show a note's content, whatever format it was stored in."""
    if remote:
        store = HttpNoteStore()
        try:
            note = asyncio.run(store.get_note(note_id))
        except StorageFailure as exc:
            _fail(exc)
        tasks = asyncio.run(load_tasks(store))
    else:
        conn = _open_db()
        try:
            note = _find_note(conn, note_id)
            tasks = asyncio.run(load_tasks(SqliteNoteStore(conn)))
        finally:
            conn.close()

    resolved = resolve_content(note)
    typer.echo(render_note(note, resolved, build_views(resolved, tasks)))


@notes_app.command("migrate")
def notes_migrate(
    note_id: str = typer.Argument(..., help="Id of the legacy note to migrate."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the duplicate-migration prompt."),
    remote: bool = typer.Option(False, "--remote", help=_REMOTE_HELP),
) -> None:
    """Copy a legacy note's text into a new sectioned note.

    The original note is left untouched.  Running this twice creates two
    copies, so you are asked to confirm when a copy already exists.
    """
    if remote:
        store = HttpNoteStore()
        try:
            note = asyncio.run(store.get_note(note_id))
        except StorageFailure as exc:
            _fail(exc)
        if not force:
            typer.echo("⚠️ Migrating a note more than once creates duplicate copies.")
        result = asyncio.run(migrate(note, store))
    else:
        conn = _open_db()
        try:
            note = _find_note(conn, note_id)
            previous = find_previous_migrations(note, list_notes(conn))
            if previous and not force:
                ids = ", ".join(p.id[:8] for p in previous)
                typer.confirm(
                    f"⚠️ Note already migrated as {ids}. Create another copy?",
                    abort=True,
                )
            result = asyncio.run(migrate(note, SqliteNoteStore(conn)))
        finally:
            conn.close()

    if isinstance(result, Err):
        _fail(result.error)
    typer.echo(f"✅ Migrated {note.id[:8]} -> {result.value}")


@notes_app.command("edit")
def notes_edit(
    section_id: str = typer.Argument(..., help="Id of the section to edit."),
    text: Optional[str] = typer.Argument(None, help="New text. Opens $EDITOR when omitted."),
    remote: bool = typer.Option(False, "--remote", help=_REMOTE_HELP),
) -> None:
    """Replace a section's generated text and mark it as edited."""
    if remote:
        store = HttpNoteStore()
        if text is None:
            text = edit_text("", section_id)
        conn = None
    else:
        conn = _open_db()
        store = SqliteNoteStore(conn)
        if text is None:
            section = get_section(conn, section_id)
            if section is None:
                conn.close()
                _fail(ValueError(f"Section not found: {section_id!r}"))
            text = edit_text(section.generated_content, section_id)

    try:
        if text is None:
            typer.echo("No changes made.")
            return
        result = asyncio.run(commit_edit(section_id, text, store))
    finally:
        if conn is not None:
            conn.close()

    if isinstance(result, Err):
        _fail(result.error)
    typer.echo(f"✅ Section {section_id} saved.")


@notes_app.command("import")
def notes_import(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of note records."),
) -> None:
    """Import raw note records, keeping legacy content exactly as stored.

    The file holds a JSON list of records (or an export document with a
    ``notes`` list).  Records whose id already exists are skipped.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        _fail(ValueError(f"Invalid JSON in {path}: {exc}"))

    records = payload.get("notes") if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        _fail(ValueError("Expected a list of note records."))

    conn = _open_db()
    imported = skipped = 0
    try:
        for raw in records:
            if not isinstance(raw, dict):
                skipped += 1
                continue
            note = Note.from_dict(raw)
            if note.id and get_note(conn, note.id):
                skipped += 1
                continue
            create_note(
                conn,
                title=note.title or "Untitled",
                sections=[
                    SectionDraft(
                        generated_content=s.generated_content,
                        user_prompt=s.user_prompt,
                        is_edited=s.is_edited,
                        tokens_used=s.tokens_used,
                        isp_task_id=s.isp_task_id,
                    )
                    for s in note.sections
                ],
                content=note.content,
                note_type=note.note_type,
                note_id=note.id or None,
                created_at=note.created_at or None,
            )
            imported += 1
    finally:
        conn.close()

    typer.echo(f"✅ Imported {imported} note(s), skipped {skipped}.")


@notes_app.command("export")
def notes_export(
    fmt: str = typer.Option("json", "--format", help=f"Export format: {' | '.join(EXPORT_FORMATS)}."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout."),
) -> None:
    """Export every note as JSON or plain text."""
    conn = _open_db()
    try:
        document = export_notes(list_notes(conn), fmt)
    except ValueError as exc:
        _fail(exc)
    finally:
        conn.close()

    if output is None:
        typer.echo(document.body)
        return
    output.write_text(document.body, encoding="utf-8")
    typer.echo(f"✅ Exported to {output}")
