"""External editor integration for the SwiftNotes CLI.

Opens section text in the user's preferred editor ($EDITOR) so that
``notes edit`` works without passing the new text on the command line.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import Optional

import typer

from backend.config import settings


def get_editor_command() -> str:
    """Determine the editor command to use."""
    if os.environ.get("EDITOR"):
        return os.environ["EDITOR"]

    if os.name == "nt":
        if shutil.which("code"):
            return "code -w"
        return "notepad"
    if shutil.which("vim"):
        return "vim"
    if shutil.which("nano"):
        return "nano"
    return "vi"


def edit_text(initial: str, name: str, extension: str = ".md") -> Optional[str]:
    """Open *initial* in an external editor and return the saved text.

    The draft lives under ``<workspace>/drafts`` so an aborted session can be
    recovered by hand.

    Returns:
        The edited text, or ``None`` if the editor failed or nothing changed.
    """
    drafts_dir = settings.workspace_dir / "drafts"
    drafts_dir.mkdir(parents=True, exist_ok=True)

    safe_name = "".join(c for c in name if c.isalnum() or c in ("-", "_")) or "section"
    draft_file = drafts_dir / f"{safe_name}{extension}"
    draft_file.write_text(initial, encoding="utf-8")

    # shell=True so commands with arguments such as "code -w" work.
    ret = subprocess.call(f'{get_editor_command()} "{draft_file}"', shell=True)
    if ret != 0:
        typer.echo(f"Editor exited with code {ret}", err=True)
        return None

    new_text = draft_file.read_text(encoding="utf-8")
    if new_text == initial:
        return None
    draft_file.unlink()
    return new_text
