"""SwiftNotes CLI: entry-point for note history operations.

Usage:
    python cli/main.py --help

Command groups:
    db     -> local database setup
    notes  -> browse, migrate, edit, import and export notes
    tasks  -> ISP tasks referenced by note sections
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from backend.config import configure_logging, settings
from backend.db import get_connection, init_db
from cli.commands.notes import notes_app
from cli.commands.tasks import tasks_app

app = typer.Typer(
    name="swiftnotes",
    help="SwiftNotes note history CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL for this run."),
) -> None:
    configure_logging(log_level.upper() if log_level else None)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


app.add_typer(notes_app, name="notes")
app.add_typer(tasks_app, name="tasks")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
