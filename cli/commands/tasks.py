"""ISP task commands."""

from __future__ import annotations

import typer

from backend.db import get_connection, init_db
from backend.db.isp_tasks import create_task, list_tasks

tasks_app = typer.Typer(help="List and add ISP tasks.", no_args_is_help=True)


@tasks_app.command("list")
def tasks_list() -> None:
    """List ISP tasks in display order."""
    conn = get_connection()
    init_db(conn)
    try:
        tasks = list_tasks(conn)
    finally:
        conn.close()

    if not tasks:
        typer.echo("No ISP tasks found.")
        return
    for task in tasks:
        typer.echo(f"  {task.id}  {task.description}")


@tasks_app.command("add")
def tasks_add(
    description: str = typer.Argument(..., help="Task description."),
) -> None:
    """Add an ISP task to the end of the list."""
    if not description.strip():
        typer.echo("❌ Task description cannot be empty.")
        raise typer.Exit(code=1)

    conn = get_connection()
    init_db(conn)
    try:
        task = create_task(conn, description=description.strip())
    finally:
        conn.close()
    typer.echo(f"✅ Added task: {task.id}")
