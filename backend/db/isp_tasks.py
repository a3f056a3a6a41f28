"""CRUD helpers for the ``isp_tasks`` table.

ISP tasks are owned by a separate workflow; notes only ever hold a task id
and look the description up for display.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from time import time
from typing import Any, Optional

from backend.db.models import ISPTask


def _row_to_task(row: sqlite3.Row) -> ISPTask:
    data = row["structured_data"]
    return ISPTask(
        id=row["id"],
        description=row["description"],
        structured_data=json.loads(data) if data else None,
        order_index=row["order_index"],
    )


def create_task(
    conn: sqlite3.Connection,
    description: str,
    structured_data: Optional[dict[str, Any]] = None,
    order_index: Optional[int] = None,
    task_id: Optional[str] = None,
) -> ISPTask:
    """Insert a task.  Appends to the end of the list unless *order_index* is given."""
    tid = task_id or str(uuid.uuid4())
    now = int(time())
    if order_index is None:
        row = conn.execute("SELECT COALESCE(MAX(order_index), -1) FROM isp_tasks").fetchone()
        order_index = row[0] + 1

    with conn:
        conn.execute(
            """
            INSERT INTO isp_tasks (id, description, structured_data, order_index, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                tid,
                description,
                json.dumps(structured_data) if structured_data else None,
                order_index,
                now,
                now,
            ),
        )

    return get_task(conn, tid)  # type: ignore[return-value]


def get_task(conn: sqlite3.Connection, task_id: str) -> Optional[ISPTask]:
    """Fetch a single task.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM isp_tasks WHERE id = ?", (task_id,)).fetchone()
    return _row_to_task(row) if row else None


def list_tasks(conn: sqlite3.Connection) -> list[ISPTask]:
    """Return all tasks in display order."""
    rows = conn.execute(
        "SELECT * FROM isp_tasks ORDER BY order_index, created_at"
    ).fetchall()
    return [_row_to_task(r) for r in rows]


def delete_task(conn: sqlite3.Connection, task_id: str) -> None:
    """Delete a task.  Sections citing it keep the dangling id."""
    with conn:
        conn.execute("DELETE FROM isp_tasks WHERE id = ?", (task_id,))
