"""Database layer package.

Public re-exports so callers can write::

    from backend.db import get_connection, init_db
    from backend.db import notes, isp_tasks
"""

from backend.db.connection import get_connection
from backend.db.migrations import init_db
from backend.db import isp_tasks, notes

__all__ = ["get_connection", "init_db", "notes", "isp_tasks"]
