"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``) and initialises the schema.  On
shutdown it closes the connection cleanly.

Routers
-------
    /notes      Note CRUD, resolved content, migration, section edits, export
    /isp-tasks  ISP task lookup used to label sections
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import configure_logging
from backend.db import get_connection, init_db

from backend.api.routers import isp_tasks as isp_tasks_router
from backend.api.routers import notes as notes_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    configure_logging()
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    logger.info("Notes database ready")
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="SwiftNotes API",
        description=(
            "REST interface for SwiftNotes note history. Resolves stored notes "
            "of every historical shape into display segments, migrates legacy "
            "notes into the sectioned format and records human edits."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(notes_router.router, prefix="/notes", tags=["notes"])
    app.include_router(isp_tasks_router.router, prefix="/isp-tasks", tags=["isp-tasks"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
