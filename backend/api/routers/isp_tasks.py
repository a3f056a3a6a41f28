"""ISP task endpoints.

Routes
------
GET    /isp-tasks            List tasks in display order (wrapped in ``{"tasks": [...]}``)
POST   /isp-tasks            Create a task
GET    /isp-tasks/{task_id}  Fetch a single task
DELETE /isp-tasks/{task_id}  Delete a task
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from backend.db.isp_tasks import create_task, delete_task, get_task, list_tasks
from backend.db.models import ISPTask

router = APIRouter()


class TaskCreate(BaseModel):
    description: str
    structured_data: Optional[dict[str, Any]] = None
    order_index: Optional[int] = None


class TaskResponse(BaseModel):
    id: str
    description: str
    structured_data: Optional[dict[str, Any]]
    order_index: int


class TaskList(BaseModel):
    tasks: list[TaskResponse]


def _task_response(task: ISPTask) -> dict[str, Any]:
    return {
        "id": task.id,
        "description": task.description,
        "structured_data": task.structured_data,
        "order_index": task.order_index,
    }


@router.get("", response_model=TaskList)
def list_all(request: Request) -> dict[str, Any]:
    return {"tasks": [_task_response(t) for t in list_tasks(request.app.state.db)]}


@router.post("", response_model=TaskResponse, status_code=201)
def create(body: TaskCreate, request: Request) -> dict[str, Any]:
    if not body.description.strip():
        raise HTTPException(status_code=422, detail="Task description cannot be empty")
    task = create_task(
        request.app.state.db,
        description=body.description.strip(),
        structured_data=body.structured_data,
        order_index=body.order_index,
    )
    return _task_response(task)


@router.get("/{task_id}", response_model=TaskResponse)
def get_one(task_id: str, request: Request) -> dict[str, Any]:
    task = get_task(request.app.state.db, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id!r}")
    return _task_response(task)


@router.delete("/{task_id}")
def remove(task_id: str, request: Request) -> Response:
    """Delete a task.  Sections that cite it keep the dangling id."""
    delete_task(request.app.state.db, task_id)
    return Response(status_code=204)
