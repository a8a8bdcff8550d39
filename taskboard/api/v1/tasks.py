"""Task API endpoints: CRUD for standalone tasks.

GET    /api/v1/tasks — list all tasks
GET    /api/v1/tasks/{id} — single task (recorded in history)
POST   /api/v1/tasks — create a task
PUT    /api/v1/tasks/{id} — replace a task
DELETE /api/v1/tasks/{id} — delete a task
DELETE /api/v1/tasks — delete every task
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from taskboard.api.v1.deps import check_body_id, get_lock, get_repository, repository_errors
from taskboard.models.schemas import TaskRequest, TaskResponse, to_response

router = APIRouter(prefix="/api/v1", tags=["tasks"])


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks() -> list[TaskResponse]:
    """List all tasks."""
    repo = get_repository()
    async with get_lock():
        tasks = repo.list_tasks()
    return [to_response(t) for t in tasks]


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int) -> TaskResponse:
    """Get a single task by ID."""
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            task = repo.get_task(task_id)
    return to_response(task)


@router.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(request: TaskRequest) -> TaskResponse:
    """Create a new task. Any id in the body is ignored."""
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            task = request.to_task()
            repo.add_task(task)
    return to_response(task)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(task_id: int, request: TaskRequest) -> TaskResponse:
    """Replace an existing task."""
    check_body_id(task_id, request.id)
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            task = request.to_task(task_id)
            repo.update_task(task)
    return to_response(task)


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: int) -> Response:
    """Delete a task."""
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.remove_task(task_id)
    return Response(status_code=204)


@router.delete("/tasks", status_code=204)
async def delete_all_tasks() -> Response:
    """Delete every task."""
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.remove_all_tasks()
    return Response(status_code=204)
