"""Subtask API endpoints.

GET    /api/v1/subtasks — list all subtasks
GET    /api/v1/subtasks/{id} — single subtask (recorded in history)
POST   /api/v1/subtasks — create a subtask
PUT    /api/v1/subtasks/{id} — replace a subtask
DELETE /api/v1/subtasks/{id} — delete a subtask
DELETE /api/v1/subtasks — delete every subtask

A new subtask names its epic via epic_id but only joins the epic's
membership through PUT /api/v1/epics/{id}.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from taskboard.api.v1.deps import check_body_id, get_lock, get_repository, repository_errors
from taskboard.models.schemas import SubTaskRequest, TaskResponse, to_response

router = APIRouter(prefix="/api/v1", tags=["subtasks"])


@router.get("/subtasks", response_model=list[TaskResponse])
async def list_subtasks() -> list[TaskResponse]:
    repo = get_repository()
    async with get_lock():
        subtasks = repo.list_subtasks()
    return [to_response(s) for s in subtasks]


@router.get("/subtasks/{sub_id}", response_model=TaskResponse)
async def get_subtask(sub_id: int) -> TaskResponse:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            subtask = repo.get_subtask(sub_id)
    return to_response(subtask)


@router.post("/subtasks", response_model=TaskResponse, status_code=201)
async def create_subtask(request: SubTaskRequest) -> TaskResponse:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            subtask = request.to_task()
            repo.add_subtask(subtask)
    return to_response(subtask)


@router.put("/subtasks/{sub_id}", response_model=TaskResponse)
async def update_subtask(sub_id: int, request: SubTaskRequest) -> TaskResponse:
    check_body_id(sub_id, request.id)
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            subtask = request.to_task(sub_id)
            repo.update_subtask(subtask)
    return to_response(subtask)


@router.delete("/subtasks/{sub_id}", status_code=204)
async def delete_subtask(sub_id: int) -> Response:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.remove_subtask(sub_id)
    return Response(status_code=204)


@router.delete("/subtasks", status_code=204)
async def delete_all_subtasks() -> Response:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.remove_all_subtasks()
    return Response(status_code=204)
