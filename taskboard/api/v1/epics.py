"""Epic API endpoints.

GET    /api/v1/epics — list all epics
GET    /api/v1/epics/{id} — single epic (recorded in history)
GET    /api/v1/epics/{id}/subtasks — the epic's members, in order
POST   /api/v1/epics — create an epic (optionally adopting unlinked subtasks)
PUT    /api/v1/epics/{id} — replace title/description/membership
DELETE /api/v1/epics/{id} — delete an epic and its subtasks
DELETE /api/v1/epics — delete every epic and every subtask

Status, start_time and duration in responses are derived from members.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from taskboard.api.v1.deps import check_body_id, get_lock, get_repository, repository_errors
from taskboard.models.schemas import EpicRequest, TaskResponse, to_response

router = APIRouter(prefix="/api/v1", tags=["epics"])


@router.get("/epics", response_model=list[TaskResponse])
async def list_epics() -> list[TaskResponse]:
    repo = get_repository()
    async with get_lock():
        epics = repo.list_epics()
    return [to_response(e) for e in epics]


@router.get("/epics/{epic_id}", response_model=TaskResponse)
async def get_epic(epic_id: int) -> TaskResponse:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            epic = repo.get_epic(epic_id)
    return to_response(epic)


@router.get("/epics/{epic_id}/subtasks", response_model=list[TaskResponse])
async def get_epic_subtasks(epic_id: int) -> list[TaskResponse]:
    """List an epic's subtasks in membership order."""
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            subtasks = repo.get_epic_subtasks(epic_id)
    return [to_response(s) for s in subtasks]


@router.post("/epics", response_model=TaskResponse, status_code=201)
async def create_epic(request: EpicRequest) -> TaskResponse:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            epic_id = repo.add_epic(request.to_task())
            stored = repo.lookup(epic_id)
    return to_response(stored)


@router.put("/epics/{epic_id}", response_model=TaskResponse)
async def update_epic(epic_id: int, request: EpicRequest) -> TaskResponse:
    """Replace an epic. Members left out of subtask_ids are unlinked."""
    check_body_id(epic_id, request.id)
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.update_epic(request.to_task(epic_id))
            stored = repo.lookup(epic_id)
    return to_response(stored)


@router.delete("/epics/{epic_id}", status_code=204)
async def delete_epic(epic_id: int) -> Response:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.remove_epic(epic_id)
    return Response(status_code=204)


@router.delete("/epics", status_code=204)
async def delete_all_epics() -> Response:
    repo = get_repository()
    async with get_lock():
        with repository_errors():
            repo.remove_all_epics()
    return Response(status_code=204)
