"""Read-only views across all kinds.

GET /api/v1/history — entities read by id, least recent first
GET /api/v1/prioritized — tasks and subtasks by start time, unscheduled last
"""

from __future__ import annotations

from fastapi import APIRouter

from taskboard.api.v1.deps import get_lock, get_repository
from taskboard.models.schemas import TaskResponse, to_response

router = APIRouter(prefix="/api/v1", tags=["history"])


@router.get("/history", response_model=list[TaskResponse])
async def get_history() -> list[TaskResponse]:
    """Viewing history, oldest first. Each entity appears at most once."""
    repo = get_repository()
    async with get_lock():
        tasks = repo.get_history()
    return [to_response(t) for t in tasks]


@router.get("/prioritized", response_model=list[TaskResponse])
async def get_prioritized() -> list[TaskResponse]:
    """Tasks and subtasks ordered by start time. Epics are not listed."""
    repo = get_repository()
    async with get_lock():
        tasks = repo.get_prioritized_tasks()
    return [to_response(t) for t in tasks]
