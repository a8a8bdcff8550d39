"""Health check endpoint: repository status and storage mode."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from taskboard.api.v1 import deps
from taskboard.storage.csv_store import FileBackedTaskRepository

router = APIRouter()

VERSION = "0.1.0"


class HealthStatus(BaseModel):
    status: str  # "healthy" | "unhealthy"
    version: str
    storage: str  # "memory" | "csv" | "none"
    counts: dict[str, int]
    timestamp: datetime


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Report whether the repository is wired up and what it holds."""
    repo = deps.current_repository()
    if repo is None:
        return HealthStatus(
            status="unhealthy",
            version=VERSION,
            storage="none",
            counts={},
            timestamp=datetime.now(timezone.utc),
        )

    async with deps.get_lock():
        counts = repo.counts()
    return HealthStatus(
        status="healthy",
        version=VERSION,
        storage="csv" if isinstance(repo, FileBackedTaskRepository) else "memory",
        counts=counts,
        timestamp=datetime.now(timezone.utc),
    )
