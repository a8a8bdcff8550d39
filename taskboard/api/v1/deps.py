"""Shared router state: the repository, its lock, and error translation.

Design:
- One repository instance, set by main.py lifespan (set_repository)
- One asyncio.Lock around every repository call; reads by id update
  history, so they are serialised too
- Engine exceptions become HTTP errors in one place (repository_errors)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from taskboard.engine.repository import ScheduleConflictError, TaskNotFoundError, TaskRepository
from taskboard.storage.csv_store import TaskStorageError

logger = logging.getLogger(__name__)

# Module-level references, set by main.py at startup
_repository: TaskRepository | None = None
_lock = asyncio.Lock()  # Serialises all repository access


def set_repository(repository: TaskRepository | None) -> None:
    """Wire up the repository (called from main.py lifespan)."""
    global _repository
    _repository = repository


def get_repository() -> TaskRepository:
    if _repository is None:
        raise HTTPException(status_code=503, detail="Task repository not initialized.")
    return _repository


def current_repository() -> TaskRepository | None:
    """The wired repository, or None before startup / after shutdown."""
    return _repository


def get_lock() -> asyncio.Lock:
    return _lock


def check_body_id(path_id: int, body_id: int | None) -> None:
    """A PUT body may repeat the path id, but never contradict it."""
    if body_id is not None and body_id != path_id:
        raise HTTPException(
            status_code=400,
            detail=f"Body id {body_id} does not match path id {path_id}.",
        )


@contextmanager
def repository_errors() -> Iterator[None]:
    """Map engine exceptions raised inside the block to HTTP errors."""
    try:
        yield
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ScheduleConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TaskStorageError as e:
        logger.error("Task storage failure: %s", e)
        raise HTTPException(status_code=500, detail="Task storage failed.")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
