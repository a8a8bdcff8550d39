"""Repository construction from settings."""

from __future__ import annotations

import logging

from taskboard.config import Settings
from taskboard.engine.repository import TaskRepository
from taskboard.storage.csv_store import FileBackedTaskRepository

logger = logging.getLogger(__name__)


def create_repository(settings: Settings) -> TaskRepository:
    """File-backed repository when `tasks_file` is set, in-memory otherwise."""
    if settings.tasks_file:
        logger.info("Storage: CSV file %s", settings.tasks_file)
        return FileBackedTaskRepository.load(
            settings.tasks_file,
            slot_minutes=settings.slot_minutes,
            max_window_days=settings.max_window_days,
        )

    logger.info("Storage: in-memory (set TASKS_FILE to persist)")
    return TaskRepository(
        slot_minutes=settings.slot_minutes,
        max_window_days=settings.max_window_days,
    )
