"""CSV persistence for the task repository.

FileBackedTaskRepository saves the whole repository to one CSV file after
every successful mutation, and rebuilds a repository from that file.

File layout:
- header: id,type,name,status,description,epic,start_time,duration
- rows: epics, then tasks, then subtasks in epic membership order,
  then every other subtask
- epic column: parent id for subtasks (0 = unlinked), space-separated
  member ids for epics, empty for tasks
- start_time: ISO-8601; duration: seconds, with six fractional digits
  when not whole; both empty if unset

History is runtime-only and never written.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime, timedelta
from pathlib import Path

from taskboard.engine.repository import ScheduleConflictError, TaskNotFoundError, TaskRepository
from taskboard.engine.schedule import DEFAULT_MAX_WINDOW_DAYS, DEFAULT_SLOT_MINUTES
from taskboard.models.task import Epic, SubTask, Task

logger = logging.getLogger(__name__)

CSV_HEADER = ["id", "type", "name", "status", "description", "epic", "start_time", "duration"]


class TaskStorageError(Exception):
    """Raised when the task file cannot be read, parsed or written."""


# === Row codec ===


def _format_duration(duration: timedelta) -> str:
    whole = duration.days * 86400 + duration.seconds
    if duration.microseconds:
        return f"{whole}.{duration.microseconds:06d}"
    return str(whole)


def _parse_duration(text: str) -> timedelta:
    seconds = float(text)
    if not math.isfinite(seconds):
        raise ValueError(f"duration must be finite, got {text!r}")
    try:
        return timedelta(seconds=seconds)
    except OverflowError as e:
        raise ValueError(f"duration out of range: {text!r}") from e


def task_to_row(task: Task) -> list[str]:
    """Flatten an entity into CSV_HEADER order."""
    if isinstance(task, SubTask):
        epic = str(task.epic_id)
    elif isinstance(task, Epic):
        epic = " ".join(str(sub_id) for sub_id in task.subtask_ids)
    else:
        epic = ""
    start = task.start_time.isoformat() if task.start_time is not None else ""
    duration = _format_duration(task.duration) if task.duration is not None else ""
    return [str(task.id), task.type, task.title, task.status, task.description, epic, start, duration]


def row_to_task(row: list[str]) -> Task:
    """Rebuild an entity from a CSV row. Raises ValueError on bad data."""
    if len(row) != len(CSV_HEADER):
        raise ValueError(f"expected {len(CSV_HEADER)} columns, got {len(row)}")
    raw = dict(zip(CSV_HEADER, row))

    fields = {
        "id": int(raw["id"]),
        "title": raw["name"],
        "status": raw["status"],
        "description": raw["description"],
        "start_time": datetime.fromisoformat(raw["start_time"]) if raw["start_time"] else None,
        "duration": _parse_duration(raw["duration"]) if raw["duration"] else None,
    }
    kind = raw["type"]
    if kind == "TASK":
        return Task(**fields)
    if kind == "EPIC":
        return Epic(**fields, subtask_ids=[int(s) for s in raw["epic"].split()])
    if kind == "SUB":
        return SubTask(**fields, epic_id=int(raw["epic"] or 0))
    raise ValueError(f"unknown task type {kind!r}")


# === File-backed repository ===


class FileBackedTaskRepository(TaskRepository):
    """TaskRepository that mirrors every committed change to a CSV file.

    Failed operations raise before anything is saved. A failed save raises
    TaskStorageError; the in-memory state keeps the change.
    """

    def __init__(
        self,
        path: str | Path,
        slot_minutes: int = DEFAULT_SLOT_MINUTES,
        max_window_days: int = DEFAULT_MAX_WINDOW_DAYS,
    ) -> None:
        super().__init__(slot_minutes=slot_minutes, max_window_days=max_window_days)
        self.path = Path(path)

    @classmethod
    def load(
        cls,
        path: str | Path,
        slot_minutes: int = DEFAULT_SLOT_MINUTES,
        max_window_days: int = DEFAULT_MAX_WINDOW_DAYS,
    ) -> FileBackedTaskRepository:
        """Build a repository from `path`. A missing or empty file gives an empty one."""
        repo = cls(path, slot_minutes=slot_minutes, max_window_days=max_window_days)
        if not repo.path.exists():
            logger.info("Task file %s not found; starting empty.", repo.path)
            return repo

        try:
            text = repo.path.read_text(encoding="utf-8")
        except OSError as e:
            raise TaskStorageError(f"Cannot read task file {repo.path}: {e}") from e
        if not text.strip():
            return repo

        rows = list(csv.reader(io.StringIO(text, newline="")))
        if rows[0] != CSV_HEADER:
            raise TaskStorageError(f"{repo.path}: unexpected header {rows[0]!r}")

        members: dict[int, tuple[int, list[int]]] = {}
        for line_no, row in enumerate(rows[1:], start=2):
            if not row:
                continue
            try:
                entity = row_to_task(row)
                repo.restore(entity)
            except (ValueError, TaskNotFoundError, ScheduleConflictError) as e:
                raise TaskStorageError(f"{repo.path}, line {line_no}: {e}") from e
            if isinstance(entity, Epic):
                members[entity.id] = (line_no, entity.subtask_ids)

        # Membership is restored exactly as saved, once every subtask is back.
        for epic in repo.list_epics():
            line_no, saved = members[epic.id]
            epic.subtask_ids = saved
            try:
                TaskRepository.update_epic(repo, epic)
            except (ValueError, TaskNotFoundError) as e:
                raise TaskStorageError(f"{repo.path}, line {line_no}: {e}") from e

        logger.info(
            "Loaded %s from %s (next id %d)", repo.counts(), repo.path, repo.next_id,
        )
        return repo

    def save(self) -> None:
        """Write the full repository to the task file."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for task in self._rows_in_order():
            writer.writerow(task_to_row(task))

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(buffer.getvalue(), encoding="utf-8")
        except OSError as e:
            raise TaskStorageError(f"Cannot save task file {self.path}: {e}") from e
        logger.info("Saved task file %s", self.path)

    def _rows_in_order(self) -> list[Task]:
        rows: list[Task] = [*self._epics.values(), *self._tasks.values()]
        written: set[int] = set()
        for epic in self._epics.values():
            for sub_id in epic.subtask_ids:
                rows.append(self._subtasks[sub_id])
                written.add(sub_id)
        rows += [s for s in self._subtasks.values() if s.id not in written]
        return rows

    # === Mutations: commit in memory, then save ===

    def add_task(self, task: Task | None) -> int:
        task_id = super().add_task(task)
        self.save()
        return task_id

    def add_epic(self, epic: Epic | None) -> int:
        epic_id = super().add_epic(epic)
        self.save()
        return epic_id

    def add_subtask(self, subtask: SubTask | None) -> int:
        sub_id = super().add_subtask(subtask)
        self.save()
        return sub_id

    def update_task(self, task: Task | None) -> None:
        super().update_task(task)
        self.save()

    def update_epic(self, epic: Epic | None) -> None:
        super().update_epic(epic)
        self.save()

    def update_subtask(self, subtask: SubTask | None) -> None:
        super().update_subtask(subtask)
        self.save()

    def remove_task(self, task_id: int | None) -> None:
        super().remove_task(task_id)
        self.save()

    def remove_epic(self, epic_id: int | None) -> None:
        super().remove_epic(epic_id)
        self.save()

    def remove_subtask(self, sub_id: int | None) -> None:
        super().remove_subtask(sub_id)
        self.save()

    def remove_all_tasks(self) -> None:
        super().remove_all_tasks()
        self.save()

    def remove_all_epics(self) -> None:
        super().remove_all_epics()
        self.save()

    def remove_all_subtasks(self) -> None:
        super().remove_all_subtasks()
        self.save()
