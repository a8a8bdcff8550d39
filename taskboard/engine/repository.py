"""TaskRepository: in-memory store for tasks, epics and subtasks.

Owns:
- three id-keyed collections (tasks, epics, subtasks)
- one id counter shared by all three kinds (ids are never reused)
- the access history (HistoryTracker)
- the timeline occupancy index (TimeSchedule)

Every entity crossing the repository boundary is copied, in both
directions. Epic status and schedule are derived from the member subtasks
and recomputed whenever membership or a member's status/schedule changes.

Validation happens before any mutation: a failed call leaves the
repository exactly as it was.

Not thread-safe. Hosts serving concurrent callers must serialise access
(the HTTP layer holds a single lock around every mutating call).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from taskboard.engine.history import HistoryTracker
from taskboard.engine.schedule import DEFAULT_MAX_WINDOW_DAYS, DEFAULT_SLOT_MINUTES, TimeSchedule
from taskboard.models.task import NO_EPIC, Epic, SubTask, Task, TaskStatus

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """Raised when an id is absent from the targeted collection."""

    def __init__(self, kind: str, task_id: int) -> None:
        self.kind = kind
        self.task_id = task_id
        super().__init__(f"{kind} with id {task_id} not found.")


class ScheduleConflictError(Exception):
    """Raised when a window collides with an already scheduled one."""

    def __init__(self, task_id: int, start: datetime | None, duration: timedelta | None) -> None:
        self.task_id = task_id
        self.start = start
        self.duration = duration
        super().__init__(
            f"Time window of task {task_id} (start={start}, duration={duration}) "
            f"overlaps an existing schedule."
        )


def derive_epic_status(members: Iterable[Task]) -> TaskStatus:
    """NEW when empty or all NEW, DONE when all DONE, otherwise IN_PROGRESS."""
    statuses = [m.status for m in members]
    if all(s == "NEW" for s in statuses):
        return "NEW"
    if all(s == "DONE" for s in statuses):
        return "DONE"
    return "IN_PROGRESS"


def derive_epic_window(members: Iterable[Task]) -> tuple[datetime | None, timedelta | None]:
    """Earliest member start and the span up to the latest member end."""
    scheduled = [m for m in members if m.start_time is not None]
    if not scheduled:
        return None, None
    start = min(m.start_time for m in scheduled)
    end = max(m.end_time or m.start_time for m in scheduled)
    return start, end - start


class TaskRepository:
    """Task/Epic/SubTask store with epic derivation, history and scheduling.

    Usage:
        repo = TaskRepository()
        epic_id = repo.add_epic(Epic(title="Release"))
        sub_id = repo.add_subtask(SubTask(title="Build", epic_id=epic_id))

        epic = repo.get_epic(epic_id)
        epic.add_subtask_id(sub_id)
        repo.update_epic(epic)
    """

    def __init__(
        self,
        slot_minutes: int = DEFAULT_SLOT_MINUTES,
        max_window_days: int = DEFAULT_MAX_WINDOW_DAYS,
    ) -> None:
        self._next_id = 1
        self._tasks: dict[int, Task] = {}
        self._epics: dict[int, Epic] = {}
        self._subtasks: dict[int, SubTask] = {}
        self.history = HistoryTracker()
        self.schedule = TimeSchedule(slot_minutes=slot_minutes, max_window_days=max_window_days)

    @property
    def next_id(self) -> int:
        """Id the next insertion will receive."""
        return self._next_id

    # === Listings ===

    def list_tasks(self) -> list[Task]:
        return [t.copy() for t in self._tasks.values()]

    def list_epics(self) -> list[Epic]:
        return [e.copy() for e in self._epics.values()]

    def list_subtasks(self) -> list[SubTask]:
        return [s.copy() for s in self._subtasks.values()]

    def get_epic_subtasks(self, epic_id: int | None) -> list[SubTask]:
        """Copies of an epic's members, in membership order."""
        epic = self._require(self._epics, "Epic", epic_id)
        return [self._subtasks[sub_id].copy() for sub_id in epic.subtask_ids]

    def get_history(self) -> list[Task]:
        """Tasks read by id, least recent first."""
        return self.history.get_tasks()

    def get_prioritized_tasks(self) -> list[Task]:
        """Tasks and subtasks by start time; unscheduled ones last, by id.

        Epics are left out: their schedule is derived, not booked.
        """
        items: list[Task] = [*self._tasks.values(), *self._subtasks.values()]
        scheduled = sorted(
            (t for t in items if t.start_time is not None),
            key=lambda t: (t.start_time, t.id),
        )
        unscheduled = sorted((t for t in items if t.start_time is None), key=lambda t: t.id)
        return [t.copy() for t in scheduled + unscheduled]

    # === Reads by id (recorded in history) ===

    def get_task(self, task_id: int | None) -> Task:
        return self._read(self._tasks, "Task", task_id)

    def get_epic(self, epic_id: int | None) -> Epic:
        return self._read(self._epics, "Epic", epic_id)

    def get_subtask(self, sub_id: int | None) -> SubTask:
        return self._read(self._subtasks, "Subtask", sub_id)

    def lookup(self, entity_id: int | None) -> Task:
        """Copy of any stored entity by id, without touching history."""
        if entity_id is None:
            raise ValueError("Id must not be None.")
        for collection in (self._tasks, self._epics, self._subtasks):
            if entity_id in collection:
                return collection[entity_id].copy()
        raise TaskNotFoundError("Entity", entity_id)

    def counts(self) -> dict[str, int]:
        return {"tasks": len(self._tasks), "epics": len(self._epics), "subtasks": len(self._subtasks)}

    # === Inserts ===

    def add_task(self, task: Task | None) -> int:
        """Store a copy of a new task; returns (and sets on `task`) its id."""
        if task is None:
            raise ValueError("New task must not be None.")
        self._check_kind(task, Task)
        self._check_window_free(task)

        task.id = self._generate_id()
        self._commit_task(task)
        return task.id

    def add_epic(self, epic: Epic | None) -> int:
        """Store a copy of a new epic; returns (and sets on `epic`) its id.

        Pre-filled members must be existing, unlinked subtasks; they are
        adopted by the new epic.
        """
        if epic is None:
            raise ValueError("New epic must not be None.")
        self._check_kind(epic, Epic)
        self._check_members(epic, epic.subtask_ids, epic_id=None)

        epic.id = self._generate_id()
        self._commit_epic(epic)
        return epic.id

    def add_subtask(self, subtask: SubTask | None) -> int:
        """Store a copy of a new subtask; returns (and sets on `subtask`) its id.

        The parent epic's membership is not touched: link the subtask with
        an explicit update_epic() call.
        """
        if subtask is None:
            raise ValueError("New subtask must not be None.")
        self._check_kind(subtask, SubTask)
        if subtask.is_linked:
            self._require(self._epics, "Epic", subtask.epic_id)
        self._check_window_free(subtask)

        subtask.id = self._generate_id()
        self._commit_subtask(subtask)
        return subtask.id

    # === Updates (wholesale replacement) ===

    def update_task(self, task: Task | None) -> None:
        if task is None:
            raise ValueError("Updated task must not be None.")
        self._check_kind(task, Task)
        current = self._require(self._tasks, "Task", task.id)

        self._reschedule(current, task)
        self._tasks[task.id] = task.copy()
        logger.debug("Task updated: %s", task)

    def update_epic(self, epic: Epic | None) -> None:
        """Replace an epic's direct fields and membership, then re-derive it."""
        if epic is None:
            raise ValueError("Updated epic must not be None.")
        self._check_kind(epic, Epic)
        current = self._require(self._epics, "Epic", epic.id)
        self._check_members(epic, epic.subtask_ids, epic_id=epic.id)

        for sub_id in current.subtask_ids:
            if sub_id not in epic.subtask_ids and sub_id in self._subtasks:
                self._subtasks[sub_id].epic_id = NO_EPIC
        self._commit_epic(epic)

    def update_subtask(self, subtask: SubTask | None) -> None:
        """Replace a subtask and re-derive its epic(s).

        Changing epic_id re-parents the subtask: it leaves the old epic's
        membership, and joins the new one only through update_epic().
        The stored value is replaced wholesale, epic_id included, so pass
        a fresh copy: one read before an epic adopted the subtask still
        carries NO_EPIC and detaches it.
        """
        if subtask is None:
            raise ValueError("Updated subtask must not be None.")
        self._check_kind(subtask, SubTask)
        current = self._require(self._subtasks, "Subtask", subtask.id)
        if subtask.is_linked:
            self._require(self._epics, "Epic", subtask.epic_id)

        self._reschedule(current, subtask)
        self._subtasks[subtask.id] = subtask.copy()

        old_epic_id = current.epic_id
        if old_epic_id != subtask.epic_id and old_epic_id in self._epics:
            self._epics[old_epic_id].remove_subtask_id(subtask.id)
            self._refresh_epic(old_epic_id)
        if subtask.epic_id in self._epics:
            self._refresh_epic(subtask.epic_id)
        logger.debug("Subtask updated: %s", subtask)

    # === Removal ===

    def remove_task(self, task_id: int | None) -> None:
        task = self._require(self._tasks, "Task", task_id)
        self._forget(task)
        del self._tasks[task_id]
        logger.debug("Task removed: %s", task_id)

    def remove_epic(self, epic_id: int | None) -> None:
        """Remove an epic together with every subtask that belongs to it."""
        epic = self._require(self._epics, "Epic", epic_id)

        owned = list(epic.subtask_ids)
        owned += [s.id for s in self._subtasks.values() if s.epic_id == epic_id and s.id not in owned]
        for sub_id in owned:
            subtask = self._subtasks.pop(sub_id, None)
            if subtask is not None:
                self._forget(subtask)

        self.history.remove(epic_id)
        del self._epics[epic_id]
        logger.debug("Epic removed: %s (with %d subtasks)", epic_id, len(owned))

    def remove_subtask(self, sub_id: int | None) -> None:
        subtask = self._require(self._subtasks, "Subtask", sub_id)
        self._forget(subtask)
        del self._subtasks[sub_id]

        epic = self._epics.get(subtask.epic_id)
        if epic is not None:
            epic.remove_subtask_id(sub_id)
            self._refresh_epic(epic.id)
        logger.debug("Subtask removed: %s", sub_id)

    def remove_all_tasks(self) -> None:
        for task in self._tasks.values():
            self._forget(task)
        self._tasks.clear()
        logger.debug("All tasks removed")

    def remove_all_epics(self) -> None:
        """Remove every epic and, with them, every subtask."""
        for subtask in self._subtasks.values():
            self._forget(subtask)
        self._subtasks.clear()
        for epic_id in self._epics:
            self.history.remove(epic_id)
        self._epics.clear()
        logger.debug("All epics and subtasks removed")

    def remove_all_subtasks(self) -> None:
        """Remove every subtask; epics are emptied and re-derived."""
        for subtask in self._subtasks.values():
            self._forget(subtask)
        self._subtasks.clear()
        for epic in self._epics.values():
            epic.subtask_ids.clear()
            self._refresh_epic(epic.id)
        logger.debug("All subtasks removed")

    # === Bulk load ===

    def restore(self, entity: Task | None) -> None:
        """Insert a previously saved entity under its own id.

        Used when reloading a snapshot. Goes through the same checks as the
        add_* operations; epic membership is not restored here (rebuild it
        with update_epic() once every subtask is back). The id counter moves
        past the restored id.
        """
        if entity is None:
            raise ValueError("Restored entity must not be None.")
        if entity.id <= 0:
            raise ValueError(f"Restored entity needs a saved id, got {entity.id}.")
        if entity.id in self._tasks or entity.id in self._epics or entity.id in self._subtasks:
            raise ValueError(f"Duplicate id {entity.id} in restored data.")

        if isinstance(entity, Epic):
            stored = entity.copy()
            stored.subtask_ids = []
            self._epics[stored.id] = stored
            self._refresh_epic(stored.id)
        elif isinstance(entity, SubTask):
            if entity.is_linked:
                self._require(self._epics, "Epic", entity.epic_id)
            self._check_window_free(entity)
            self._commit_subtask(entity)
        else:
            self._check_window_free(entity)
            self._commit_task(entity)
        self._next_id = max(self._next_id, entity.id + 1)

    # === Internals ===

    def _generate_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    @staticmethod
    def _check_kind(entity: Task, expected: type[Task]) -> None:
        if type(entity) is not expected:
            raise ValueError(f"Expected {expected.__name__}, got {type(entity).__name__}.")

    @staticmethod
    def _require(collection: dict, kind: str, entity_id: int | None):
        if entity_id is None:
            raise ValueError(f"{kind} id must not be None.")
        if entity_id not in collection:
            raise TaskNotFoundError(kind, entity_id)
        return collection[entity_id]

    def _read(self, collection: dict, kind: str, entity_id: int | None):
        stored = self._require(collection, kind, entity_id)
        self.history.add(stored)
        return stored.copy()

    def _check_window_free(self, task: Task) -> None:
        if task.is_scheduled and self.schedule.is_overlapping(task.start_time, task.duration):
            raise ScheduleConflictError(task.id, task.start_time, task.duration)

    def _reschedule(self, current: Task, updated: Task) -> None:
        """Move `current`'s window to `updated`'s, or raise with nothing changed."""
        if current.is_scheduled:
            self.schedule.remove_interval(current.start_time, current.duration)
        if updated.is_scheduled and self.schedule.is_overlapping(updated.start_time, updated.duration):
            if current.is_scheduled:
                self.schedule.add_interval(current.start_time, current.duration)
            raise ScheduleConflictError(updated.id, updated.start_time, updated.duration)
        if updated.is_scheduled:
            self.schedule.add_interval(updated.start_time, updated.duration)

    def _forget(self, task: Task) -> None:
        """Release a task's window and drop it from history."""
        if task.is_scheduled:
            self.schedule.remove_interval(task.start_time, task.duration)
        self.history.remove(task.id)

    def _check_members(self, epic: Epic, member_ids: list[int], epic_id: int | None) -> None:
        for sub_id in member_ids:
            subtask = self._require(self._subtasks, "Subtask", sub_id)
            if subtask.is_linked and subtask.epic_id != epic_id:
                raise ValueError(
                    f"Subtask {sub_id} already belongs to epic {subtask.epic_id}; "
                    f"it cannot join epic {epic.id}."
                )

    def _commit_task(self, task: Task) -> None:
        if task.is_scheduled:
            self.schedule.add_interval(task.start_time, task.duration)
        self._tasks[task.id] = task.copy()
        logger.debug("Task added: %s", task)

    def _commit_subtask(self, subtask: SubTask) -> None:
        if subtask.is_scheduled:
            self.schedule.add_interval(subtask.start_time, subtask.duration)
        self._subtasks[subtask.id] = subtask.copy()
        logger.debug("Subtask added: %s", subtask)

    def _commit_epic(self, epic: Epic) -> None:
        stored = epic.copy()
        for sub_id in stored.subtask_ids:
            self._subtasks[sub_id].epic_id = stored.id
        self._epics[stored.id] = stored
        self._refresh_epic(stored.id)
        logger.debug("Epic stored: %s members=%s", stored, stored.subtask_ids)

    def _refresh_epic(self, epic_id: int) -> None:
        """Recompute an epic's status and schedule from its current members."""
        epic = self._epics[epic_id]
        members = [self._subtasks[sub_id] for sub_id in epic.subtask_ids]
        epic.status = derive_epic_status(members)
        epic.start_time, epic.duration = derive_epic_window(members)
