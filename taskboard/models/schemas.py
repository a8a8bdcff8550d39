"""Request/response bodies for the HTTP API.

Requests carry the caller-editable fields only; ids come from the path
(an `id` in a PUT body must match it). Epic status and schedule are derived,
so EpicRequest has neither.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from taskboard.models.task import NO_EPIC, Epic, SubTask, Task, TaskStatus, TaskType


class TaskRequest(BaseModel):
    """Create/replace body for a standalone task."""

    id: int | None = None
    title: str = Field(default="", max_length=500)
    description: str = Field(default="", max_length=5000)
    status: TaskStatus = "NEW"
    start_time: datetime | None = None
    duration: timedelta | None = None

    def to_task(self, task_id: int = 0) -> Task:
        return Task(id=task_id, **self.model_dump(exclude={"id"}))


class SubTaskRequest(TaskRequest):
    """Create/replace body for a subtask. epic_id 0 = unlinked."""

    epic_id: int = Field(default=NO_EPIC, ge=0)

    def to_task(self, task_id: int = 0) -> SubTask:
        return SubTask(id=task_id, **self.model_dump(exclude={"id"}))


class EpicRequest(BaseModel):
    """Create/replace body for an epic."""

    id: int | None = None
    title: str = Field(default="", max_length=500)
    description: str = Field(default="", max_length=5000)
    subtask_ids: list[int] = Field(default_factory=list)

    def to_task(self, task_id: int = 0) -> Epic:
        return Epic(id=task_id, **self.model_dump(exclude={"id"}))


class TaskResponse(BaseModel):
    """Any stored entity; epic_id is set for subtasks, subtask_ids for epics."""

    id: int
    type: TaskType
    title: str
    description: str
    status: TaskStatus
    start_time: datetime | None = None
    duration: timedelta | None = None
    end_time: datetime | None = None
    epic_id: int | None = None
    subtask_ids: list[int] | None = None


def to_response(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        type=task.type,
        title=task.title,
        description=task.description,
        status=task.status,
        start_time=task.start_time,
        duration=task.duration,
        end_time=task.end_time,
        epic_id=task.epic_id if isinstance(task, SubTask) else None,
        subtask_ids=list(task.subtask_ids) if isinstance(task, Epic) else None,
    )
