"""Task, Epic and SubTask models.

All three share the Task fields (id, title, description, status, schedule).
Epic adds an ordered list of member subtask ids; SubTask adds the id of
its parent epic. Relations are kept by id only: an epic never holds its
subtask objects, and a subtask never holds its epic.

Equality and hashing are by id, so a stale copy and the stored value are
"the same task" even when their fields differ.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

TaskStatus = Literal["NEW", "IN_PROGRESS", "DONE"]
TaskType = Literal["TASK", "EPIC", "SUB"]

NO_EPIC = 0  # parent id of a subtask that is not linked to any epic


class Task(BaseModel):
    """A standalone unit of work."""

    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(default=0, ge=0)
    title: str = ""
    description: str = ""
    status: TaskStatus = "NEW"
    start_time: datetime | None = None  # None = unscheduled
    duration: timedelta | None = None   # None = no duration

    @field_validator("title", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("start_time")
    @classmethod
    def _naive_start(cls, v: datetime | None) -> datetime | None:
        # Aware timestamps are stored as naive UTC so all start times compare
        if v is not None and v.utcoffset() is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("duration")
    @classmethod
    def _non_negative_duration(cls, v: timedelta | None) -> timedelta | None:
        if v is not None and v < timedelta(0):
            raise ValueError(f"duration must not be negative, got {v}")
        return v

    @property
    def type(self) -> TaskType:
        return "TASK"

    @property
    def end_time(self) -> datetime | None:
        """start_time + duration, or None while unscheduled."""
        if self.start_time is None or self.duration is None:
            return None
        return self.start_time + self.duration

    @property
    def is_scheduled(self) -> bool:
        """True when the task occupies a real window on the timeline."""
        return (
            self.start_time is not None
            and self.duration is not None
            and self.duration > timedelta(0)
        )

    def copy(self) -> Task:  # type: ignore[override]
        """Independent deep copy of this entity."""
        return self.model_copy(deep=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.type}#{self.id} '{self.title}' [{self.status}]"


class Epic(Task):
    """A task grouping zero or more subtasks.

    status, start_time and duration are derived from the members by the
    repository; values set by a caller are overwritten on every update.
    """

    subtask_ids: list[int] = Field(default_factory=list)

    @field_validator("subtask_ids")
    @classmethod
    def _valid_members(cls, v: list[int], info: ValidationInfo) -> list[int]:
        own_id = info.data.get("id", 0)
        members: list[int] = []
        for sub_id in v:
            if own_id and sub_id == own_id:
                raise ValueError(f"Epic {own_id} cannot be its own subtask.")
            if sub_id not in members:
                members.append(sub_id)
        return members

    @property
    def type(self) -> TaskType:
        return "EPIC"

    def add_subtask_id(self, sub_id: int | None) -> None:
        """Append a member id. Adding an existing member is a no-op."""
        self._check_member_id(sub_id)
        if sub_id not in self.subtask_ids:
            self.subtask_ids.append(sub_id)

    def remove_subtask_id(self, sub_id: int | None) -> None:
        """Drop a member id if present."""
        self._check_member_id(sub_id)
        if sub_id in self.subtask_ids:
            self.subtask_ids.remove(sub_id)

    def _check_member_id(self, sub_id: int | None) -> None:
        if sub_id is None:
            raise ValueError("Subtask id must not be None.")
        if sub_id == self.id:
            raise ValueError(
                f"Invalid operation: a subtask cannot have the same id as its epic ({sub_id})."
            )


class SubTask(Task):
    """A task that belongs to (at most) one epic, referenced by id."""

    epic_id: int = NO_EPIC

    @field_validator("epic_id", mode="before")
    @classmethod
    def _none_to_no_epic(cls, v: object) -> object:
        return NO_EPIC if v is None else v

    @field_validator("epic_id")
    @classmethod
    def _not_own_parent(cls, v: int, info: ValidationInfo) -> int:
        if v < 0:
            raise ValueError(f"epic_id must not be negative, got {v}")
        own_id = info.data.get("id", 0)
        if v != NO_EPIC and v == own_id:
            raise ValueError(f"Subtask {own_id} cannot be its own parent epic.")
        return v

    @property
    def type(self) -> TaskType:
        return "SUB"

    @property
    def is_linked(self) -> bool:
        return self.epic_id != NO_EPIC

    def __str__(self) -> str:
        return f"{super().__str__()} epic={self.epic_id}"
