"""HistoryTracker: recency-ordered, de-duplicated access history.

Doubly linked list of nodes plus an id -> node index:
- add() unlinks an existing node for the same id, then appends a fresh
  node at the tail (most recent last)
- remove() unlinks by id; unknown ids are ignored
- get_tasks() walks head -> tail

add/remove are O(1); a full listing is O(n). Nodes hold independent
copies, never the repository's stored objects.
"""

from __future__ import annotations

from dataclasses import dataclass

from taskboard.models.task import Task


@dataclass(slots=True, eq=False)
class _Node:
    task: Task
    prev: _Node | None = None
    next: _Node | None = None


class HistoryTracker:
    """Tracks the tasks most recently read by id."""

    def __init__(self) -> None:
        self._index: dict[int, _Node] = {}
        self._head: _Node | None = None
        self._tail: _Node | None = None

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._index

    def add(self, task: Task | None) -> None:
        """Record an access, promoting the task to most recent."""
        if task is None:
            raise ValueError("Task must not be None.")

        self.remove(task.id)

        node = _Node(task=task.copy(), prev=self._tail)
        if self._tail is None:
            self._head = node
        else:
            self._tail.next = node
        self._tail = node
        self._index[task.id] = node

    def remove(self, task_id: int | None) -> None:
        """Forget a task. Ids that were never viewed are ignored."""
        if task_id is None:
            raise ValueError("task_id must not be None.")

        node = self._index.pop(task_id, None)
        if node is None:
            return

        if node.prev is None:
            self._head = node.next
        else:
            node.prev.next = node.next
        if node.next is None:
            self._tail = node.prev
        else:
            node.next.prev = node.prev
        node.prev = node.next = None

    def clear(self) -> None:
        self._index.clear()
        self._head = self._tail = None

    def get_tasks(self) -> list[Task]:
        """All recorded tasks, oldest access first, as copies."""
        tasks: list[Task] = []
        node = self._head
        while node is not None:
            tasks.append(node.task.copy())
            node = node.next
        return tasks
