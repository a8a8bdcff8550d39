"""Shared test fixtures for Taskboard tests."""

import os
import sys

import pytest

# Ensure the project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("TASKS_FILE", "")

from taskboard.engine.repository import TaskRepository
from taskboard.models.task import Epic, SubTask


@pytest.fixture
def repo():
    """Fresh in-memory repository."""
    return TaskRepository()


@pytest.fixture
def epic_with_members(repo):
    """Epic holding two linked subtasks: (repo, epic_id, [sub_ids])."""
    epic_id = repo.add_epic(Epic(title="Release 1.0", description="First public release"))
    first = repo.add_subtask(SubTask(title="Write changelog", epic_id=epic_id))
    second = repo.add_subtask(SubTask(title="Tag build", epic_id=epic_id))

    epic = repo.lookup(epic_id)
    epic.subtask_ids = [first, second]
    repo.update_epic(epic)
    return repo, epic_id, [first, second]
