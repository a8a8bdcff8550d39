"""End-to-end engine scenarios: epic lifecycle and back-to-back scheduling."""

import os
import sys
from datetime import datetime, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

import pytest

from taskboard.engine.repository import ScheduleConflictError, TaskNotFoundError
from taskboard.models.task import Epic, SubTask, Task


def _build_epic(repo):
    """Task A (unscheduled), Epic A with SubTask A and SubTask B as members."""
    task_a = repo.add_task(Task(title="Task A"))
    epic_a = repo.add_epic(Epic(title="Epic A"))
    sub_a = repo.add_subtask(SubTask(title="SubTask A", epic_id=epic_a))
    sub_b = repo.add_subtask(SubTask(title="SubTask B", epic_id=epic_a))

    epic = repo.get_epic(epic_a)
    epic.add_subtask_id(sub_a)
    epic.add_subtask_id(sub_b)
    repo.update_epic(epic)
    return task_a, epic_a, sub_a, sub_b


def _set_status(repo, sub_id, status):
    sub = repo.get_subtask(sub_id)
    sub.status = status
    repo.update_subtask(sub)


def test_epic_lifecycle_remove_last_remaining_done(repo):
    task_a, epic_a, sub_a, sub_b = _build_epic(repo)
    assert repo.get_task(task_a).status == "NEW"
    assert repo.get_epic(epic_a).status == "NEW"

    _set_status(repo, sub_a, "IN_PROGRESS")
    assert repo.get_epic(epic_a).status == "IN_PROGRESS"

    _set_status(repo, sub_a, "DONE")
    _set_status(repo, sub_b, "DONE")
    assert repo.get_epic(epic_a).status == "DONE"

    repo.remove_subtask(sub_b)
    assert repo.get_epic(epic_a).status == "DONE"
    print("  PASS: epic_lifecycle_remove_last_remaining_done")


def test_epic_lifecycle_remove_only_member(repo):
    _, epic_a, sub_a, sub_b = _build_epic(repo)
    repo.remove_subtask(sub_b)
    _set_status(repo, sub_a, "DONE")
    assert repo.get_epic(epic_a).status == "DONE"

    repo.remove_subtask(sub_a)
    epic = repo.get_epic(epic_a)
    assert epic.status == "NEW"
    assert epic.subtask_ids == []
    print("  PASS: epic_lifecycle_remove_only_member")


def test_one_in_progress_rest_new(repo):
    _, epic_a, sub_a, _ = _build_epic(repo)
    extra = repo.add_subtask(SubTask(title="SubTask C", epic_id=epic_a))
    epic = repo.get_epic(epic_a)
    epic.add_subtask_id(extra)
    repo.update_epic(epic)

    _set_status(repo, sub_a, "IN_PROGRESS")
    assert repo.get_epic(epic_a).status == "IN_PROGRESS"
    print("  PASS: one_in_progress_rest_new")


def test_mixed_done_and_new_is_in_progress(repo):
    _, epic_a, sub_a, _ = _build_epic(repo)
    _set_status(repo, sub_a, "DONE")
    assert repo.get_epic(epic_a).status == "IN_PROGRESS"
    print("  PASS: mixed_done_and_new_is_in_progress")


def test_boundary_exclusive_scheduling(repo):
    ten = datetime(2024, 3, 1, 10, 0)
    repo.add_task(Task(title="Task A", start_time=ten, duration=timedelta(minutes=30)))
    slots_after_a = repo.schedule.occupied_slots()

    with pytest.raises(ScheduleConflictError):
        repo.add_task(Task(title="Task B", start_time=ten + timedelta(minutes=15),
                           duration=timedelta(minutes=30)))
    assert repo.schedule.occupied_slots() == slots_after_a

    task_b = repo.add_task(Task(title="Task B", start_time=ten + timedelta(minutes=30),
                                duration=timedelta(minutes=30)))
    assert repo.get_task(task_b).end_time == datetime(2024, 3, 1, 11, 0)
    print("  PASS: boundary_exclusive_scheduling")


def test_epic_removal_leaves_nothing_behind(repo):
    ten = datetime(2024, 3, 1, 10, 0)
    _, epic_a, sub_a, sub_b = _build_epic(repo)
    sub = repo.get_subtask(sub_a)
    sub.start_time = ten
    sub.duration = timedelta(minutes=50)
    repo.update_subtask(sub)

    repo.remove_epic(epic_a)
    for removed in (epic_a, sub_a, sub_b):
        with pytest.raises(TaskNotFoundError):
            repo.lookup(removed)
        assert removed not in [h.id for h in repo.get_history()]
    assert repo.schedule.occupied_slots() == set()
    print("  PASS: epic_removal_leaves_nothing_behind")


def test_ids_strictly_increase_across_kinds(repo):
    seen = []
    for i in range(5):
        seen.append(repo.add_task(Task(title=f"t{i}")))
        seen.append(repo.add_epic(Epic(title=f"e{i}")))
        seen.append(repo.add_subtask(SubTask(title=f"s{i}")))
        repo.remove_task(seen[-3])
    assert seen == sorted(seen)
    assert len(set(seen)) == len(seen)
    print("  PASS: ids_strictly_increase_across_kinds")
