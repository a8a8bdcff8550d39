"""Tests for Settings and repository construction from settings."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettings:
    """Test the Settings fields in config.py."""

    def test_defaults(self):
        """Defaults give an in-memory repository on port 8080."""
        from taskboard.config import Settings
        with patch.dict("os.environ", {}, clear=True):
            s = Settings(_env_file=None)
        assert s.app_name == "Taskboard"
        assert s.port == 8080
        assert s.tasks_file == ""
        assert s.slot_minutes == 10
        assert s.max_window_days == 365
        assert s.log_level == "INFO"

    def test_from_env(self):
        """Settings are read from environment variables."""
        from taskboard.config import Settings
        env = {
            "PORT": "9090",
            "TASKS_FILE": "/tmp/tasks.csv",
            "SLOT_MINUTES": "15",
            "MAX_WINDOW_DAYS": "30",
            "LOG_LEVEL": "debug",
            "CORS_ORIGINS": "http://a.example,http://b.example",
        }
        with patch.dict("os.environ", env):
            s = Settings(_env_file=None)
        assert s.port == 9090
        assert s.tasks_file == "/tmp/tasks.csv"
        assert s.slot_minutes == 15
        assert s.max_window_days == 30
        assert s.log_level == "DEBUG"
        assert s.cors_origins.split(",") == ["http://a.example", "http://b.example"]

    @pytest.mark.parametrize("value", ["0", "7", "45"])
    def test_slot_minutes_must_divide_hour(self, value):
        from taskboard.config import Settings
        with patch.dict("os.environ", {"SLOT_MINUTES": value}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_env_file(self, tmp_path):
        from taskboard.config import Settings
        env_file = tmp_path / ".env"
        env_file.write_text("PORT=7000\nAPP_NAME=Board\n", encoding="utf-8")
        with patch.dict("os.environ", {}, clear=True):
            s = Settings(_env_file=str(env_file))
        assert s.port == 7000
        assert s.app_name == "Board"


class TestCreateRepository:
    """Test create_repository() storage selection."""

    def test_in_memory_when_no_file(self):
        from taskboard.config import Settings
        from taskboard.engine.repository import TaskRepository
        from taskboard.storage.csv_store import FileBackedTaskRepository
        from taskboard.storage.factory import create_repository

        repo = create_repository(Settings(_env_file=None, tasks_file=""))
        assert type(repo) is TaskRepository
        assert not isinstance(repo, FileBackedTaskRepository)

    def test_file_backed_when_file_set(self, tmp_path):
        from taskboard.config import Settings
        from taskboard.models.task import Task
        from taskboard.storage.csv_store import FileBackedTaskRepository
        from taskboard.storage.factory import create_repository

        path = tmp_path / "tasks.csv"
        repo = create_repository(Settings(_env_file=None, tasks_file=str(path)))
        assert isinstance(repo, FileBackedTaskRepository)
        repo.add_task(Task(title="persisted"))

        reopened = create_repository(Settings(_env_file=None, tasks_file=str(path)))
        assert [t.title for t in reopened.list_tasks()] == ["persisted"]

    def test_timeline_settings_applied(self):
        from taskboard.config import Settings
        from taskboard.storage.factory import create_repository

        repo = create_repository(Settings(_env_file=None, slot_minutes=30, max_window_days=7))
        assert repo.schedule.slot.total_seconds() == 30 * 60
        assert repo.schedule.max_window.days == 7
