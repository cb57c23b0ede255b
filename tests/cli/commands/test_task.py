"""Tests for task command."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from task_recovery.cli.main import cli
from task_recovery.core.record_store import TaskRecordStore
from task_recovery.models.task import TaskRecord, TaskStatus
from task_recovery.utils.session_manager import SessionFile


@pytest.fixture
def records(project):
    _, data_dir = project
    store = TaskRecordStore(data_dir)
    store.create("task-100-aaaaaa", "Port the importer\nto the new API", "sonnet",
                 branch_name="feature/task-task-100-aaaaaa")
    store.create("task-200-bbbbbb", "Write changelog", "haiku")
    store.set_status("task-200-bbbbbb", TaskStatus.COMPLETED)
    return store


class TestTaskCommand:
    """Test task command functionality."""

    def test_task_help(self, cli_runner):
        """Test task command help."""
        result = cli_runner.invoke(cli, ['task', '--help'])

        assert result.exit_code == 0
        assert "Manage task records" in result.output
        for name in ("list", "show", "delete", "spawn"):
            assert name in result.output

    def test_list_empty(self, cli_runner, project):
        """Test listing with no records."""
        result = cli_runner.invoke(cli, ['task', 'list'])
        assert result.exit_code == 0
        assert "No tasks found" in result.output

    def test_list(self, cli_runner, records):
        """Test listing records."""
        result = cli_runner.invoke(cli, ['task', 'list'])
        assert result.exit_code == 0
        assert "task-100-aaaaaa" in result.output
        assert "task-200-bbbbbb" in result.output
        assert "COMPLETED" in result.output

    def test_list_status_filter(self, cli_runner, records):
        """Test filtering by status."""
        result = cli_runner.invoke(cli, ['task', 'list', '--status', 'active'])
        assert "task-100-aaaaaa" in result.output
        assert "task-200-bbbbbb" not in result.output

    def test_show_by_short_id(self, cli_runner, records):
        """Test showing a task by the tail of its id."""
        records.append_note("task-100-aaaaaa", "Cleanup: orphaned task during recovery")

        result = cli_runner.invoke(cli, ['task', 'show', 'aaaaaa'])

        assert result.exit_code == 0
        assert "Task Details: task-100-aaaaaa" in result.output
        assert "Port the importer" in result.output
        assert "feature/task-task-100-aaaaaa" in result.output
        assert "Cleanup: orphaned task during recovery" in result.output

    def test_show_ambiguous(self, cli_runner, records):
        """Test an ambiguous short id."""
        result = cli_runner.invoke(cli, ['task', 'show', 'task-'])
        assert result.exit_code == 1
        assert "Multiple tasks found" in result.output

    def test_show_missing(self, cli_runner, records):
        """Test an unknown id."""
        result = cli_runner.invoke(cli, ['task', 'show', 'zzz'])
        assert result.exit_code == 1
        assert "No task found with ID: zzz" in result.output

    def test_delete_clears_session(self, cli_runner, records, project):
        """Test deleting the current task."""
        _, data_dir = project
        session = SessionFile(data_dir / "SESSION.md")
        session.set("current_task_id", "task-100-aaaaaa")

        result = cli_runner.invoke(cli, ['task', 'delete', 'task-100-aaaaaa', '--yes'])

        assert result.exit_code == 0
        assert not records.exists("task-100-aaaaaa")
        assert "current_task_id" not in session
        assert "was kept" in result.output

    def test_delete_requires_confirmation(self, cli_runner, records):
        """Test that delete asks first."""
        result = cli_runner.invoke(cli, ['task', 'delete', 'task-100-aaaaaa'], input='n\n')
        assert result.exit_code == 1
        assert records.exists("task-100-aaaaaa")

    @patch('task_recovery.cli.commands.task.spawn.get_spawner')
    def test_spawn(self, mock_get_spawner, cli_runner):
        """Test spawning a task."""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        mock_spawner = MagicMock()
        mock_spawner.spawn.return_value = TaskRecord(
            id="task-300-cccccc", model="opus", prompt="Do it", status=TaskStatus.ACTIVE,
            created_at=now, updated_at=now, last_good_commit="e" * 40,
            branch_name="feature/task-task-300-cccccc",
        )
        mock_get_spawner.return_value = mock_spawner

        result = cli_runner.invoke(
            cli, ['task', 'spawn', '--prompt', 'Do it', '--model', 'opus', '--branch-aware']
        )

        assert result.exit_code == 0
        assert "Task spawned: task-300-cccccc" in result.output
        assert "feature/task-task-300-cccccc" in result.output
        mock_spawner.spawn.assert_called_once_with('Do it', 'opus', parent_id=None, branch_aware=True)

    def test_spawn_requires_prompt(self, cli_runner):
        """Test spawn without a prompt."""
        result = cli_runner.invoke(cli, ['task', 'spawn'])
        assert result.exit_code == 2
