"""CLI Helper Functions for task recovery.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Project context resolution from ``--repo`` or the working directory
- Construction of the stores and services a command needs
- Task ID resolution with short ID support
- Consistent table formatting for output
- Uniform reporting of service errors
"""

import functools
import sys
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import click
from tabulate import tabulate

from task_recovery.core.constants import CURRENT_TASK_KEY, DATA_DIR_NAME, SESSION_FILE_NAME
from task_recovery.core.executor import RecoveryExecutor
from task_recovery.core.git_inspector import GitStateInspector
from task_recovery.core.record_store import TaskRecordStore
from task_recovery.core.reporter import CrashStateReporter
from task_recovery.core.spawner import TaskSpawner
from task_recovery.models.config import RecoveryConfig
from task_recovery.models.task import TaskRecord, TaskStatus, TaskSummary
from task_recovery.services.exceptions import NoActiveTaskError, ServiceError
from task_recovery.services.git_service import GitService
from task_recovery.services.review_service import ReviewService
from task_recovery.utils.config_manager import ConfigManager
from task_recovery.utils.note_store import NoteStore
from task_recovery.utils.session_manager import SessionFile


def handle_service_errors(func: Callable) -> Callable:
    """Report ServiceError as a red message and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ServiceError as e:
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def _requested_repo() -> Optional[Path]:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return None
    obj = ctx.find_root().obj or {}
    return obj.get('repo')


def get_project_context() -> tuple[Path, Path]:
    """Get project root and data directory.

    The project root is the top of the git work tree containing ``--repo``
    (or the current directory).

    Returns:
        Tuple of (project_root, data_dir)

    Raises:
        RepositoryUnavailableError: If the location is not inside a git repository
    """
    project_root = GitService(_requested_repo()).get_repo_root()
    data_dir = project_root / DATA_DIR_NAME
    return project_root, data_dir


def get_config() -> RecoveryConfig:
    """Load the workspace recovery configuration."""
    _, data_dir = get_project_context()
    return ConfigManager(data_dir).load_config()


def get_store() -> TaskRecordStore:
    """Open the task record store of the workspace."""
    _, data_dir = get_project_context()
    return TaskRecordStore(data_dir)


def get_note_store() -> NoteStore:
    """Open the shared note store of the workspace."""
    _, data_dir = get_project_context()
    return NoteStore(data_dir)


def get_session() -> SessionFile:
    """Open the session pointer file of the workspace."""
    _, data_dir = get_project_context()
    return SessionFile(data_dir / SESSION_FILE_NAME)


def get_executor() -> tuple[TaskRecordStore, RecoveryExecutor]:
    """Initialize the record store and a recovery executor for the workspace.

    Returns:
        Tuple of (store, executor)
    """
    project_root, data_dir = get_project_context()
    config = ConfigManager(data_dir).load_config()
    store = TaskRecordStore(data_dir)
    executor = RecoveryExecutor(
        store,
        GitService(project_root, exclude_paths=(DATA_DIR_NAME,)),
        config,
        review_service=ReviewService(project_root, config.review_provider),
        note_store=NoteStore(data_dir),
    )
    return store, executor


def get_reporter() -> CrashStateReporter:
    """Initialize a crash-state reporter for the workspace."""
    project_root, data_dir = get_project_context()
    config = ConfigManager(data_dir).load_config()
    return CrashStateReporter(
        TaskRecordStore(data_dir),
        GitStateInspector(
            GitService(project_root, exclude_paths=(DATA_DIR_NAME,)), config.reference_branch
        ),
        SessionFile(data_dir / SESSION_FILE_NAME),
        review_service=ReviewService(project_root, config.review_provider),
    )


def get_spawner() -> TaskSpawner:
    """Initialize a task spawner for the workspace."""
    project_root, data_dir = get_project_context()
    return TaskSpawner(
        TaskRecordStore(data_dir),
        GitService(project_root, exclude_paths=(DATA_DIR_NAME,)),
        SessionFile(data_dir / SESSION_FILE_NAME),
        ConfigManager(data_dir).load_config(),
        note_store=NoteStore(data_dir),
    )


def resolve_task_id(store: TaskRecordStore, task_id: str) -> TaskRecord:
    """Resolve a task ID with short ID support.

    A short ID is any unique prefix or suffix of a task ID, so the random
    tail of ``task-<epoch>-<hex>`` is enough.

    Args:
        store: The task record store
        task_id: Full or partial task ID

    Returns:
        TaskRecord for the resolved task

    Note:
        Exits with error if task not found or multiple matches.
    """
    if store.exists(task_id):
        return store.get(task_id)

    matching_tasks = [
        t for t in store.list() if t.id.startswith(task_id) or t.id.endswith(task_id)
    ]
    if len(matching_tasks) == 1:
        return store.get(matching_tasks[0].id)

    if len(matching_tasks) > 1:
        click.echo(f"Error: Multiple tasks found matching '{task_id}':", err=True)
        for task in matching_tasks:
            click.echo(f"  - {task.id} ({task.status.value})", err=True)
    else:
        click.echo(f"Error: No task found with ID: {task_id}", err=True)
    sys.exit(1)


def get_current_task(store: TaskRecordStore, session: SessionFile) -> TaskRecord:
    """Load the task the session currently points at.

    Raises:
        NoActiveTaskError: If no task is current or its record is gone
    """
    task_id = session.get(CURRENT_TASK_KEY)
    if not task_id or not store.exists(task_id):
        raise NoActiveTaskError("No active task in session; pass --task-id")
    return store.get(task_id)


def format_task_table(tasks: Iterable[TaskSummary], headers: Optional[list[str]] = None) -> str:
    """Format tasks as a table with consistent styling.

    Args:
        tasks: Task summaries to display
        headers: Optional custom headers

    Returns:
        Formatted table string
    """
    if headers is None:
        headers = ["ID", "STATUS", "MODEL", "CREATED"]

    status_colors = {
        TaskStatus.ACTIVE: 'green',
        TaskStatus.COMPLETED: 'blue',
        TaskStatus.FAILED: 'red',
        TaskStatus.DISCARDED: 'yellow',
    }

    table_data = []
    for task_item in tasks:
        status_display = click.style(
            task_item.status.value.upper(),
            fg=status_colors.get(task_item.status, 'white')
        )
        table_data.append([
            task_item.id,
            status_display,
            task_item.model,
            task_item.created_at.strftime("%Y-%m-%d %H:%M"),
        ])

    return tabulate(table_data, headers=headers, tablefmt="simple")


def print_table(headers: list[str], rows: list[list[Any]],
                tablefmt: str = "simple") -> None:
    """Print a table with project-wide defaults."""
    click.echo(tabulate(rows, headers=headers, tablefmt=tablefmt))


__all__ = [
    'handle_service_errors',
    'get_project_context',
    'get_config',
    'get_store',
    'get_note_store',
    'get_session',
    'get_executor',
    'get_reporter',
    'get_spawner',
    'resolve_task_id',
    'get_current_task',
    'format_task_table',
    'print_table',
]
