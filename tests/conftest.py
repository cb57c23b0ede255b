import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from task_recovery.core.record_store import TaskRecordStore
from task_recovery.services.git_service import GitService


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def clock():
    """A deterministic clock advancing one second per call."""
    state = {"now": datetime(2024, 1, 1, tzinfo=timezone.utc)}

    def tick():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return tick


@pytest.fixture
def data_dir(tmp_path):
    """Workspace data directory (.claude) inside a temporary project."""
    path = tmp_path / ".claude"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir, clock):
    """A task record store on a temporary data directory."""
    return TaskRecordStore(data_dir, clock=clock)


@pytest.fixture
def mock_git():
    """A GitService double describing a clean repository on main."""
    git = MagicMock(spec=GitService)
    git.get_current_branch.return_value = "main"
    git.is_clean.return_value = True
    git.get_uncommitted_changes.return_value = []
    git.list_stashes.return_value = []
    git.is_rebase_in_progress.return_value = False
    git.ref_exists.return_value = True
    git.branch_exists_local.return_value = False
    return git


def _run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


@pytest.fixture
def run_git():
    """Run git in a repository and return its stripped stdout."""
    return _run_git


@pytest.fixture
def git_repo(tmp_path):
    """A real git repository on branch main with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    _run_git(repo, "init", "-q")
    _run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _run_git(repo, "config", "user.email", "tests@example.com")
    _run_git(repo, "config", "user.name", "Tests")
    _run_git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("readme\n")
    _run_git(repo, "add", "README.md")
    _run_git(repo, "commit", "-q", "-m", "initial")
    return repo
