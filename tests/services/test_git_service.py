"""Tests for Git service."""

from pathlib import Path
from unittest.mock import Mock, patch
import shutil
import subprocess
import pytest

from task_recovery.services.git_service import GitService
from task_recovery.services.exceptions import (
    GitServiceError,
    BranchNotFoundError,
    RepositoryUnavailableError,
)

GIT_KWARGS = dict(check=True, capture_output=True, text=True)


@pytest.fixture
def service():
    with patch.object(GitService, '_is_git_repo', return_value=True):
        return GitService(Path("/test/repo"))


class TestGitService:
    """Test cases for GitService."""

    @patch('task_recovery.services.git_service.GitService._is_git_repo')
    def test_init_success(self, mock_is_git_repo):
        """Test successful initialization."""
        mock_is_git_repo.return_value = True
        service = GitService(Path("/test/repo"))
        assert service.repo_path == Path("/test/repo")

    @patch('task_recovery.services.git_service.GitService._is_git_repo')
    def test_init_not_git_repo(self, mock_is_git_repo):
        """Test initialization in non-git directory."""
        mock_is_git_repo.return_value = False
        with pytest.raises(RepositoryUnavailableError, match="is not a git repository"):
            GitService(Path("/test/repo"))

    @patch('subprocess.run')
    def test_init_git_missing(self, mock_run):
        """Test initialization when git cannot be executed."""
        mock_run.side_effect = FileNotFoundError("git")
        with pytest.raises(RepositoryUnavailableError):
            GitService(Path("/test/repo"))

    @patch('subprocess.run')
    def test_run_git_command_success(self, mock_run, service):
        """Test successful git command execution."""
        mock_result = Mock()
        mock_result.stdout = "output"
        mock_result.stderr = ""
        mock_run.return_value = mock_result

        result = service._run_git_command(["status"])

        assert result == mock_result
        mock_run.assert_called_once_with(
            ["git", "status"],
            cwd=service.repo_path,
            check=True,
            capture_output=True,
            text=True
        )

    @patch('subprocess.run')
    def test_run_git_command_failure(self, mock_run, service):
        """Test git command failure."""
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["git", "status"], stderr="error message"
        )

        with pytest.raises(GitServiceError, match="Git command failed: error message"):
            service._run_git_command(["status"])

    @patch('subprocess.run')
    def test_checkout_branch_create(self, mock_run, service):
        """Test creating and checking out new branch."""
        mock_run.return_value = Mock(stdout="", stderr="")

        service.checkout_branch("new-branch", create=True)

        mock_run.assert_called_with(
            ["git", "checkout", "-b", "new-branch"], cwd=service.repo_path, **GIT_KWARGS
        )

    def test_checkout_branch_not_found(self, service):
        """Test checkout of a missing branch."""
        with patch.object(service, 'branch_exists_local', return_value=False):
            with pytest.raises(BranchNotFoundError):
                service.checkout_branch("missing")

    @patch('subprocess.run')
    def test_push_branch(self, mock_run, service):
        """Test pushing with upstream tracking."""
        mock_run.return_value = Mock(stdout="", stderr="")

        service.push_branch("feature/x", "origin")

        mock_run.assert_called_once_with(
            ["git", "push", "-u", "origin", "feature/x"], cwd=service.repo_path, **GIT_KWARGS
        )

    @patch('subprocess.run')
    def test_branch_exists_local(self, mock_run, service):
        """Test local branch existence checks."""
        mock_run.return_value = Mock(returncode=0)
        assert service.branch_exists_local("main") is True

        mock_run.return_value = Mock(returncode=1)
        assert service.branch_exists_local("main") is False

        mock_run.assert_called_with(
            ["git", "show-ref", "--verify", "--quiet", "refs/heads/main"],
            cwd=service.repo_path, check=False, capture_output=True, text=True
        )

    @patch('subprocess.run')
    def test_get_current_branch(self, mock_run, service):
        """Test current branch lookup."""
        mock_run.return_value = Mock(stdout="feature/task-1\n")
        assert service.get_current_branch() == "feature/task-1"

    @patch('subprocess.run')
    def test_get_current_branch_empty(self, mock_run, service):
        """Test current branch lookup with empty output."""
        mock_run.return_value = Mock(stdout="")
        with pytest.raises(GitServiceError, match="Unable to determine current branch"):
            service.get_current_branch()

    @patch('subprocess.run')
    def test_delete_branch_force(self, mock_run, service):
        """Test force deletion."""
        mock_run.return_value = Mock(stdout="", stderr="")

        with patch.object(service, 'branch_exists_local', return_value=True):
            service.delete_branch("feature/x", force=True)

        mock_run.assert_called_once_with(
            ["git", "branch", "-D", "feature/x"], cwd=service.repo_path, **GIT_KWARGS
        )

    def test_delete_branch_not_found(self, service):
        """Test deleting a branch that does not exist."""
        with patch.object(service, 'branch_exists_local', return_value=False):
            with pytest.raises(BranchNotFoundError, match="not found locally"):
                service.delete_branch("feature/x")

    @patch('subprocess.run')
    def test_ref_exists(self, mock_run, service):
        """Test commit reference resolution."""
        mock_run.return_value = Mock(returncode=0)
        assert service.ref_exists("main") is True
        mock_run.assert_called_once_with(
            ["git", "rev-parse", "--verify", "--quiet", "main^{commit}"],
            cwd=service.repo_path, check=False, capture_output=True, text=True
        )

    @patch('subprocess.run')
    def test_get_commit_hash(self, mock_run, service):
        """Test full commit hash lookup."""
        mock_run.return_value = Mock(stdout="a" * 40 + "\n")
        assert service.get_commit_hash() == "a" * 40

    @patch('subprocess.run')
    def test_count_commits(self, mock_run, service):
        """Test counting commits between refs."""
        mock_run.return_value = Mock(stdout="3\n")

        assert service.count_commits("main", "feature/x") == 3
        mock_run.assert_called_once_with(
            ["git", "rev-list", "--count", "main..feature/x"], cwd=service.repo_path, **GIT_KWARGS
        )

    @patch('subprocess.run')
    def test_get_uncommitted_changes(self, mock_run, service):
        """Test porcelain status parsing."""
        mock_run.return_value = Mock(stdout=" M src/app.py\n?? notes.txt\n")
        assert service.get_uncommitted_changes() == ["src/app.py", "notes.txt"]

    @patch('subprocess.run')
    def test_is_clean(self, mock_run, service):
        """Test clean working tree detection."""
        mock_run.return_value = Mock(stdout="")
        assert service.is_clean() is True

    @patch('subprocess.run')
    def test_stash_changes(self, mock_run, service):
        """Test stashing with untracked files and a message."""
        mock_run.return_value = Mock(stdout="", stderr="")

        service.stash_changes("task=task-1 checkpoint=pre_rebase")

        mock_run.assert_called_once_with(
            ["git", "stash", "push", "--include-untracked", "-m", "task=task-1 checkpoint=pre_rebase"],
            cwd=service.repo_path, **GIT_KWARGS
        )

    @patch('subprocess.run')
    def test_excluded_paths_are_left_out(self, mock_run):
        """Test that status and stash skip excluded paths."""
        with patch.object(GitService, '_is_git_repo', return_value=True):
            service = GitService(Path("/test/repo"), exclude_paths=(".claude",))
        mock_run.return_value = Mock(stdout="", stderr="")

        assert service.is_clean() is True
        service.stash_changes("task=task-1 checkpoint=pre_rebase")

        assert mock_run.call_args_list[0][0][0] == [
            "git", "status", "--porcelain", "--", ":(top,exclude).claude"
        ]
        assert mock_run.call_args_list[1][0][0] == [
            "git", "stash", "push", "--include-untracked", "-m", "task=task-1 checkpoint=pre_rebase",
            "--", ":(top,exclude).claude",
        ]

    @patch('subprocess.run')
    def test_list_stashes(self, mock_run, service):
        """Test stash listing."""
        mock_run.return_value = Mock(
            stdout="stash@{0}\x00On main: task=task-1 checkpoint=pre_rebase\nstash@{1}\x00WIP on main\n"
        )
        assert service.list_stashes() == [
            ("stash@{0}", "On main: task=task-1 checkpoint=pre_rebase"),
            ("stash@{1}", "WIP on main"),
        ]

    @patch('subprocess.run')
    def test_stash_pop(self, mock_run, service):
        """Test popping a specific stash."""
        mock_run.return_value = Mock(stdout="", stderr="")
        service.stash_pop("stash@{1}")
        mock_run.assert_called_once_with(
            ["git", "stash", "pop", "stash@{1}"], cwd=service.repo_path, **GIT_KWARGS
        )

    @patch('subprocess.run')
    def test_rebase_failure(self, mock_run, service):
        """Test a conflicting rebase."""
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["git", "rebase", "main"], stderr="CONFLICT (content)"
        )
        with pytest.raises(GitServiceError, match="CONFLICT"):
            service.rebase("main")

    @patch('subprocess.run')
    def test_is_rebase_in_progress(self, mock_run, service, tmp_path):
        """Test rebase state detection through git-path."""
        (tmp_path / "rebase-merge").mkdir()
        mock_run.side_effect = [
            Mock(stdout=str(tmp_path / "rebase-merge") + "\n"),
        ]
        assert service.is_rebase_in_progress() is True

        mock_run.side_effect = [
            Mock(stdout=str(tmp_path / "missing-merge") + "\n"),
            Mock(stdout=str(tmp_path / "missing-apply") + "\n"),
        ]
        assert service.is_rebase_in_progress() is False


class TestGitServiceWithRepository:
    """GitService against a real repository."""

    def test_repo_root_and_head(self, git_repo):
        service = GitService(git_repo)
        assert service.get_repo_root().resolve() == git_repo.resolve()
        assert service.get_current_branch() == "main"
        assert len(service.get_commit_hash()) == 40

    def test_not_a_repository(self, tmp_path):
        if shutil.which('git') is None:
            pytest.skip("git is not installed")
        with pytest.raises(RepositoryUnavailableError):
            GitService(tmp_path)

    def test_stash_round_trip(self, git_repo):
        service = GitService(git_repo)
        (git_repo / "new.txt").write_text("new\n")
        assert not service.is_clean()

        service.stash_changes("task=t checkpoint=pre_rebase")
        assert service.is_clean()
        [(ref, subject)] = service.list_stashes()
        assert ref == "stash@{0}"
        assert "task=t checkpoint=pre_rebase" in subject

        service.stash_pop(ref)
        assert (git_repo / "new.txt").exists()

    def test_excluded_directory_survives_stash(self, git_repo):
        service = GitService(git_repo, exclude_paths=(".claude",))
        (git_repo / ".claude").mkdir()
        (git_repo / ".claude" / "record.patch").write_text("TASK_ID=t\n")
        assert service.is_clean()

        (git_repo / "README.md").write_text("changed\n")
        service.stash_changes("task=t checkpoint=pre_rebase")

        assert service.is_clean()
        assert (git_repo / "README.md").read_text() == "readme\n"
        assert (git_repo / ".claude" / "record.patch").read_text() == "TASK_ID=t\n"
