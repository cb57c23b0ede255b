"""Git service for abstracting Git operations."""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .exceptions import BranchNotFoundError, GitServiceError, RepositoryUnavailableError

logger = logging.getLogger(__name__)


class GitService:
    """Service for Git operations with clean abstractions."""

    def __init__(self, repo_path: Optional[Path] = None, exclude_paths: Sequence[str] = ()):
        """Initialize Git service.

        Args:
            repo_path: Path to the git repository (defaults to current directory)
            exclude_paths: Paths, relative to the repository root, that status
                and stash never report or touch

        Raises:
            RepositoryUnavailableError: If the path is not inside a git repository
        """
        self.repo_path = repo_path or Path.cwd()
        self.exclude_paths = tuple(exclude_paths)
        if not self._is_git_repo():
            raise RepositoryUnavailableError(f"{self.repo_path} is not a git repository")

    def _is_git_repo(self) -> bool:
        """Check if the current path is a git repository."""
        try:
            self._run_git_command(["rev-parse", "--git-dir"])
            return True
        except RepositoryUnavailableError:
            raise
        except GitServiceError:
            return False

    def _run_git_command(
        self, args: list[str], check: bool = True, capture_output: bool = True
    ) -> subprocess.CompletedProcess:
        """Run a git command with proper error handling.

        Args:
            args: Git command arguments
            check: Check return code
            capture_output: Capture stdout and stderr

        Returns:
            Completed process result

        Raises:
            RepositoryUnavailableError: If git cannot be executed at all
            GitServiceError: If command fails
        """
        cmd = ["git"] + args
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_path,
                check=check,
                capture_output=capture_output,
                text=True,
            )
            return result
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr if e.stderr else str(e)
            raise GitServiceError(f"Git command failed: {error_msg}") from e
        except (FileNotFoundError, NotADirectoryError) as e:
            raise RepositoryUnavailableError(f"Unable to run git in {self.repo_path}: {e}") from e
        except Exception as e:
            raise GitServiceError(f"Unexpected error running git command: {e}") from e

    def get_repo_root(self) -> Path:
        """Get the top-level directory of the working tree."""
        result = self._run_git_command(["rev-parse", "--show-toplevel"])
        return Path(result.stdout.strip())

    # Branches

    def checkout_branch(self, branch_name: str, create: bool = False) -> None:
        """Checkout a git branch.

        Args:
            branch_name: Name of the branch
            create: Create branch if it doesn't exist

        Raises:
            BranchNotFoundError: If branch doesn't exist and create=False
            GitServiceError: If checkout fails
        """
        if not create and not self.branch_exists_local(branch_name):
            raise BranchNotFoundError(f"Branch '{branch_name}' not found locally")

        args = ["checkout"]
        if create:
            args.append("-b")
        args.append(branch_name)
        self._run_git_command(args)
        logger.info(f"Checked out branch: {branch_name}")

    def push_branch(
        self, branch_name: str, remote: str = "origin", set_upstream: bool = True
    ) -> None:
        """Push a branch to remote.

        Args:
            branch_name: Branch name
            remote: Remote name
            set_upstream: Set upstream tracking

        Raises:
            GitServiceError: If push fails
        """
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args.extend([remote, branch_name])

        self._run_git_command(args)
        logger.info(f"Pushed branch: {branch_name} to {remote}")

    def branch_exists_local(self, branch_name: str) -> bool:
        """Check if a branch exists locally.

        Args:
            branch_name: Name of the branch

        Returns:
            True if branch exists locally
        """
        result = self._run_git_command(
            ["show-ref", "--verify", "--quiet", f"refs/heads/{branch_name}"], check=False
        )
        return result.returncode == 0

    def get_current_branch(self) -> str:
        """Get the current branch name.

        Returns:
            Current branch name, or "HEAD" when detached

        Raises:
            GitServiceError: If unable to get branch
        """
        result = self._run_git_command(["rev-parse", "--abbrev-ref", "HEAD"])
        branch = result.stdout.strip()
        if not branch:
            raise GitServiceError("Unable to determine current branch")
        return branch

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        """Delete a local branch.

        Args:
            branch_name: Name of the branch
            force: Force delete even if not merged

        Raises:
            BranchNotFoundError: If branch doesn't exist
            GitServiceError: If deletion fails
        """
        if not self.branch_exists_local(branch_name):
            raise BranchNotFoundError(f"Branch '{branch_name}' not found locally")

        args = ["branch", "-d" if not force else "-D", branch_name]
        self._run_git_command(args)
        logger.info(f"Deleted branch: {branch_name}")

    # Commits

    def ref_exists(self, ref: str) -> bool:
        """Check if a reference resolves to a commit."""
        result = self._run_git_command(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], check=False
        )
        return result.returncode == 0

    def get_commit_hash(self, ref: str = "HEAD") -> str:
        """Get the full commit hash of a reference.

        Args:
            ref: Git reference (default: HEAD)

        Returns:
            Commit hash

        Raises:
            GitServiceError: If unable to get hash
        """
        result = self._run_git_command(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        return result.stdout.strip()

    def count_commits(self, base: str, tip: str) -> int:
        """Count commits reachable from ``tip`` but not from ``base``."""
        result = self._run_git_command(["rev-list", "--count", f"{base}..{tip}"])
        return int(result.stdout.strip() or 0)

    def reset_hard(self, commit: str) -> None:
        """Reset the working tree and current branch to a commit.

        Raises:
            GitServiceError: If the reset fails
        """
        self._run_git_command(["reset", "--hard", commit])
        logger.info(f"Reset to commit: {commit}")

    # Working tree

    def _excluded_pathspec(self) -> list[str]:
        if not self.exclude_paths:
            return []
        return ["--"] + [f":(top,exclude){path}" for path in self.exclude_paths]

    def get_uncommitted_changes(self) -> list[str]:
        """Get list of files with uncommitted changes, including untracked files.

        Returns:
            List of file paths with changes
        """
        result = self._run_git_command(["status", "--porcelain", *self._excluded_pathspec()])
        if not result.stdout.strip():
            return []

        files = []
        for line in result.stdout.rstrip().split('\n'):
            if line:
                # Status format: "XY filename" where XY are two status characters
                # followed by a space, then the filename
                files.append(line[3:])
        return files

    def is_clean(self) -> bool:
        """Check if the working tree has no uncommitted changes."""
        return not self.get_uncommitted_changes()

    # Stash

    def stash_changes(self, message: Optional[str] = None, include_untracked: bool = True) -> None:
        """Stash current changes.

        Args:
            message: Stash message
            include_untracked: Also stash untracked files

        Raises:
            GitServiceError: If stash fails
        """
        args = ["stash", "push"]
        if include_untracked:
            args.append("--include-untracked")
        if message:
            args.extend(["-m", message])
        args.extend(self._excluded_pathspec())

        self._run_git_command(args)
        logger.info("Stashed changes")

    def list_stashes(self) -> list[tuple[str, str]]:
        """List stashes, most recent first.

        Returns:
            List of (stash ref, subject) tuples
        """
        result = self._run_git_command(["stash", "list", "--format=%gd%x00%gs"])
        stashes = []
        for line in result.stdout.splitlines():
            if "\x00" in line:
                ref, subject = line.split("\x00", 1)
                stashes.append((ref, subject))
        return stashes

    def stash_pop(self, ref: Optional[str] = None) -> None:
        """Pop a stash (the most recent one by default).

        Git keeps the stash when the pop reports conflicts.

        Raises:
            GitServiceError: If pop fails
        """
        args = ["stash", "pop"]
        if ref:
            args.append(ref)
        self._run_git_command(args)
        logger.info(f"Popped stash {ref or 'stash@{0}'}")

    # Remote and rebase

    def fetch(self, remote: str = "origin", branch: Optional[str] = None) -> None:
        """Fetch from a remote.

        Raises:
            GitServiceError: If fetch fails
        """
        args = ["fetch", remote]
        if branch:
            args.append(branch)
        self._run_git_command(args)
        logger.info(f"Fetched {branch or 'all branches'} from {remote}")

    def rebase(self, onto: str) -> None:
        """Rebase the current branch onto ``onto``.

        Raises:
            GitServiceError: If the rebase stops, e.g. on conflicts
        """
        self._run_git_command(["rebase", onto])
        logger.info(f"Rebased onto: {onto}")

    def rebase_abort(self) -> None:
        """Abort an in-progress rebase."""
        self._run_git_command(["rebase", "--abort"])
        logger.info("Rebase aborted")

    def is_rebase_in_progress(self) -> bool:
        """Check if a rebase has been started but not finished."""
        for state_dir in ("rebase-merge", "rebase-apply"):
            result = self._run_git_command(["rev-parse", "--git-path", state_dir])
            path = Path(result.stdout.strip())
            if not path.is_absolute():
                path = self.repo_path / path
            if path.exists():
                return True
        return False
