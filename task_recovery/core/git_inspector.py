"""Read-only git state inspection used for crash classification."""
import logging
from typing import Optional

from task_recovery.models.git_state import BranchState, GitStateSnapshot
from task_recovery.services.exceptions import BranchNotFoundError
from task_recovery.services.git_service import GitService

logger = logging.getLogger(__name__)


class GitStateInspector:
    """Query current repository facts without changing anything."""

    def __init__(self, git_service: GitService, reference_branch: str = "main"):
        self.git_service = git_service
        self.reference_branch = reference_branch

    def current_branch(self) -> str:
        return self.git_service.get_current_branch()

    def is_clean(self) -> bool:
        return self.git_service.is_clean()

    def branch_exists(self, name: str) -> bool:
        return self.git_service.branch_exists_local(name)

    def head_commit(self) -> str:
        """Full-length HEAD commit hash, for exact-match rollback checks."""
        return self.git_service.get_commit_hash("HEAD")

    def files_changed_count(self) -> int:
        return len(self.git_service.get_uncommitted_changes())

    def commits_ahead(self, branch: str, reference: Optional[str] = None) -> int:
        """Count commits on ``branch`` that are not on ``reference``.

        Returns 0 when ``branch`` does not exist.

        Raises:
            BranchNotFoundError: If the reference branch does not exist
        """
        reference = reference or self.reference_branch
        if not self.git_service.ref_exists(branch):
            return 0
        if not self.git_service.ref_exists(reference):
            raise BranchNotFoundError(f"Reference branch '{reference}' does not exist")
        return self.git_service.count_commits(reference, branch)

    def snapshot(self) -> GitStateSnapshot:
        """Capture the repository state as a whole."""
        changed = self.files_changed_count()
        snapshot = GitStateSnapshot(
            current_branch=self.current_branch(),
            is_clean=changed == 0,
            commits_ahead_of_reference=self.commits_ahead("HEAD"),
            files_changed=changed,
        )
        logger.debug(f"Git state: {snapshot}")
        return snapshot

    def branch_state(self, name: Optional[str]) -> BranchState:
        """Describe a task branch; a task without a branch reports exists=False."""
        if not name:
            return BranchState(exists=False)
        if not self.branch_exists(name):
            return BranchState(exists=False, name=name)
        return BranchState(exists=True, name=name, commits_ahead=self.commits_ahead(name))
