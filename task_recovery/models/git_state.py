"""Git state snapshot models."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GitStateSnapshot:
    """Repository facts at one point in time. Never persisted."""
    current_branch: str
    is_clean: bool
    commits_ahead_of_reference: int
    files_changed: int


@dataclass(frozen=True)
class BranchState:
    """State of a task branch relative to the reference branch."""
    exists: bool
    name: Optional[str] = None
    commits_ahead: int = 0
