"""Crash-state report models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class TaskContext(BaseModel):
    """What the crashed task was asked to do."""
    model: str
    prompt: str
    last_good_commit: Optional[str] = None
    branch_name: Optional[str] = None


class GitStateReport(BaseModel):
    """Repository state at report time."""
    current_branch: str
    is_clean: bool
    commits_ahead_of_reference: int
    files_changed: int


class BranchStateReport(BaseModel):
    """Task branch state at report time."""
    exists: bool
    name: Optional[str] = None
    commits_ahead: int = 0


class ReviewStateReport(BaseModel):
    """Review request state at report time."""
    exists: bool
    id: Optional[str] = None
    status: Optional[str] = None


class ScenarioReport(BaseModel):
    """Classified scenario with its recovery options."""
    scenario: str
    description: str
    recovery_options: List[str] = Field(default_factory=list)


class CrashStateReport(BaseModel):
    """Structured crash-state report consumed by a human or delegating caller."""

    status: str = "crash_detected"
    task_id: str
    task_context: TaskContext
    git_state: GitStateReport
    branch_state: BranchStateReport
    review_state: ReviewStateReport
    scenario_analysis: ScenarioReport
    recovery_required: bool = True

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the report as JSON."""
        return self.model_dump_json(indent=indent)

    @classmethod
    def from_json(cls, data: str) -> "CrashStateReport":
        """Parse a report previously produced by :meth:`to_json`."""
        return cls.model_validate_json(data)
