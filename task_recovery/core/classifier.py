"""Crash scenario classification.

A pure decision procedure: rules are evaluated in order and the first match
wins, so later rules may assume earlier ones did not fire. The last rule is a
catch-all, which makes the classification total.
"""
from typing import Optional

from task_recovery.models.git_state import BranchState
from task_recovery.models.scenario import RecoveryOption, Scenario, ScenarioAnalysis
from task_recovery.models.task import TaskRecord

PRE_WORK_OPTIONS = (
    RecoveryOption.RETRY,
    RecoveryOption.MODIFY_PROMPT,
    RecoveryOption.CANCEL,
)
POST_WORK_OPTIONS = (
    RecoveryOption.CREATE_REVIEW_REQUEST,
    RecoveryOption.REVIEW_WORK_MANUALLY,
    RecoveryOption.MODIFY_APPROACH,
)
REVIEW_PENDING_OPTIONS = (
    RecoveryOption.CHECK_REVIEW_STATUS,
    RecoveryOption.AWAIT_MERGE,
    RecoveryOption.ADDRESS_FEEDBACK,
)
UNKNOWN_OPTIONS = (
    RecoveryOption.INVESTIGATE,
    RecoveryOption.MANUAL_RECOVERY,
)


def classify(
    branch_name: Optional[str],
    review_ref: Optional[str],
    branch_exists: bool,
    commits_ahead: int,
) -> ScenarioAnalysis:
    """Classify a task's crash state.

    Args:
        branch_name: Branch recorded for the task, if any
        review_ref: Review request id recorded for the task, if any
        branch_exists: Whether ``branch_name`` exists in the repository
        commits_ahead: Commits on ``branch_name`` not on the reference branch

    Returns:
        The scenario with its description and ranked recovery options
    """
    if branch_name and not branch_exists:
        return ScenarioAnalysis(
            Scenario.PRE_WORK_CRASH,
            "Task spawned but no work started (branch not created)",
            PRE_WORK_OPTIONS,
        )

    if branch_name and commits_ahead == 0:
        return ScenarioAnalysis(
            Scenario.PRE_WORK_CRASH,
            "Task spawned but no work started (branch empty)",
            PRE_WORK_OPTIONS,
        )

    if branch_name and commits_ahead > 0 and not review_ref:
        return ScenarioAnalysis(
            Scenario.POST_WORK_NO_REVIEW,
            "Work done but review request not created",
            POST_WORK_OPTIONS,
        )

    # Trusted without re-checking the branch: a stale reference still lands here.
    if review_ref:
        return ScenarioAnalysis(
            Scenario.REVIEW_PENDING,
            "Review request created but not yet merged",
            REVIEW_PENDING_OPTIONS,
        )

    return ScenarioAnalysis(
        Scenario.UNKNOWN,
        "Unable to determine crash scenario",
        UNKNOWN_OPTIONS,
    )


def classify_record(record: TaskRecord, branch_state: BranchState) -> ScenarioAnalysis:
    """Classify a record using a freshly computed branch state."""
    return classify(
        branch_name=record.branch_name,
        review_ref=record.review_ref,
        branch_exists=branch_state.exists,
        commits_ahead=branch_state.commits_ahead,
    )
