"""Crash scenario classification models."""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Scenario(Enum):
    """Named classification of a task's crash state."""
    PRE_WORK_CRASH = "pre_work_crash"
    POST_WORK_NO_REVIEW = "post_work_no_review"
    REVIEW_PENDING = "review_pending"
    UNKNOWN = "unknown"


class RecoveryOption(Enum):
    """Recovery choices offered to the caller for a scenario."""
    RETRY = "retry"
    MODIFY_PROMPT = "modify_prompt"
    CANCEL = "cancel"
    CREATE_REVIEW_REQUEST = "create_review_request"
    REVIEW_WORK_MANUALLY = "review_work_manually"
    MODIFY_APPROACH = "modify_approach"
    CHECK_REVIEW_STATUS = "check_review_status"
    AWAIT_MERGE = "await_merge"
    ADDRESS_FEEDBACK = "address_feedback"
    INVESTIGATE = "investigate"
    MANUAL_RECOVERY = "manual_recovery"


@dataclass(frozen=True)
class ScenarioAnalysis:
    """Result of classifying a task: scenario, explanation and ranked options."""
    scenario: Scenario
    description: str
    recovery_options: Tuple[RecoveryOption, ...]
