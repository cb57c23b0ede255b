"""Crash-state report assembly."""
import logging
from typing import Mapping, Optional

from task_recovery.core.classifier import classify_record
from task_recovery.core.constants import CURRENT_TASK_KEY
from task_recovery.core.git_inspector import GitStateInspector
from task_recovery.core.record_store import TaskRecordStore
from task_recovery.models.report import (
    BranchStateReport,
    CrashStateReport,
    GitStateReport,
    ReviewStateReport,
    ScenarioReport,
    TaskContext,
)
from task_recovery.models.task import TaskRecord
from task_recovery.services.exceptions import (
    NoActiveTaskError,
    RecordNotFoundError,
    ValidationFailedError,
)
from task_recovery.services.review_service import ReviewService

logger = logging.getLogger(__name__)


class CrashStateReporter:
    """Build a crash-state report for the session's current task."""

    def __init__(
        self,
        store: TaskRecordStore,
        inspector: GitStateInspector,
        session: Mapping[str, str],
        review_service: Optional[ReviewService] = None,
    ):
        """Initialize reporter.

        Args:
            store: Task record store
            inspector: Git state inspector for the workspace
            session: Session pointers; ``current_task_id`` names the task
            review_service: Used only when a report asks for review status
        """
        self.store = store
        self.inspector = inspector
        self.session = session
        self.review_service = review_service

    def current_record(self) -> TaskRecord:
        """Load the record the session points at.

        Raises:
            NoActiveTaskError: If no task is current or its record is missing
            ValidationFailedError: If the record is damaged
        """
        task_id = self.session.get(CURRENT_TASK_KEY)
        if not task_id:
            raise NoActiveTaskError("No active task in session")
        if not self.store.validate(task_id):
            if not self.store.exists(task_id):
                raise NoActiveTaskError(f"Task record not found: {task_id}")
            raise ValidationFailedError(f"Task record {task_id} failed validation")
        try:
            return self.store.get(task_id)
        except RecordNotFoundError as e:
            raise NoActiveTaskError(f"Task record not found: {task_id}") from e

    def _review_state(self, record: TaskRecord, check_review: bool) -> ReviewStateReport:
        if not record.review_ref:
            return ReviewStateReport(exists=False)
        status = "unknown"
        if check_review and self.review_service is not None:
            status = self.review_service.status(record.review_ref).value
        return ReviewStateReport(exists=True, id=record.review_ref, status=status)

    def report(self, check_review: bool = False) -> CrashStateReport:
        """Assemble the crash-state report; any failure aborts it."""
        record = self.current_record()
        snapshot = self.inspector.snapshot()
        branch_state = self.inspector.branch_state(record.branch_name)
        review_state = self._review_state(record, check_review)
        analysis = classify_record(record, branch_state)
        logger.info(f"Task {record.id} classified as {analysis.scenario.value}")

        return CrashStateReport(
            task_id=record.id,
            task_context=TaskContext(
                model=record.model,
                prompt=record.prompt,
                last_good_commit=record.last_good_commit,
                branch_name=record.branch_name,
            ),
            git_state=GitStateReport(
                current_branch=snapshot.current_branch,
                is_clean=snapshot.is_clean,
                commits_ahead_of_reference=snapshot.commits_ahead_of_reference,
                files_changed=snapshot.files_changed,
            ),
            branch_state=BranchStateReport(
                exists=branch_state.exists,
                name=branch_state.name,
                commits_ahead=branch_state.commits_ahead,
            ),
            review_state=review_state,
            scenario_analysis=ScenarioReport(
                scenario=analysis.scenario.value,
                description=analysis.description,
                recovery_options=[option.value for option in analysis.recovery_options],
            ),
        )
