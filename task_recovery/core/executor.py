"""Recovery actions and composite recovery procedures.

Every atomic action follows the same shape: re-read and validate the record,
check preconditions, perform one effect, then confirm a post-condition. An
action either returns an :class:`ActionResult` or raises a
:class:`RecoveryError` subclass naming the action; nothing is retried.
"""
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from task_recovery.core.constants import (
    CLEANUP_NOTE_TEXT,
    REVIEW_TITLE_SUFFIX,
    STASH_MESSAGE_TEMPLATE,
)
from task_recovery.core.record_store import TaskRecordStore
from task_recovery.models.config import RecoveryConfig
from task_recovery.models.notes import NoteStatus
from task_recovery.models.recovery import ActionResult, ProcedureResult
from task_recovery.models.task import TaskRecord, TaskStatus
from task_recovery.services.exceptions import (
    ActionFailedError,
    GitServiceError,
    PostconditionFailedError,
    PreconditionFailedError,
    RecoveryError,
    ServiceError,
    ValidationFailedError,
)
from task_recovery.services.git_service import GitService
from task_recovery.services.review_service import ReviewService
from task_recovery.utils.note_store import NoteStore

logger = logging.getLogger(__name__)

Step = Callable[[TaskRecord], ActionResult]

ACTIONS = (
    "reset_to_commit",
    "delete_branch",
    "mark_discarded",
    "cleanup_record",
    "stash_changes",
    "rebase_on_main",
    "apply_stash",
    "create_review_request",
    "check_review_status",
    "cleanup_orphaned_task",
    "post_work_recovery",
)
DESTRUCTIVE_ACTIONS = ("reset_to_commit", "delete_branch", "mark_discarded", "cleanup_orphaned_task")


def review_title(prompt: str, max_length: int) -> str:
    """Build a review title from the first line of a prompt."""
    first_line = prompt.strip().splitlines()[0] if prompt.strip() else "Task"
    if len(first_line) > max_length:
        first_line = first_line[: max_length - 3].rstrip() + "..."
    return first_line + REVIEW_TITLE_SUFFIX


class RecoveryExecutor:
    """Run validated recovery actions against a task and its workspace."""

    def __init__(
        self,
        store: TaskRecordStore,
        git: GitService,
        config: Optional[RecoveryConfig] = None,
        review_service: Optional[ReviewService] = None,
        note_store: Optional[NoteStore] = None,
    ):
        self.store = store
        self.git = git
        self.config = config or RecoveryConfig()
        self.review_service = review_service
        self.note_store = note_store

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, record: TaskRecord) -> TaskRecord:
        """Re-read the record so actions never act on a stale copy."""
        current = self.store.get(record.id)
        if not self.store.validate(record.id):
            raise ValidationFailedError(f"Task {record.id} failed validation")
        return current

    @contextmanager
    def _performing(self, action: str) -> Iterator[None]:
        """Report any service failure inside the block as a failed action."""
        try:
            yield
        except RecoveryError:
            raise
        except ServiceError as e:
            raise ActionFailedError(action, str(e)) from e

    def _task_stashes(self, task_id: str) -> List[str]:
        """Stash refs tagged for a task, most recent first."""
        message = STASH_MESSAGE_TEMPLATE.format(task_id=task_id)
        return [ref for ref, subject in self.git.list_stashes() if message in subject]

    # ------------------------------------------------------------------
    # Atomic actions
    # ------------------------------------------------------------------

    def reset_to_commit(self, record: TaskRecord, commit: Optional[str] = None) -> ActionResult:
        """Hard-reset the workspace to ``commit`` (default: the task's last good commit).

        Discards uncommitted changes irreversibly.
        """
        action = "reset_to_commit"
        record = self._load(record)
        commit = commit or record.last_good_commit
        if not commit:
            raise PreconditionFailedError(action, f"Task {record.id} has no last good commit")
        if not self.git.ref_exists(commit):
            raise PreconditionFailedError(action, f"Commit {commit} does not exist")

        with self._performing(action):
            target = self.git.get_commit_hash(commit)
            self.git.reset_hard(target)
            head = self.git.get_commit_hash("HEAD")

        if head != target:
            raise PostconditionFailedError(action, target, head)
        logger.info(f"Task {record.id}: reset to {target}")
        return ActionResult(action, f"Reset to {target[:8]}", value=target)

    def delete_branch(self, record: TaskRecord) -> ActionResult:
        """Force-delete the task branch; succeeds without change if it is absent."""
        action = "delete_branch"
        record = self._load(record)
        branch = record.branch_name
        if not branch:
            return ActionResult(action, "No branch recorded", changed=False)
        if not self.git.branch_exists_local(branch):
            return ActionResult(action, f"Branch {branch} does not exist", value=branch, changed=False)
        if self.git.get_current_branch() == branch:
            raise PreconditionFailedError(action, f"Branch {branch} is checked out")

        with self._performing(action):
            self.git.delete_branch(branch, force=True)
            still_exists = self.git.branch_exists_local(branch)

        if still_exists:
            raise PostconditionFailedError(action, "branch absent", "branch present")
        logger.info(f"Task {record.id}: deleted branch {branch}")
        return ActionResult(action, f"Deleted branch {branch}", value=branch)

    def mark_discarded(self, record: TaskRecord) -> ActionResult:
        """Move the task to discarded and retire its active shared notes."""
        action = "mark_discarded"
        record = self._load(record)

        with self._performing(action):
            self.store.set_status(record.id, TaskStatus.DISCARDED)
            self.store.append_note(record.id, f"Marked discarded (was {record.status.value})")
            if self.note_store is not None:
                for entry in self.note_store.find(f"Task: {record.id}", NoteStatus.ACTIVE):
                    self.note_store.mark(entry.id, NoteStatus.DISCARD)
            status = self.store.get(record.id).status

        if status != TaskStatus.DISCARDED:
            raise PostconditionFailedError(action, TaskStatus.DISCARDED.value, status.value)
        logger.info(f"Task {record.id}: marked discarded")
        return ActionResult(action, "Marked discarded", value=status)

    def cleanup_record(self, record: TaskRecord) -> ActionResult:
        """Append the orphaned-task cleanup note."""
        action = "cleanup_record"
        record = self._load(record)

        with self._performing(action):
            self.store.append_note(record.id, CLEANUP_NOTE_TEXT)

        if not self.store.validate(record.id):
            raise PostconditionFailedError(action, "valid record", "invalid record")
        return ActionResult(action, CLEANUP_NOTE_TEXT)

    def stash_changes(self, record: TaskRecord) -> ActionResult:
        """Stash uncommitted and untracked changes under a task-tagged message."""
        action = "stash_changes"
        record = self._load(record)
        if self.git.is_clean():
            return ActionResult(action, "Working tree already clean", changed=False)

        with self._performing(action):
            self.git.stash_changes(STASH_MESSAGE_TEMPLATE.format(task_id=record.id))
            clean = self.git.is_clean()
            stashes = self._task_stashes(record.id)

        if not clean:
            raise PostconditionFailedError(action, "clean working tree", "uncommitted changes")
        ref = stashes[0] if stashes else None
        logger.info(f"Task {record.id}: stashed changes as {ref}")
        return ActionResult(action, f"Stashed changes as {ref}", value=ref)

    def rebase_on_main(self, record: TaskRecord) -> ActionResult:
        """Rebase the checked-out task branch onto the reference branch.

        A conflicting rebase is aborted before the failure is raised, so the
        branch is left where it was.
        """
        action = "rebase_on_main"
        record = self._load(record)
        current = self.git.get_current_branch()
        if record.branch_name and current != record.branch_name:
            raise PreconditionFailedError(
                action, f"Expected branch {record.branch_name} checked out, found {current}"
            )
        if self.git.is_rebase_in_progress():
            raise PreconditionFailedError(action, "A rebase is already in progress")

        target = self.config.rebase_target
        try:
            if self.config.remote:
                self.git.fetch(self.config.remote, self.config.reference_branch)
            self.git.rebase(target)
        except GitServiceError as e:
            if self.git.is_rebase_in_progress():
                with self._performing(action):
                    self.git.rebase_abort()
            raise ActionFailedError(action, f"Rebase onto {target} failed: {e}") from e

        with self._performing(action):
            in_progress = self.git.is_rebase_in_progress()
            head_resolves = self.git.ref_exists("HEAD")
        if in_progress or not head_resolves:
            raise PostconditionFailedError(action, "finished rebase", "rebase incomplete")
        logger.info(f"Task {record.id}: rebased {current} onto {target}")
        return ActionResult(action, f"Rebased {current} onto {target}", value=target)

    def apply_stash(self, record: TaskRecord) -> ActionResult:
        """Pop the most recent stash tagged for this task, if there is one."""
        action = "apply_stash"
        record = self._load(record)
        stashes = self._task_stashes(record.id)
        if not stashes:
            return ActionResult(action, "No stash to apply", changed=False)

        ref = stashes[0]
        try:
            self.git.stash_pop(ref)
        except GitServiceError as e:
            raise ActionFailedError(action, f"Could not apply {ref}, stash retained: {e}") from e

        with self._performing(action):
            remaining = len(self._task_stashes(record.id))
        if remaining != len(stashes) - 1:
            raise PostconditionFailedError(action, f"{len(stashes) - 1} stash(es)", f"{remaining} stash(es)")
        logger.info(f"Task {record.id}: applied {ref}")
        return ActionResult(action, f"Applied {ref}", value=ref)

    def create_review_request(self, record: TaskRecord) -> ActionResult:
        """Push the task branch and open a review request for it."""
        action = "create_review_request"
        record = self._load(record)
        if self.review_service is None:
            raise PreconditionFailedError(action, "No review service configured")
        if not record.branch_name:
            raise PreconditionFailedError(action, f"Task {record.id} has no branch")
        if record.review_ref:
            raise PreconditionFailedError(action, f"Task {record.id} already has review {record.review_ref}")
        if not self.git.branch_exists_local(record.branch_name):
            raise PreconditionFailedError(action, f"Branch {record.branch_name} does not exist")

        title = review_title(record.prompt, self.config.review_title_length)
        with self._performing(action):
            if self.config.remote:
                self.git.push_branch(record.branch_name, self.config.remote)
            ref = self.review_service.create(
                record.branch_name, self.config.reference_branch, title, f"Task: {record.id}"
            )
            self.store.update(record.id, review_ref=ref)
            stored = self.store.get(record.id).review_ref

        if stored != ref:
            raise PostconditionFailedError(action, ref, str(stored))
        logger.info(f"Task {record.id}: created review {ref}")
        return ActionResult(action, f"Created review request {ref}", value=ref)

    def check_review_status(self, record: TaskRecord) -> ActionResult:
        """Query the remote state of the task's review request."""
        action = "check_review_status"
        record = self._load(record)
        if self.review_service is None:
            raise PreconditionFailedError(action, "No review service configured")
        if not record.review_ref:
            raise PreconditionFailedError(action, f"Task {record.id} has no review request")

        with self._performing(action):
            status = self.review_service.status(record.review_ref)
        return ActionResult(
            action, f"Review {record.review_ref} is {status.value}", value=status, changed=False
        )

    # ------------------------------------------------------------------
    # Composite procedures
    # ------------------------------------------------------------------

    def _run_procedure(self, name: str, record: TaskRecord, steps: List[Step]) -> ProcedureResult:
        """Run steps in order, stopping at the first failure."""
        result = ProcedureResult(procedure=name)
        for step in steps:
            try:
                result.steps.append(step(record))
            except ServiceError as e:
                logger.warning(f"{name} stopped for task {record.id}: {e}")
                result.failure = e
                break
        return result

    def _audit(self, record: TaskRecord, result: ProcedureResult) -> None:
        if not self.store.validate(record.id):
            return
        if result.ok:
            text = f"{result.procedure}: completed"
        else:
            text = f"{result.procedure}: failed at {result.failed_action or 'validation'}: {result.failure}"
            if result.retained_stash:
                text += f" (stash {result.retained_stash} retained)"
        self.store.append_note(record.id, text)

    def cleanup_orphaned_task(self, record: TaskRecord) -> ProcedureResult:
        """Delete the task branch, discard the task and note the cleanup."""
        result = self._run_procedure(
            "cleanup_orphaned_task",
            record,
            [self.delete_branch, self.mark_discarded, self.cleanup_record],
        )
        self._audit(record, result)
        return result

    def post_work_recovery(self, record: TaskRecord) -> ProcedureResult:
        """Stash local changes, rebase onto the reference branch, restore the stash.

        The task status is left untouched. When a step after a successful
        stash fails, the stash stays saved and is reported as retained.
        """
        result = self._run_procedure(
            "post_work_recovery",
            record,
            [self.stash_changes, self.rebase_on_main, self.apply_stash],
        )
        if not result.ok and result.steps:
            stash = result.steps[0]
            if stash.changed:
                result.retained_stash = stash.value
        self._audit(record, result)
        return result

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def run(self, name: str, record: TaskRecord, **kwargs):
        """Run an action or procedure by name."""
        if name not in ACTIONS:
            raise PreconditionFailedError(name, f"Unknown recovery action: {name}")
        return getattr(self, name)(record, **kwargs)

