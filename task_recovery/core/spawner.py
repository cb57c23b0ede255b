"""Task spawning: record creation plus the workspace bookkeeping around it."""
import logging
import time
import uuid
from typing import Callable, Optional

from task_recovery.core.constants import CURRENT_TASK_KEY, SPAWN_NOTE_SOURCE
from task_recovery.core.record_store import TaskRecordStore
from task_recovery.models.config import RecoveryConfig
from task_recovery.models.task import TaskRecord, TaskStatus
from task_recovery.services.exceptions import GitServiceError
from task_recovery.services.git_service import GitService
from task_recovery.utils.note_store import NoteStore
from task_recovery.utils.session_manager import SessionFile

logger = logging.getLogger(__name__)


def generate_task_id() -> str:
    """Generate a task id of the form ``task-<epoch seconds>-<6 hex>``."""
    return f"task-{int(time.time())}-{uuid.uuid4().hex[:6]}"


class TaskSpawner:
    """Register a new task so that a later crash can be recovered."""

    def __init__(
        self,
        store: TaskRecordStore,
        git: GitService,
        session: SessionFile,
        config: Optional[RecoveryConfig] = None,
        note_store: Optional[NoteStore] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self.git = git
        self.session = session
        self.config = config or RecoveryConfig()
        self.note_store = note_store
        self.id_factory = id_factory or generate_task_id

    def spawn(
        self,
        prompt: str,
        model: str,
        parent_id: Optional[str] = None,
        branch_aware: bool = False,
    ) -> TaskRecord:
        """Create a task record and point the session at it.

        Args:
            prompt: Task description
            model: Executor tag
            parent_id: Parent task for nested tasks
            branch_aware: Create and check out a dedicated task branch

        Returns:
            The created TaskRecord

        Raises:
            RecordNotFoundError: If ``parent_id`` names no record
            InvalidArgumentError: If prompt or model is malformed
            GitServiceError: If HEAD cannot be read or the branch cannot be
                created; in the latter case the record is kept and marked failed
        """
        depth = 0
        if parent_id:
            depth = self.store.get(parent_id).depth + 1

        task_id = self.id_factory()
        last_good_commit = self.git.get_commit_hash("HEAD")
        record = self.store.create(
            task_id,
            prompt,
            model,
            depth=depth,
            parent_id=parent_id,
            last_good_commit=last_good_commit,
        )

        if branch_aware:
            branch = f"{self.config.branch_prefix}{task_id}"
            try:
                self.git.checkout_branch(branch, create=True)
            except GitServiceError as e:
                logger.error(f"Task {task_id}: could not create branch {branch}: {e}")
                self.store.append_note(task_id, f"Branch {branch} could not be created: {e}")
                self.store.set_status(task_id, TaskStatus.FAILED)
                raise
            record = self.store.update(task_id, branch_name=branch)

        if self.note_store is not None:
            first_line = prompt.strip().splitlines()[0] if prompt.strip() else task_id
            self.note_store.add(SPAWN_NOTE_SOURCE, f"Task: {task_id}", first_line)

        self.session.set(CURRENT_TASK_KEY, task_id)
        logger.info(f"Spawned task {task_id} (depth {depth}, model {model})")
        return record
