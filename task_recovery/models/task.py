"""Task record data models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class TaskStatus(Enum):
    """Task status enumeration."""
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    DISCARDED = "discarded"

    def can_transition_to(self, target: "TaskStatus") -> bool:
        """Return True if moving from this status to ``target`` is forward-only."""
        return target == self or target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS = {
    TaskStatus.ACTIVE: {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.DISCARDED},
    TaskStatus.COMPLETED: {TaskStatus.DISCARDED},
    TaskStatus.FAILED: {TaskStatus.DISCARDED},
    TaskStatus.DISCARDED: set(),
}


@dataclass
class TaskNote:
    """A single timestamped audit note appended to a task record."""
    timestamp: datetime
    text: str


@dataclass
class TaskRecord:
    """Persistent metadata describing one spawned unit of work."""
    id: str  # Opaque unique id, e.g. task-1700000000-a1b2c3
    model: str  # Who/what executes the task
    prompt: str  # Verbatim task description
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    depth: int = 0  # 0 for top-level tasks
    parent_id: Optional[str] = None  # Weak reference, lookup only
    branch_name: Optional[str] = None  # Set once a branch is allocated
    review_ref: Optional[str] = None  # Merge/pull request number
    last_good_commit: Optional[str] = None  # Rollback anchor captured at spawn
    notes: List[TaskNote] = field(default_factory=list)


@dataclass(frozen=True)
class TaskSummary:
    """Lightweight listing entry for a task record."""
    id: str
    status: TaskStatus
    model: str
    created_at: datetime
