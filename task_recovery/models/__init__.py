"""Models for task recovery."""

from .task import TaskRecord, TaskStatus, TaskNote, TaskSummary
from .git_state import GitStateSnapshot, BranchState
from .scenario import Scenario, RecoveryOption, ScenarioAnalysis
from .recovery import ActionResult, ProcedureResult, ReviewStatus
from .report import CrashStateReport
from .notes import NoteEntry, NoteStatus
from .config import RecoveryConfig

__all__ = [
    'TaskRecord',
    'TaskStatus',
    'TaskNote',
    'TaskSummary',
    'GitStateSnapshot',
    'BranchState',
    'Scenario',
    'RecoveryOption',
    'ScenarioAnalysis',
    'ActionResult',
    'ProcedureResult',
    'ReviewStatus',
    'CrashStateReport',
    'NoteEntry',
    'NoteStatus',
    'RecoveryConfig',
]
