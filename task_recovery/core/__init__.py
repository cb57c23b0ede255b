"""Core functionality for task recovery."""

from .record_store import TaskRecordStore
from .git_inspector import GitStateInspector
from .classifier import classify, classify_record
from .executor import RecoveryExecutor
from .reporter import CrashStateReporter
from .spawner import TaskSpawner

__all__ = [
    'TaskRecordStore',
    'GitStateInspector',
    'classify',
    'classify_record',
    'RecoveryExecutor',
    'CrashStateReporter',
    'TaskSpawner'
]
