"""Utilities for task recovery."""

from .config_manager import ConfigManager
from .note_store import NoteStore
from .session_manager import SessionFile

__all__ = [
    'ConfigManager',
    'NoteStore',
    'SessionFile'
]
