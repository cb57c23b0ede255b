"""Cross-session note store backed by a YAML file."""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.constants import SHARED_MEMORY_BACKUP_FILE_NAME, SHARED_MEMORY_FILE_NAME
from ..models.notes import NoteEntry, NoteStatus
from ..services.exceptions import InvalidArgumentError, NoteNotFoundError

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class NoteStore:
    """Shared notes keyed by an auto-incrementing integer id.

    Notes are informational: they give other sessions visibility into what
    happened to a task and never drive recovery decisions.
    """

    def __init__(self, data_dir: Path):
        """Initialize note store."""
        self.data_dir = data_dir
        self.memory_file = data_dir / SHARED_MEMORY_FILE_NAME
        self.backup_file = data_dir / SHARED_MEMORY_BACKUP_FILE_NAME

    def _initial_document(self) -> Dict[str, Any]:
        now = _timestamp()
        return {
            "common": {"description": "Shared context across all sessions", "items": []},
            "notes": {"items": []},
            "meta": {"last_id": 0, "created": now, "updated": now},
        }

    def _load(self) -> Dict[str, Any]:
        if not self.memory_file.exists():
            return self._initial_document()
        with open(self.memory_file) as f:
            data = yaml.safe_load(f) or {}
        data.setdefault("notes", {}).setdefault("items", [])
        data["notes"]["items"] = data["notes"]["items"] or []
        data.setdefault("meta", {}).setdefault("last_id", 0)
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        data["meta"]["updated"] = _timestamp()
        with open(self.memory_file, 'w') as f:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)

    @staticmethod
    def _entries(data: Dict[str, Any]) -> List[NoteEntry]:
        return [NoteEntry.model_validate(item) for item in data["notes"]["items"]]

    @staticmethod
    def _dump_entry(entry: NoteEntry) -> Dict[str, Any]:
        return entry.model_dump(mode="json", by_alias=True)

    def add(self, source: str, hint: str, content: str) -> NoteEntry:
        """Append a note and return it.

        Raises:
            InvalidArgumentError: If source, hint or content is empty
        """
        if not source or not hint or not content:
            raise InvalidArgumentError("source, hint and content are required")

        data = self._load()
        note_id = int(data["meta"]["last_id"]) + 1
        data["meta"]["last_id"] = note_id
        entry = NoteEntry(
            id=note_id,
            source=source,
            status=NoteStatus.ACTIVE,
            timestamp=_timestamp(),
            hint=hint,
            content=content,
        )
        data["notes"]["items"].append(self._dump_entry(entry))
        self._save(data)
        logger.info(f"Added note {note_id}: {hint}")
        return entry

    def get(self, note_id: int) -> NoteEntry:
        """Get a note by id.

        Raises:
            NoteNotFoundError: If the note does not exist
        """
        for entry in self._entries(self._load()):
            if entry.id == note_id:
                return entry
        raise NoteNotFoundError(f"Note {note_id} not found")

    def list(self, include_all: bool = False) -> List[NoteEntry]:
        """List active notes, or every note with ``include_all``."""
        entries = self._entries(self._load())
        if include_all:
            return entries
        return [entry for entry in entries if entry.status == NoteStatus.ACTIVE]

    def find(self, hint: str, status: Optional[NoteStatus] = None) -> List[NoteEntry]:
        """Find notes whose hint matches exactly, optionally filtered by status."""
        return [
            entry for entry in self._entries(self._load())
            if entry.hint == hint and (status is None or entry.status == status)
        ]

    def _modify(self, note_id: int, **changes: Any) -> NoteEntry:
        data = self._load()
        for index, item in enumerate(data["notes"]["items"]):
            entry = NoteEntry.model_validate(item)
            if entry.id == note_id:
                updated = entry.model_copy(update=changes)
                data["notes"]["items"][index] = self._dump_entry(updated)
                self._save(data)
                return updated
        raise NoteNotFoundError(f"Note {note_id} not found")

    def update(self, note_id: int, hint: Optional[str] = None, content: Optional[str] = None) -> NoteEntry:
        """Replace the hint and/or content of a note."""
        changes = {}
        if hint:
            changes["hint"] = hint
        if content:
            changes["content"] = content
        if not changes:
            raise InvalidArgumentError("At least a hint or content is required")
        return self._modify(note_id, **changes)

    def mark(self, note_id: int, status: NoteStatus) -> NoteEntry:
        """Set a note's status (active, done or discard)."""
        entry = self._modify(note_id, status=NoteStatus(status))
        logger.info(f"Marked note {note_id} as {entry.status.value}")
        return entry

    def compact(self) -> int:
        """Remove done and discarded notes, keeping a backup of the file.

        Returns:
            Number of notes removed
        """
        data = self._load()
        entries = self._entries(data)
        kept = [entry for entry in entries if entry.status == NoteStatus.ACTIVE]
        removed = len(entries) - len(kept)
        if removed == 0:
            return 0

        if self.memory_file.exists():
            shutil.copyfile(self.memory_file, self.backup_file)
        data["notes"]["items"] = [self._dump_entry(entry) for entry in kept]
        self._save(data)
        logger.info(f"Compacted {removed} note(s); backup at {self.backup_file}")
        return removed
