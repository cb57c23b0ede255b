"""Task record store for crash-safe task tracking.

Each task lives in its own human-readable file::

    TASK_ID=task-1700000000-a1b2c3
    MODEL=sonnet
    STATE=active
    ...

    ---PROMPT---
    <prompt, verbatim>
    ---END-PROMPT---

    ---NOTES---
    [2024-01-01T00:00:00+00:00] note text

Fields are flat ``KEY=value`` pairs and the prompt is a delimited block so a
truncated write is detectable by :meth:`TaskRecordStore.validate` without
parsing a nested format. Every write replaces the whole file atomically.
"""
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from task_recovery.core.constants import (
    NOTES_MARKER,
    PATCH_FILE_SUFFIX,
    PATCHES_DIR_NAME,
    PROMPT_END_MARKER,
    PROMPT_START_MARKER,
)
from task_recovery.models.task import TaskNote, TaskRecord, TaskStatus, TaskSummary
from task_recovery.services.exceptions import (
    FieldNotFoundError,
    InvalidArgumentError,
    InvalidTransitionError,
    RecordExistsError,
    RecordNotFoundError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

# TaskRecord attribute -> key in the record file, in file order
FIELD_KEYS = {
    "id": "TASK_ID",
    "created_at": "CREATED_AT",
    "updated_at": "UPDATED_AT",
    "model": "MODEL",
    "depth": "DEPTH",
    "parent_id": "PARENT_TASK_ID",
    "branch_name": "GIT_BRANCH",
    "review_ref": "REVIEW_REF",
    "last_good_commit": "LAST_GOOD_COMMIT",
    "status": "STATE",
}
WRITABLE_FIELDS = ("branch_name", "review_ref", "status")

_TASK_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_NOTE_PATTERN = re.compile(r"^\[(?P<timestamp>[^\]]+)\] (?P<text>.*)$")
_ESCAPES = {"\\": "\\", "n": "\n", "r": "\r"}


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(0)), value)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskRecordStore:
    """Durable keyed storage for one record per task."""

    def __init__(self, data_dir: Path, clock: Optional[Callable[[], datetime]] = None):
        """Initialize task record store.

        Args:
            data_dir: The .claude directory of the workspace
            clock: Timestamp source (defaults to the current UTC time)
        """
        self.patches_dir = data_dir / PATCHES_DIR_NAME
        self._clock = clock or _utc_now
        self._ensure_storage_structure()

    def _ensure_storage_structure(self) -> None:
        """Ensure the patches directory exists."""
        self.patches_dir.mkdir(parents=True, exist_ok=True)

    def _get_record_path(self, task_id: str) -> Path:
        """Get the file for a specific task."""
        return self.patches_dir / f"{task_id}{PATCH_FILE_SUFFIX}"

    def _next_timestamp(self, previous: Optional[datetime] = None) -> datetime:
        """Return a timestamp that never goes backwards relative to ``previous``."""
        now = self._clock()
        if previous is not None and now < previous:
            return previous
        return now

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _serialize_record(self, record: TaskRecord) -> str:
        """Serialize a record to the flat file format."""
        values = {
            "id": record.id,
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
            "model": record.model,
            "depth": str(record.depth),
            "parent_id": record.parent_id or "",
            "branch_name": record.branch_name or "",
            "review_ref": record.review_ref or "",
            "last_good_commit": record.last_good_commit or "",
            "status": record.status.value,
        }
        lines = [f"{key}={_escape(values[name])}" for name, key in FIELD_KEYS.items()]
        content = "\n".join(lines) + "\n\n"
        content += f"{PROMPT_START_MARKER}\n{record.prompt}\n{PROMPT_END_MARKER}\n"
        if record.notes:
            content += f"\n{NOTES_MARKER}\n"
            for note in record.notes:
                content += f"[{note.timestamp.isoformat()}] {_escape(note.text)}\n"
        return content

    @staticmethod
    def _split_sections(content: str) -> Tuple[Dict[str, str], Optional[str], List[str]]:
        """Split raw file content into header fields, prompt and note lines.

        The prompt spans from the first start marker to the last end marker;
        header and note lines are escaped so they can never equal a marker.
        The prompt is None when either marker is missing or out of order.
        """
        lines = content.split("\n")
        try:
            start = lines.index(PROMPT_START_MARKER)
        except ValueError:
            start = None

        end = None
        if start is not None:
            for index in range(len(lines) - 1, start, -1):
                if lines[index] == PROMPT_END_MARKER:
                    end = index
                    break

        header_lines = lines if start is None else lines[:start]
        fields = {}
        for line in header_lines:
            if "=" in line:
                key, value = line.split("=", 1)
                fields.setdefault(key, _unescape(value))

        if start is None or end is None:
            return fields, None, []

        prompt = "\n".join(lines[start + 1:end])
        note_lines = [line for line in lines[end + 1:] if line and line != NOTES_MARKER]
        return fields, prompt, note_lines

    def _deserialize_record(self, task_id: str, content: str) -> TaskRecord:
        """Deserialize a record, raising ValidationFailedError if it is damaged."""
        fields, prompt, note_lines = self._split_sections(content)
        if prompt is None:
            raise ValidationFailedError(f"Task {task_id}: prompt section is missing or truncated")

        try:
            notes = []
            for line in note_lines:
                match = _NOTE_PATTERN.match(line)
                if not match:
                    raise ValueError(f"malformed note line: {line!r}")
                notes.append(TaskNote(
                    timestamp=datetime.fromisoformat(match.group("timestamp")),
                    text=_unescape(match.group("text")),
                ))

            return TaskRecord(
                id=fields["TASK_ID"],
                model=fields["MODEL"],
                prompt=prompt,
                status=TaskStatus(fields["STATE"]),
                created_at=datetime.fromisoformat(fields["CREATED_AT"]),
                updated_at=datetime.fromisoformat(fields["UPDATED_AT"]),
                depth=int(fields.get("DEPTH") or 0),
                parent_id=fields.get("PARENT_TASK_ID") or None,
                branch_name=fields.get("GIT_BRANCH") or None,
                review_ref=fields.get("REVIEW_REF") or None,
                last_good_commit=fields.get("LAST_GOOD_COMMIT") or None,
                notes=notes,
            )
        except KeyError as e:
            raise ValidationFailedError(f"Task {task_id}: missing required field {e}") from e
        except ValueError as e:
            raise ValidationFailedError(f"Task {task_id}: malformed record: {e}") from e

    def _read_raw(self, task_id: str) -> str:
        path = self._get_record_path(task_id)
        if not path.exists():
            raise RecordNotFoundError(f"Task {task_id} not found")
        try:
            with open(path, encoding="utf-8", newline="") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ValidationFailedError(f"Task {task_id}: record is not valid UTF-8: {e}") from e

    def _save(self, record: TaskRecord) -> None:
        """Write a record by replacing its file atomically."""
        path = self._get_record_path(record.id)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.patches_dir, prefix=f".{record.id}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(self._serialize_record(record))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(
        self,
        task_id: str,
        prompt: str,
        model: str,
        depth: int = 0,
        parent_id: Optional[str] = None,
        last_good_commit: Optional[str] = None,
        branch_name: Optional[str] = None,
        review_ref: Optional[str] = None,
    ) -> TaskRecord:
        """Create a new task record.

        Args:
            task_id: Unique task id (letters, digits, '.', '_' and '-')
            prompt: Task description, stored verbatim
            model: Executor tag for the task
            depth: Nesting depth, 0 for top-level tasks
            parent_id: Parent task id, required iff depth > 0
            last_good_commit: Rollback anchor captured at spawn time
            branch_name: Task branch, if already allocated
            review_ref: Review request id, if already created

        Returns:
            Created TaskRecord instance

        Raises:
            InvalidArgumentError: If any argument is malformed
            RecordExistsError: If a record with this id already exists
        """
        if not task_id or not _TASK_ID_PATTERN.match(task_id):
            raise InvalidArgumentError(f"Invalid task id: {task_id!r}")
        if not prompt:
            raise InvalidArgumentError("prompt must not be empty")
        if not model or "\n" in model:
            raise InvalidArgumentError("model must be a non-empty single line")
        if depth < 0:
            raise InvalidArgumentError(f"depth must be non-negative, got {depth}")
        if (depth == 0) != (not parent_id):
            raise InvalidArgumentError("parent_id must be set exactly when depth > 0")

        if self._get_record_path(task_id).exists():
            raise RecordExistsError(f"Task {task_id} already exists")

        now = self._next_timestamp()
        record = TaskRecord(
            id=task_id,
            model=model,
            prompt=prompt,
            status=TaskStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            depth=depth,
            parent_id=parent_id or None,
            branch_name=branch_name or None,
            review_ref=review_ref or None,
            last_good_commit=last_good_commit or None,
        )
        self._save(record)
        logger.info(f"Created task record: {task_id}")
        return record

    def exists(self, task_id: str) -> bool:
        """Check if a record exists for the task."""
        return self._get_record_path(task_id).exists()

    def get(self, task_id: str) -> TaskRecord:
        """Load a task record.

        Raises:
            RecordNotFoundError: If the record does not exist
            ValidationFailedError: If the record is damaged
        """
        return self._deserialize_record(task_id, self._read_raw(task_id))

    def read_field(self, task_id: str, field: str) -> Any:
        """Read a single field by its TaskRecord attribute name.

        Raises:
            RecordNotFoundError: If the record does not exist
            FieldNotFoundError: If the field is unknown or has no value
        """
        record = self.get(task_id)
        if field != "prompt" and field not in FIELD_KEYS:
            raise FieldNotFoundError(f"Unknown field: {field}")
        value = getattr(record, field)
        if value is None:
            raise FieldNotFoundError(f"Task {task_id} has no {field}")
        return value

    def read_prompt(self, task_id: str) -> str:
        """Return the exact prompt text of a task."""
        return self.get(task_id).prompt

    def write_field(self, task_id: str, field: str, value: Any) -> TaskRecord:
        """Write a single field by its TaskRecord attribute name."""
        if field not in FIELD_KEYS:
            raise FieldNotFoundError(f"Unknown field: {field}")
        return self.update(task_id, **{field: value})

    def update(self, task_id: str, **changes: Any) -> TaskRecord:
        """Update mutable fields of a record as one atomic write.

        Args:
            task_id: The task id
            **changes: New values for branch_name, review_ref or status

        Returns:
            The updated TaskRecord

        Raises:
            RecordNotFoundError: If the record does not exist
            InvalidArgumentError: If a field is immutable or a value is malformed
            InvalidTransitionError: If the status would move backwards
        """
        record = self.get(task_id)

        for name, value in changes.items():
            if name not in WRITABLE_FIELDS:
                raise InvalidArgumentError(f"Field {name} is immutable")
            if name == "status":
                try:
                    value = TaskStatus(value)
                except ValueError as e:
                    raise InvalidArgumentError(f"Invalid status: {value!r}") from e
                if not record.status.can_transition_to(value):
                    raise InvalidTransitionError(
                        f"Task {task_id} cannot move from {record.status.value} to {value.value}"
                    )
            elif value is not None and (not isinstance(value, str) or "\n" in value):
                raise InvalidArgumentError(f"{name} must be a single-line string")
            setattr(record, name, value or None)

        record.updated_at = self._next_timestamp(record.updated_at)
        self._save(record)
        logger.debug(f"Updated task {task_id}: {sorted(changes)}")
        return record

    def set_status(self, task_id: str, status: TaskStatus) -> TaskRecord:
        """Move a task forward to ``status``."""
        return self.update(task_id, status=status)

    def append_note(self, task_id: str, text: str) -> TaskNote:
        """Append a timestamped audit note to a task.

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        record = self.get(task_id)
        timestamp = self._next_timestamp(record.updated_at)
        note = TaskNote(timestamp=timestamp, text=text)
        record.notes.append(note)
        record.updated_at = timestamp
        self._save(record)
        logger.debug(f"Added note to task {task_id}")
        return note

    def validate(self, task_id: str) -> bool:
        """Check record integrity.

        Returns:
            True iff TASK_ID, MODEL and STATE are present and well-formed and
            the prompt delimiters are intact
        """
        try:
            content = self._read_raw(task_id)
        except RecordNotFoundError:
            return False
        except ValidationFailedError as e:
            logger.warning(str(e))
            return False

        fields, prompt, _ = self._split_sections(content)
        if prompt is None:
            logger.warning(f"Task {task_id}: prompt delimiters are damaged")
            return False
        if fields.get("TASK_ID") != task_id:
            logger.warning(f"Task {task_id}: TASK_ID missing or mismatched")
            return False
        if not fields.get("MODEL"):
            logger.warning(f"Task {task_id}: MODEL missing")
            return False
        if fields.get("STATE") not in {status.value for status in TaskStatus}:
            logger.warning(f"Task {task_id}: STATE missing or invalid")
            return False
        return True

    def delete(self, task_id: str) -> None:
        """Delete a task record. Succeeds if the record is already absent."""
        path = self._get_record_path(task_id)
        if path.exists():
            path.unlink()
            logger.info(f"Deleted task record: {task_id}")

    def list(self) -> Iterator[TaskSummary]:
        """Yield task summaries ordered by creation time.

        Damaged records are skipped with a warning.
        """
        summaries = []
        for path in self.patches_dir.glob(f"*{PATCH_FILE_SUFFIX}"):
            task_id = path.name[: -len(PATCH_FILE_SUFFIX)]
            try:
                record = self.get(task_id)
            except (RecordNotFoundError, ValidationFailedError) as e:
                logger.warning(f"Skipping task record {path.name}: {e}")
                continue
            summaries.append(TaskSummary(
                id=record.id,
                status=record.status,
                model=record.model,
                created_at=record.created_at,
            ))

        summaries.sort(key=lambda s: (s.created_at, s.id))
        yield from summaries
