"""Session pointer management utilities."""

import logging
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator

from ..core.constants import CURRENT_TASK_KEY

logger = logging.getLogger(__name__)

_POINTER_LINE = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_]*):[ \t]*(?P<value>.*?)\s*$")

SESSION_TEMPLATE = """# Session

## Current Task
{pointers}

## Last Updated
{timestamp}
"""


class SessionFile(Mapping):
    """Key/value pointers kept in the session document (``key: value`` lines).

    Reads are always fresh from disk; lines that are not pointers are
    preserved when a pointer is written.
    """

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        pointers = {}
        for line in self.path.read_text().splitlines():
            match = _POINTER_LINE.match(line)
            if match and match.group("value"):
                pointers.setdefault(match.group("key"), match.group("value"))
        return pointers

    def __getitem__(self, key: str) -> str:
        return self._load()[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._load())

    def __len__(self) -> int:
        return len(self._load())

    def set(self, key: str, value: str) -> None:
        """Write a pointer, replacing its line or adding it under the task section."""
        line = f"{key}: {value}"
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(SESSION_TEMPLATE.format(
                pointers=line,
                timestamp=datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ'),
            ))
            logger.info(f"Created session file {self.path}")
            return

        lines = self.path.read_text().splitlines()
        for index, existing in enumerate(lines):
            match = _POINTER_LINE.match(existing)
            if match and match.group("key") == key:
                lines[index] = line
                break
        else:
            lines.append(line)
        self.path.write_text("\n".join(lines) + "\n")
        logger.debug(f"Session pointer {key} -> {value}")

    def clear(self, key: str = CURRENT_TASK_KEY) -> None:
        """Remove a pointer line if present."""
        if not self.path.exists():
            return
        lines = []
        for line in self.path.read_text().splitlines():
            match = _POINTER_LINE.match(line)
            if match and match.group("key") == key:
                continue
            lines.append(line)
        self.path.write_text("\n".join(lines) + "\n")
