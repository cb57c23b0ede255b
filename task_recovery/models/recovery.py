"""Recovery action result models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class ReviewStatus(Enum):
    """Remote review request state."""
    MERGED = "merged"
    OPEN = "open"
    PENDING = "pending"


@dataclass
class ActionResult:
    """Outcome of one successful recovery action."""
    action: str
    message: str
    value: Any = None  # Action-specific payload (stash ref, review ref, status)
    changed: bool = True  # False when the action was a no-op


@dataclass
class ProcedureResult:
    """Outcome of a composite recovery procedure.

    Steps run in order; the first failure stops the procedure and is kept
    on ``failure`` together with the steps that completed before it.
    """
    procedure: str
    steps: List[ActionResult] = field(default_factory=list)
    failure: Optional[Exception] = None  # RecoveryError that stopped the run
    retained_stash: Optional[str] = None  # Stash left saved after a failure

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def failed_action(self) -> Optional[str]:
        return getattr(self.failure, "action", None)

    def raise_for_failure(self) -> None:
        """Re-raise the captured failure, if any."""
        if self.failure is not None:
            raise self.failure
