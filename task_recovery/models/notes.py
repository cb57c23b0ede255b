"""Models for the cross-session note store."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NoteStatus(str, Enum):
    """Lifecycle of a shared note."""
    ACTIVE = "active"
    DONE = "done"
    DISCARD = "discard"


class NoteEntry(BaseModel):
    """A single cross-session note."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    source: str = Field(..., alias="from", description="Session that wrote the note")
    status: NoteStatus = NoteStatus.ACTIVE
    timestamp: str
    hint: str = Field(..., description="Short summary for quick scanning")
    content: str
