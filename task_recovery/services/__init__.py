"""Service layer for abstracting Git and review request operations."""

from .git_service import GitService
from .review_service import ReviewService
from .exceptions import (
    ServiceError,
    NotFoundError,
    RecordNotFoundError,
    FieldNotFoundError,
    NoteNotFoundError,
    NoActiveTaskError,
    InvalidArgumentError,
    InvalidTransitionError,
    RecordExistsError,
    ValidationFailedError,
    GitServiceError,
    RepositoryUnavailableError,
    BranchNotFoundError,
    ReviewServiceError,
    RecoveryError,
    PreconditionFailedError,
    ActionFailedError,
    PostconditionFailedError,
)

__all__ = [
    "GitService",
    "ReviewService",
    "ServiceError",
    "NotFoundError",
    "RecordNotFoundError",
    "FieldNotFoundError",
    "NoteNotFoundError",
    "NoActiveTaskError",
    "InvalidArgumentError",
    "InvalidTransitionError",
    "RecordExistsError",
    "ValidationFailedError",
    "GitServiceError",
    "RepositoryUnavailableError",
    "BranchNotFoundError",
    "ReviewServiceError",
    "RecoveryError",
    "PreconditionFailedError",
    "ActionFailedError",
    "PostconditionFailedError",
]
