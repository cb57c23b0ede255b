"""Custom exceptions for the task recovery service layer."""


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class NotFoundError(ServiceError):
    """Exception raised when a record, field, branch or note is absent."""

    pass


class RecordNotFoundError(NotFoundError):
    """Exception raised when a task record does not exist."""

    pass


class FieldNotFoundError(NotFoundError):
    """Exception raised when a record field is unknown or has no value."""

    pass


class NoteNotFoundError(NotFoundError):
    """Exception raised when a shared note does not exist."""

    pass


class NoActiveTaskError(NotFoundError):
    """Exception raised when the session names no task with a record."""

    pass


class InvalidArgumentError(ServiceError):
    """Exception raised for malformed input to a constructor or setter."""

    pass


class InvalidTransitionError(InvalidArgumentError):
    """Exception raised when a status change would move a task backwards."""

    pass


class RecordExistsError(ServiceError):
    """Exception raised when creating a record whose id is already taken."""

    pass


class ValidationFailedError(ServiceError):
    """Exception raised when a record fails its integrity checks."""

    pass


class GitServiceError(ServiceError):
    """Exception raised for Git service operations."""

    pass


class RepositoryUnavailableError(GitServiceError):
    """Exception raised when the workspace is not a usable git repository."""

    pass


class BranchNotFoundError(NotFoundError, GitServiceError):
    """Exception raised when a Git branch is not found."""

    pass


class ReviewServiceError(ServiceError):
    """Exception raised for review request (merge/pull request) operations."""

    pass


class RecoveryError(ServiceError):
    """Base exception for a recovery action that did not succeed.

    Attributes:
        action: Name of the recovery action that failed
    """

    def __init__(self, action: str, message: str):
        super().__init__(f"{action}: {message}")
        self.action = action


class PreconditionFailedError(RecoveryError):
    """Exception raised when an action's preconditions do not hold."""

    pass


class ActionFailedError(RecoveryError):
    """Exception raised when an action's effect could not be performed."""

    pass


class PostconditionFailedError(RecoveryError):
    """Exception raised when an action ran but its post-condition does not hold."""

    def __init__(self, action: str, expected: str, observed: str):
        super().__init__(action, f"expected {expected}, observed {observed}")
        self.expected = expected
        self.observed = observed
