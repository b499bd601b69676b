"""
GitLike - Exception Hierarchy

All GitLike-specific exceptions inherit from GitLikeError. The core raises
these with structured details; only the CLI turns them into messages.
"""

from typing import Any


class GitLikeError(Exception):
    """Base exception for all GitLike errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Storage and Configuration Errors
class StorageError(GitLikeError):
    """Raised when the repository snapshot cannot be read, parsed or written."""

    pass


class ConfigError(GitLikeError):
    """Raised when configuration is invalid."""

    pass


# Lookup Errors
class NotFoundError(GitLikeError):
    """Raised when a branch, todo, commit or remote does not exist."""

    def __init__(self, message: str, kind: str, key: Any):
        super().__init__(message, {"kind": kind, "key": key})
        self.kind = kind
        self.key = key


class AlreadyExistsError(GitLikeError):
    """Raised when creating a branch or remote whose name is taken."""

    def __init__(self, message: str, kind: str, key: Any):
        super().__init__(message, {"kind": kind, "key": key})
        self.kind = kind
        self.key = key


# Branch Guards
class InvalidOperationError(GitLikeError):
    """Raised for operations that can never succeed in the current state."""

    pass


class ProtectedBranchError(GitLikeError):
    """Raised when deleting the default branch without force."""

    def __init__(self, message: str, branch: str):
        super().__init__(message, {"branch": branch})
        self.branch = branch


class BranchNotEmptyError(GitLikeError):
    """Raised when deleting a branch that still has todos without force."""

    def __init__(self, message: str, branch: str, todo_count: int):
        super().__init__(message, {"branch": branch, "todo_count": todo_count})
        self.branch = branch
        self.todo_count = todo_count


# Todo and Commit Errors
class ValidationError(GitLikeError):
    """Raised for bad enum values or malformed identifiers."""

    pass


class NothingToCommitError(GitLikeError):
    """Raised when a commit would cover no todos."""

    pass


class NoActiveTodoError(GitLikeError):
    """Raised when stopping work while no todo is active."""

    pass


# Transport and Adapter Errors
class NetworkError(GitLikeError):
    """Raised when a remote transport fails or times out."""

    pass


class AdapterError(GitLikeError):
    """Base exception for external tool failures."""

    pass


class GitError(AdapterError):
    """Raised when a git subprocess fails.

    Carries the exit code and the captured output for diagnostics.
    """

    def __init__(self, message: str, exit_code: int | None = None, output: str = ""):
        super().__init__(message, {"exit_code": exit_code, "output": output})
        self.exit_code = exit_code
        self.output = output
