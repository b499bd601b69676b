"""
GitLike - Git-style branching for a todo list.

Todos live on branches, commits record which todos a piece of work
covered, and whole-repository snapshots can be pushed to and pulled from
HTTP or file remotes, or mirrored into a real Git repository.
"""

__version__ = "0.1.0"

from gitlike.exceptions import (
    GitLikeError,
    StorageError,
    ConfigError,
    NotFoundError,
    ValidationError,
    NetworkError,
    GitError,
)

__all__ = [
    "__version__",
    "GitLikeError",
    "StorageError",
    "ConfigError",
    "NotFoundError",
    "ValidationError",
    "NetworkError",
    "GitError",
]
