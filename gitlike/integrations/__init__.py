"""External integrations - local Git repository."""

from gitlike.integrations.git_ops import GitCommitInfo, GitOps, PushStatus, find_git_repo

__all__ = [
    "GitOps",
    "GitCommitInfo",
    "PushStatus",
    "find_git_repo",
]
