"""
GitLike Lifecycle Manager

Operations that mutate branches, todos and remotes under the repository
invariants. Every operation validates before it touches state, so a raised
error always leaves the repository exactly as it was.

Todo operations are scoped to whichever branch is current at call time.
"""

from __future__ import annotations

import logging

from gitlike.exceptions import (
    AlreadyExistsError,
    BranchNotEmptyError,
    InvalidOperationError,
    NoActiveTodoError,
    NotFoundError,
    ProtectedBranchError,
    ValidationError,
)
from gitlike.models import (
    DEFAULT_BRANCH,
    Branch,
    Commit,
    Priority,
    Remote,
    RemoteType,
    Repository,
    Todo,
    TodoStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


# ============================================================================
# PARSING
# ============================================================================


def parse_todo_id(value: str | int) -> int:
    """Parse a user-supplied todo id."""
    try:
        todo_id = int(str(value).strip().lstrip("#"))
    except ValueError:
        raise ValidationError(f"Invalid todo ID: {value}", {"value": value})
    if todo_id < 1:
        raise ValidationError(f"Invalid todo ID: {value}", {"value": value})
    return todo_id


def parse_status(value: str | TodoStatus) -> TodoStatus:
    """Parse a todo status, accepting the enum or its wire value."""
    try:
        return TodoStatus(value)
    except ValueError:
        raise ValidationError(
            "Status must be: pending, in-progress, or completed",
            {"value": value, "allowed": [s.value for s in TodoStatus]},
        )


def parse_priority(value: str | Priority) -> Priority:
    """Parse a todo priority."""
    try:
        return Priority(value)
    except ValueError:
        raise ValidationError(
            "Priority must be: low, medium, or high",
            {"value": value, "allowed": [p.value for p in Priority]},
        )


def parse_remote_type(value: str | RemoteType) -> RemoteType:
    """Parse a remote transport type."""
    try:
        return RemoteType(value)
    except ValueError:
        raise ValidationError(
            f"Unsupported remote type: {value}",
            {"value": value, "allowed": [t.value for t in RemoteType]},
        )


# ============================================================================
# LOOKUPS
# ============================================================================


def require_branch(repo: Repository, name: str) -> Branch:
    """Get a branch by name or raise NotFoundError."""
    branch = repo.get_branch(name)
    if branch is None:
        raise NotFoundError(f"Branch '{name}' does not exist", kind="branch", key=name)
    return branch


def require_current_branch(repo: Repository) -> Branch:
    """Get the current branch or raise NotFoundError."""
    branch = repo.get_current_branch()
    if branch is None:
        raise NotFoundError(
            f"Current branch '{repo.current_branch}' not found",
            kind="branch",
            key=repo.current_branch,
        )
    return branch


def require_todo(repo: Repository, todo_id: int) -> Todo:
    """Get a todo on the current branch or raise NotFoundError."""
    branch = require_current_branch(repo)
    todo = branch.get_todo(todo_id)
    if todo is None:
        raise NotFoundError(
            f"Todo #{todo_id} not found in current branch",
            kind="todo",
            key=todo_id,
        )
    return todo


# ============================================================================
# BRANCH OPERATIONS
# ============================================================================


def create_branch(repo: Repository, name: str) -> Repository:
    """Append a new empty branch."""
    name = name.strip()
    if not name:
        raise ValidationError("Branch name cannot be empty")
    if repo.get_branch(name) is not None:
        raise AlreadyExistsError(f"Branch '{name}' already exists", kind="branch", key=name)

    repo.branches.append(Branch(name=name, created_at=utcnow()))
    logger.info(f"Created branch {name}")
    return repo


def switch_branch(repo: Repository, name: str) -> Repository:
    """Make an existing local branch current."""
    require_branch(repo, name)
    repo.current_branch = name
    for branch in repo.branches:
        branch.is_active = branch.name == name
    return repo


def delete_branch(
    repo: Repository,
    name: str,
    force: bool = False,
    default_branch: str = DEFAULT_BRANCH,
) -> Repository:
    """
    Remove a branch.

    Guards run in order: current branch, default branch (unless force),
    existence, non-empty (unless force).
    """
    if name == repo.current_branch:
        raise InvalidOperationError(
            f"Cannot delete the current branch '{name}'. Switch to another branch first.",
            {"branch": name},
        )
    if name == default_branch and not force:
        raise ProtectedBranchError(
            f"Cannot delete '{name}' branch. Use --force if you really want to delete it.",
            branch=name,
        )

    branch = require_branch(repo, name)
    if branch.todos and not force:
        raise BranchNotEmptyError(
            f"Branch '{name}' has {len(branch.todos)} todos. Use --force to delete anyway.",
            branch=name,
            todo_count=len(branch.todos),
        )

    repo.branches = [b for b in repo.branches if b is not branch]
    logger.info(f"Deleted branch {name} ({len(branch.todos)} todos)")
    return repo


# ============================================================================
# TODO OPERATIONS
# ============================================================================


def create_todo(
    repo: Repository,
    title: str,
    description: str = "",
    priority: Priority | str = Priority.MEDIUM,
) -> Todo:
    """Create a pending todo on the current branch with the next id."""
    title = title.strip()
    if not title:
        raise ValidationError("Todo title cannot be empty")
    priority = parse_priority(priority)
    branch = require_current_branch(repo)

    now = utcnow()
    todo = Todo(
        id=repo.next_todo_id,
        title=title,
        description=description,
        status=TodoStatus.PENDING,
        priority=priority,
        created_at=now,
        updated_at=now,
        branch_name=branch.name,
    )
    branch.todos.append(todo)
    repo.next_todo_id += 1
    return todo


def update_status(repo: Repository, todo_id: int, status: TodoStatus | str) -> Todo:
    """Set a todo's status; completing stamps completed_at once and deactivates."""
    status = parse_status(status)
    todo = require_todo(repo, todo_id)

    now = utcnow()
    todo.status = status
    todo.updated_at = now
    if status == TodoStatus.COMPLETED:
        if todo.completed_at is None:
            todo.completed_at = now
        todo.is_active = False
    return todo


def complete_todo(repo: Repository, todo_id: int) -> Todo:
    """Mark a todo as completed."""
    return update_status(repo, todo_id, TodoStatus.COMPLETED)


def start_todo(repo: Repository, todo_id: int) -> Todo:
    """Make a todo the single active todo on the current branch."""
    branch = require_current_branch(repo)
    target = require_todo(repo, todo_id)

    now = utcnow()
    for todo in branch.todos:
        todo.is_active = False
    target.is_active = True
    target.status = TodoStatus.IN_PROGRESS
    target.updated_at = now
    if target.started_at is None:
        target.started_at = now
    return target


def stop_todo(repo: Repository) -> Todo:
    """Deactivate the active todo and put it back to pending."""
    branch = require_current_branch(repo)
    todo = branch.active_todo()
    if todo is None:
        raise NoActiveTodoError("No active todo found", {"branch": branch.name})

    todo.is_active = False
    todo.status = TodoStatus.PENDING
    todo.updated_at = utcnow()
    return todo


def active_todo(repo: Repository) -> Todo | None:
    """The active todo on the current branch, if any."""
    return require_current_branch(repo).active_todo()


def link_commit(repo: Repository, todo_id: int, commit_id: str) -> Todo:
    """Record that a commit covers a todo. Idempotent."""
    todo = require_todo(repo, todo_id)
    if commit_id not in todo.commits:
        todo.commits.append(commit_id)
    return todo


def todo_history(repo: Repository, todo_id: int) -> tuple[Todo, list[Commit]]:
    """A todo and the commit records linked to it, newest first."""
    todo = require_todo(repo, todo_id)
    commits = []
    for commit_id in reversed(todo.commits):
        commit = repo.get_commit(commit_id)
        if commit is not None:
            commits.append(commit)
    return todo, commits


# ============================================================================
# REMOTE REGISTRY
# ============================================================================


def add_remote(
    repo: Repository,
    name: str,
    url: str,
    remote_type: RemoteType | str = RemoteType.HTTP,
) -> Remote:
    """Register a new remote."""
    remote_type = parse_remote_type(remote_type)
    if not name.strip() or not url.strip():
        raise ValidationError("Remote name and URL are required", {"name": name, "url": url})
    if repo.get_remote(name) is not None:
        raise AlreadyExistsError(f"Remote '{name}' already exists", kind="remote", key=name)

    if remote_type == RemoteType.HTTP:
        url = url.rstrip("/")
    remote = Remote(name=name, url=url, type=remote_type)
    repo.remotes.append(remote)
    return remote


def get_remote(repo: Repository, name: str) -> Remote:
    """Get a remote by name or raise NotFoundError."""
    remote = repo.get_remote(name)
    if remote is None:
        raise NotFoundError(f"Remote '{name}' not found", kind="remote", key=name)
    return remote


def remove_remote(repo: Repository, name: str) -> Remote:
    """Unregister a remote."""
    remote = get_remote(repo, name)
    repo.remotes = [r for r in repo.remotes if r is not remote]
    return remote
