"""
GitLike Data Model

Dataclasses for todos, branches, commits, remotes and the aggregate
Repository. Designed for:
- Structural equality (dataclass __eq__) so snapshots compare by value
- Lossless round-trips through the JSON snapshot format
- Compatibility with snapshots written by older gitlike builds
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ============================================================================
# ENUMS - values match the snapshot format
# ============================================================================


class TodoStatus(str, Enum):
    """Todo lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Todo priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RemoteType(str, Enum):
    """Transport used to reach a remote."""

    HTTP = "http"
    FILE = "file"


DEFAULT_BRANCH = "main"
DEFAULT_COMMIT_TEMPLATE = "todo: {{.Message}}"


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO timestamp into an aware datetime.

    Naive values are taken as UTC. The zero time written by older builds
    ("0001-01-01T00:00:00Z") means "never" and maps to None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str):
        raise TypeError(f"expected a timestamp string, got {type(value).__name__}")
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if parsed.year == 1:
        return None
    return parsed


def format_datetime(value: datetime | None) -> str | None:
    """Serialize a datetime for the snapshot."""
    if value is None:
        return None
    return value.isoformat()


def _require_datetime(value: str | datetime | None) -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError(f"missing timestamp: {value!r}")
    return parsed


def _require_object(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"expected {kind} object, got {type(data).__name__}")
    return data


# ============================================================================
# ENTITIES
# ============================================================================


@dataclass
class Todo:
    """A tracked task living on exactly one branch."""

    id: int
    title: str
    description: str = ""
    status: TodoStatus = TodoStatus.PENDING
    priority: Priority = Priority.MEDIUM
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    branch_name: str = ""
    commits: list[str] = field(default_factory=list)
    is_active: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
        if self.started_at:
            data["started_at"] = format_datetime(self.started_at)
        if self.completed_at:
            data["completed_at"] = format_datetime(self.completed_at)
        data["branch_name"] = self.branch_name
        data["commits"] = list(self.commits)
        data["is_active"] = self.is_active
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Todo:
        """Create Todo from dictionary."""
        data = _require_object(data, "todo")
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=TodoStatus(data.get("status") or TodoStatus.PENDING.value),
            priority=Priority(data.get("priority") or Priority.MEDIUM.value),
            created_at=_require_datetime(data.get("created_at")),
            updated_at=_require_datetime(data.get("updated_at")),
            started_at=parse_datetime(data.get("started_at")),
            completed_at=parse_datetime(data.get("completed_at")),
            branch_name=data.get("branch_name", ""),
            commits=list(data.get("commits") or []),
            is_active=bool(data.get("is_active", False)),
        )


@dataclass
class Branch:
    """A named, ordered collection of todos."""

    name: str
    created_at: datetime = field(default_factory=utcnow)
    is_active: bool = False
    todos: list[Todo] = field(default_factory=list)

    def get_todo(self, todo_id: int) -> Todo | None:
        """Find a todo by id on this branch."""
        for todo in self.todos:
            if todo.id == todo_id:
                return todo
        return None

    def active_todo(self) -> Todo | None:
        """The todo currently being worked on, if any."""
        for todo in self.todos:
            if todo.is_active:
                return todo
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "created_at": format_datetime(self.created_at),
            "is_active": self.is_active,
            "todos": [t.to_dict() for t in self.todos],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Branch:
        """Create Branch from dictionary."""
        data = _require_object(data, "branch")
        return cls(
            name=data["name"],
            created_at=_require_datetime(data.get("created_at")),
            is_active=bool(data.get("is_active", False)),
            todos=[Todo.from_dict(t) for t in data.get("todos") or []],
        )


@dataclass
class Commit:
    """An immutable record linking a message to the todos it covers."""

    id: str
    message: str
    branch: str
    todos: list[int] = field(default_factory=list)
    active_todo: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    author: str = ""

    @property
    def short_id(self) -> str:
        return self.id[:8]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "id": self.id,
            "message": self.message,
            "branch": self.branch,
            "todos": list(self.todos),
        }
        if self.active_todo is not None:
            data["active_todo"] = self.active_todo
        data["created_at"] = format_datetime(self.created_at)
        data["author"] = self.author
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Commit:
        """Create Commit from dictionary."""
        data = _require_object(data, "commit")
        active = data.get("active_todo")
        return cls(
            id=data["id"],
            message=data.get("message", ""),
            branch=data.get("branch", ""),
            todos=[int(t) for t in data.get("todos") or []],
            active_todo=int(active) if active is not None else None,
            created_at=_require_datetime(data.get("created_at")),
            author=data.get("author", ""),
        )


@dataclass
class Remote:
    """A named transport endpoint for exchanging snapshots."""

    name: str
    url: str
    type: RemoteType | str = RemoteType.HTTP  # Unknown types load as plain strings

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, RemoteType) else self.type

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "url": self.url, "type": self.type_name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Remote:
        """Create Remote from dictionary."""
        data = _require_object(data, "remote")
        raw_type = data.get("type") or RemoteType.HTTP.value
        if not isinstance(raw_type, str):
            raise TypeError(f"expected remote type string, got {type(raw_type).__name__}")
        try:
            remote_type: RemoteType | str = RemoteType(raw_type)
        except ValueError:
            # Older builds also wrote "git"; pull and push reject it
            remote_type = raw_type
        return cls(name=data["name"], url=data["url"], type=remote_type)


@dataclass
class GitIntegration:
    """Settings for mirroring state into a local Git repository."""

    enabled: bool = False
    auto_sync: bool = False
    repo_path: str = ""
    remote_url: str = ""
    last_git_sync: datetime | None = None
    auto_commit: bool = False
    commit_template: str = DEFAULT_COMMIT_TEMPLATE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "enabled": self.enabled,
            "auto_sync": self.auto_sync,
            "repo_path": self.repo_path,
            "remote_url": self.remote_url,
            "last_git_sync": format_datetime(self.last_git_sync),
            "auto_commit": self.auto_commit,
            "commit_template": self.commit_template,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GitIntegration:
        """Create GitIntegration from dictionary."""
        data = _require_object(data or {}, "git_integration")
        return cls(
            enabled=bool(data.get("enabled", False)),
            auto_sync=bool(data.get("auto_sync", False)),
            repo_path=data.get("repo_path", ""),
            remote_url=data.get("remote_url", ""),
            last_git_sync=parse_datetime(data.get("last_git_sync")),
            auto_commit=bool(data.get("auto_commit", False)),
            commit_template=data.get("commit_template") or DEFAULT_COMMIT_TEMPLATE,
        )


@dataclass
class Repository:
    """
    The aggregate root: every branch, commit and remote.

    Loaded, mutated by one operation and saved once per command.
    """

    branches: list[Branch] = field(default_factory=list)
    commits: list[Commit] = field(default_factory=list)
    current_branch: str = DEFAULT_BRANCH
    next_todo_id: int = 1
    remotes: list[Remote] = field(default_factory=list)
    last_sync: datetime | None = None
    git_integration: GitIntegration = field(default_factory=GitIntegration)

    @classmethod
    def create_default(cls, branch_name: str = DEFAULT_BRANCH) -> Repository:
        """Fresh repository with a single empty branch."""
        return cls(
            branches=[Branch(name=branch_name, is_active=True)],
            current_branch=branch_name,
        )

    def get_branch(self, name: str) -> Branch | None:
        """Find a branch by name."""
        for branch in self.branches:
            if branch.name == name:
                return branch
        return None

    def get_current_branch(self) -> Branch | None:
        """The branch named by current_branch."""
        return self.get_branch(self.current_branch)

    def get_commit(self, commit_id: str) -> Commit | None:
        """Find a commit by exact id."""
        for commit in self.commits:
            if commit.id == commit_id:
                return commit
        return None

    def get_remote(self, name: str) -> Remote | None:
        """Find a remote by name."""
        for remote in self.remotes:
            if remote.name == name:
                return remote
        return None

    def all_todos(self) -> list[Todo]:
        """Every todo across all branches, in branch order."""
        return [todo for branch in self.branches for todo in branch.todos]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "branches": [b.to_dict() for b in self.branches],
            "commits": [c.to_dict() for c in self.commits],
            "current_branch": self.current_branch,
            "next_todo_id": self.next_todo_id,
            "remotes": [r.to_dict() for r in self.remotes],
            "last_sync": format_datetime(self.last_sync),
            "git_integration": self.git_integration.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Repository:
        """Create Repository from dictionary.

        Raises:
            KeyError, TypeError, ValueError: If the data is malformed
        """
        data = _require_object(data, "repository")
        return cls(
            branches=[Branch.from_dict(b) for b in data.get("branches") or []],
            commits=[Commit.from_dict(c) for c in data.get("commits") or []],
            current_branch=data.get("current_branch") or DEFAULT_BRANCH,
            next_todo_id=int(data.get("next_todo_id", 1)),
            remotes=[Remote.from_dict(r) for r in data.get("remotes") or []],
            last_sync=parse_datetime(data.get("last_sync")),
            git_integration=GitIntegration.from_dict(data.get("git_integration")),
        )
