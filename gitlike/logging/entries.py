"""
Log Entry Data Structures for GitLike.

Structured entries for command operations and snapshot synchronization.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class OperationLogEntry:
    """Log entry for one state-mutating command."""

    timestamp: str  # ISO 8601
    operation: str  # "branch.create", "todo.start", "commit.create", ...
    branch: str = ""  # Current branch after the operation

    # Outcome
    success: bool = True
    error: str | None = None
    error_type: str | None = None

    # Metrics
    duration_ms: int = 0

    # Operation-specific values (todo id, commit id, ...)
    details: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self), default=str)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OperationLogEntry":
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class SyncLogEntry:
    """Log entry for a push/pull against a remote or Git."""

    timestamp: str  # ISO 8601
    remote: str  # Remote name, or "git"
    direction: str  # "push", "pull", "fetch", "sync"

    # What moved
    url: str = ""
    branches: int = 0
    commits: int = 0

    # Outcome
    success: bool = True
    error: str | None = None
    duration_ms: int = 0

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self), default=str)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncLogEntry":
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def now_iso() -> str:
    """Get current time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()
