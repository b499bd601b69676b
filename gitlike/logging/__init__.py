"""
GitLike Logging System.

Provides structured JSONL logging for:
- State-mutating commands (branch, todo, commit, merge, remote)
- Snapshot and Git synchronization (push, pull, fetch, sync)

Usage:
    from gitlike.logging import operation_logger, OperationLogEntry, now_iso

    entry = OperationLogEntry(
        timestamp=now_iso(),
        operation="todo.start",
        branch="main",
        details={"todo_id": 3},
    )
    operation_logger.info(entry.to_json())

Logs are written to ~/.tododata/logs/:
    - operations.jsonl: one line per command
    - sync.jsonl: remote and Git transfers
"""

import threading
from typing import Any

from .config import LogConfig, get_config, set_config
from .entries import OperationLogEntry, SyncLogEntry, now_iso
from .handlers import create_jsonl_logger

# Lazy-initialized loggers to avoid creating files before needed
_operation_logger: Any = None
_sync_logger: Any = None
_init_lock = threading.Lock()


def _ensure_loggers() -> None:
    """Initialize loggers on first use."""
    global _operation_logger, _sync_logger

    if _operation_logger is not None:
        return

    with _init_lock:
        # Double-check after acquiring lock
        if _operation_logger is not None:
            return

        config = get_config()

        _operation_logger = create_jsonl_logger(
            "gitlike.operations",
            config.operation_log_path,
            level=config.operation_level,
            max_bytes=config.max_file_size_bytes,
            backup_count=config.backup_count,
        )

        _sync_logger = create_jsonl_logger(
            "gitlike.sync",
            config.sync_log_path,
            level=config.sync_level,
            max_bytes=config.max_file_size_bytes,
            backup_count=config.backup_count,
        )


def configure(config: LogConfig) -> None:
    """Install a log config and drop loggers built from the previous one."""
    global _operation_logger, _sync_logger

    with _init_lock:
        set_config(config)
        _operation_logger = None
        _sync_logger = None


class _LazyLogger:
    """Lazy wrapper that initializes the actual logger on first use."""

    def __init__(self, name: str):
        self._name = name

    def _get_logger(self) -> Any:
        _ensure_loggers()
        if self._name == "sync":
            return _sync_logger
        return _operation_logger

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._get_logger().debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._get_logger().info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._get_logger().warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._get_logger().error(msg, *args, **kwargs)


# Public logger instances
operation_logger = _LazyLogger("operations")
sync_logger = _LazyLogger("sync")


__all__ = [
    # Loggers
    "operation_logger",
    "sync_logger",
    # Log entries
    "OperationLogEntry",
    "SyncLogEntry",
    # Utilities
    "now_iso",
    "configure",
    # Config
    "LogConfig",
    "get_config",
    "set_config",
]
