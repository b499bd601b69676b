"""
Logging Configuration for GitLike.

Defines the log directory, rotation settings and levels.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from gitlike.config import DEFAULT_DATA_DIR


@dataclass
class LogConfig:
    """Configuration for the GitLike logging system."""

    # Paths
    log_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR / "logs")

    # File settings
    max_file_size_bytes: int = 5 * 1024 * 1024  # 5MB
    backup_count: int = 3

    # Log levels: DEBUG, INFO, WARNING, ERROR
    operation_level: str = "INFO"
    sync_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LogConfig":
        """Load config from environment variables with defaults."""
        config = cls()

        if home := os.environ.get("GITLIKE_HOME"):
            config.log_dir = Path(home).expanduser() / "logs"

        # Override log level from environment
        if level := os.environ.get("GITLIKE_LOG_LEVEL"):
            config.operation_level = level
            config.sync_level = level

        # Override log directory
        if log_dir := os.environ.get("GITLIKE_LOG_DIR"):
            config.log_dir = Path(log_dir)

        # Override max file size (in MB)
        if max_size := os.environ.get("GITLIKE_LOG_MAX_SIZE_MB"):
            try:
                config.max_file_size_bytes = int(max_size) * 1024 * 1024
            except ValueError:
                pass

        return config

    def ensure_log_dir(self) -> None:
        """Create log directory if it doesn't exist."""
        self.log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def operation_log_path(self) -> Path:
        """Path to the per-command operation log."""
        return self.log_dir / "operations.jsonl"

    @property
    def sync_log_path(self) -> Path:
        """Path to the remote/Git sync log."""
        return self.log_dir / "sync.jsonl"


# Global config instance - initialized on first use
_config: LogConfig | None = None


def get_config() -> LogConfig:
    """Get the global log config, initializing from env if needed."""
    global _config
    if _config is None:
        _config = LogConfig.from_env()
    return _config


def set_config(config: LogConfig) -> None:
    """Set a custom log config (useful for testing)."""
    global _config
    _config = config
