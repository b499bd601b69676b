"""
GitLike - Configuration Management

Resolves the data directory, timeouts, author and remote credentials from
environment variables and an optional config.json in the data directory.
"""

import getpass
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gitlike.exceptions import ConfigError
from gitlike.models import DEFAULT_BRANCH


# Configuration paths
DEFAULT_DATA_DIR = Path.home() / ".tododata"
REPO_FILE = "repository.json"
CONFIG_FILE = "config.json"

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_GIT_TIMEOUT = 60

# Remote server (gitlike serve)
SERVER_REPO_FILE = "server_repository.json"
DEFAULT_SERVER_PORT = 8080
PORT_ENV = "PORT"

# Basic-auth credentials for HTTP remotes
USERNAME_ENV = "TODO_CLI_USERNAME"
PASSWORD_ENV = "TODO_CLI_PASSWORD"


def default_author() -> str:
    """Best-effort name of the local user."""
    try:
        return getpass.getuser() or "unknown"
    except (OSError, KeyError):
        return "unknown"


@dataclass
class GitLikeConfig:
    """Main configuration container for GitLike."""

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    repo_file: str = REPO_FILE
    default_branch: str = DEFAULT_BRANCH
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    git_timeout: int = DEFAULT_GIT_TIMEOUT
    author: str = field(default_factory=default_author)
    username: str = ""
    password: str = ""
    server_port: int = DEFAULT_SERVER_PORT

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()

    @property
    def repo_path(self) -> Path:
        """Full path to the repository snapshot."""
        return self.data_dir / self.repo_file

    @property
    def server_repo_path(self) -> Path:
        """Snapshot kept by the remote server."""
        return self.data_dir / SERVER_REPO_FILE

    @property
    def config_path(self) -> Path:
        """Full path to the optional config.json."""
        return self.data_dir / CONFIG_FILE

    @property
    def log_dir(self) -> Path:
        """Directory for JSONL operation logs."""
        return self.data_dir / "logs"

    @property
    def credentials(self) -> tuple[str, str] | None:
        """Basic-auth pair, only when both halves are set."""
        if self.username and self.password:
            return (self.username, self.password)
        return None

    def apply_overrides(self, data: dict[str, Any]) -> None:
        """Apply values read from config.json."""
        try:
            if "default_branch" in data:
                self.default_branch = str(data["default_branch"])
            if "http_timeout" in data:
                self.http_timeout = float(data["http_timeout"])
            if "git_timeout" in data:
                self.git_timeout = int(data["git_timeout"])
            if "author" in data:
                self.author = str(data["author"])
            if "server_port" in data:
                self.server_port = int(data["server_port"])
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid value in {self.config_path}",
                {"error": str(e)},
            )


def load_config() -> GitLikeConfig:
    """
    Load configuration from environment and config.json.

    Returns:
        GitLikeConfig with all settings resolved

    Raises:
        ConfigError: If config.json or an environment override is invalid
    """
    config = GitLikeConfig()

    if home := os.environ.get("GITLIKE_HOME"):
        config.data_dir = Path(home).expanduser()

    if config.config_path.exists():
        try:
            with open(config.config_path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in {config.config_path}",
                {"error": str(e)},
            )
        if not isinstance(data, dict):
            raise ConfigError(f"Expected an object in {config.config_path}")
        config.apply_overrides(data)

    # Environment wins over the file
    if timeout := os.environ.get("GITLIKE_HTTP_TIMEOUT"):
        try:
            config.http_timeout = float(timeout)
        except ValueError:
            raise ConfigError(
                "GITLIKE_HTTP_TIMEOUT must be a number",
                {"value": timeout},
            )

    if author := os.environ.get("GITLIKE_AUTHOR"):
        config.author = author

    if port := os.environ.get(PORT_ENV):
        try:
            config.server_port = int(port)
        except ValueError:
            raise ConfigError(
                f"{PORT_ENV} must be an integer",
                {"value": port},
            )

    config.username = os.environ.get(USERNAME_ENV, "")
    config.password = os.environ.get(PASSWORD_ENV, "")

    return config
