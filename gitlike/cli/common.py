"""
Shared CLI plumbing: consoles, service construction and error reporting.

Every command runs its service call inside handle_errors(), which prints
GitLikeError messages to stderr and exits with a code chosen by error kind.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from gitlike.config import load_config
from gitlike.exceptions import (
    AdapterError,
    AlreadyExistsError,
    BranchNotEmptyError,
    ConfigError,
    GitError,
    GitLikeError,
    InvalidOperationError,
    NoActiveTodoError,
    NetworkError,
    NotFoundError,
    NothingToCommitError,
    ProtectedBranchError,
    StorageError,
    ValidationError,
)
from gitlike.service import GitLikeService
from gitlike.storage import RepositoryStorage

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

# Exit code per error kind; the most specific class in the MRO wins
EXIT_CODES: dict[type[GitLikeError], int] = {
    GitLikeError: 1,
    StorageError: 2,
    ConfigError: 3,
    NotFoundError: 4,
    AlreadyExistsError: 5,
    InvalidOperationError: 6,
    ProtectedBranchError: 7,
    BranchNotEmptyError: 8,
    ValidationError: 9,
    NothingToCommitError: 10,
    NoActiveTodoError: 11,
    NetworkError: 12,
    AdapterError: 13,
    GitError: 14,
}


def exit_code_for(error: GitLikeError) -> int:
    """Exit code for an error, falling back through its base classes."""
    for cls in type(error).__mro__:
        if cls in EXIT_CODES:
            return EXIT_CODES[cls]
    return 1


def get_service() -> GitLikeService:
    """Build a service from the resolved configuration."""
    config = load_config()
    storage = RepositoryStorage(config.repo_path, default_branch=config.default_branch)
    return GitLikeService(storage, config=config)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn GitLikeError into a red stderr line and a kind-specific exit code."""
    try:
        yield
    except GitError as e:
        err_console.print(f"[bold red]Git error:[/bold red] {e.message}")
        if e.output and e.output not in e.message:
            err_console.print(f"[dim]{e.output}[/dim]")
        raise typer.Exit(exit_code_for(e))
    except GitLikeError as e:
        logger.debug(f"Command failed: {e}")
        err_console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(exit_code_for(e))

