"""
GitLike CLI components.

Split into focused modules:
- common.py: Consoles, service construction, error to exit-code mapping
- display.py: Rich tables and panels
- branch.py, todo.py, commit.py, remote.py, git.py: Sub-command groups
- typer_commands.py: Root app, merge/push/pull/fetch/sync, serve, version, logs
"""

from gitlike.cli.common import EXIT_CODES, exit_code_for, get_service
from gitlike.cli.typer_commands import app, run

__all__ = [
    "app",
    "run",
    "get_service",
    "EXIT_CODES",
    "exit_code_for",
]
