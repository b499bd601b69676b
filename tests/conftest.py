"""Shared fixtures for GitLike tests."""

from datetime import datetime, timedelta, timezone

import pytest

from gitlike import logging as gitlike_logging
from gitlike.logging import LogConfig
from gitlike.models import Branch, Repository, Todo, TodoStatus
from gitlike.storage import RepositoryStorage

BASE_TIME = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

ENV_VARS = [
    "GITLIKE_HOME",
    "GITLIKE_HTTP_TIMEOUT",
    "GITLIKE_AUTHOR",
    "GITLIKE_LOG_LEVEL",
    "GITLIKE_LOG_DIR",
    "GITLIKE_LOG_MAX_SIZE_MB",
    "TODO_CLI_USERNAME",
    "TODO_CLI_PASSWORD",
    "PORT",
]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep every test away from ~/.tododata and the caller's environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "gitlike-home"
    monkeypatch.setenv("GITLIKE_HOME", str(home))
    gitlike_logging.configure(LogConfig(log_dir=home / "logs"))
    yield home
    gitlike_logging.configure(LogConfig.from_env())


@pytest.fixture
def repo():
    """Fresh repository with a single empty main branch."""
    return Repository.create_default()


@pytest.fixture
def storage(tmp_path):
    """Storage pointed at a temp snapshot file."""
    return RepositoryStorage(tmp_path / "data" / "repository.json")


def make_todo(todo_id, title=None, status=TodoStatus.PENDING, branch="main", updated_at=None, **kwargs):
    """Build a todo with deterministic timestamps."""
    updated = updated_at or BASE_TIME
    return Todo(
        id=todo_id,
        title=title or f"Todo {todo_id}",
        status=status,
        created_at=BASE_TIME,
        updated_at=updated,
        branch_name=branch,
        **kwargs,
    )


def make_repo(*branches, current="main", next_todo_id=None, commits=None):
    """Build a repository from (name, [todos]) pairs."""
    repo = Repository(
        branches=[Branch(name=name, created_at=BASE_TIME, todos=list(todos)) for name, todos in branches],
        current_branch=current,
        commits=list(commits or []),
    )
    ids = [t.id for t in repo.all_todos()]
    repo.next_todo_id = next_todo_id or (max(ids) + 1 if ids else 1)
    return repo


@pytest.fixture
def later():
    """A timestamp strictly after BASE_TIME."""
    return BASE_TIME + timedelta(hours=1)
