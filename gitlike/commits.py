"""
GitLike Commit Recorder

Builds commit records from the active and completed todos of the current
branch, and renders the richer message used when mirroring into Git.
"""

from __future__ import annotations

import hashlib
import logging
import time

from gitlike.exceptions import NotFoundError, NothingToCommitError, ValidationError
from gitlike.lifecycle import link_commit, require_current_branch
from gitlike.models import Commit, Repository, Todo, TodoStatus, utcnow

logger = logging.getLogger(__name__)

COMMIT_ID_LENGTH = 8


def generate_commit_id(message: str, branch: str, timestamp_ns: int | None = None) -> str:
    """
    Short identifier derived from message, branch and time.

    A convenience id, not a content hash: uniqueness is practical only.
    """
    if timestamp_ns is None:
        timestamp_ns = time.time_ns()
    digest = hashlib.sha1(f"{message}-{branch}-{timestamp_ns}".encode("utf-8"))
    return digest.hexdigest()[:COMMIT_ID_LENGTH]


def select_commit_todos(
    repo: Repository,
    include_completed: bool = False,
) -> tuple[list[Todo], Todo | None]:
    """
    Choose which todos a new commit covers.

    The active todo comes first. Completed todos are included when there is
    no active todo, or when include_completed is set.

    Returns:
        (included todos, active todo or None)
    """
    branch = require_current_branch(repo)
    active = branch.active_todo()
    completed = [t for t in branch.todos if t.status == TodoStatus.COMPLETED and t is not active]

    if active is None:
        return completed, None

    included = [active]
    if include_completed:
        included.extend(completed)
    return included, active


def record_commit(
    repo: Repository,
    message: str,
    author: str,
    include_completed: bool = False,
) -> Commit:
    """
    Append a commit covering the current branch's active/completed todos.

    Raises:
        ValidationError: If the message is empty
        NothingToCommitError: If no todo is active or completed
    """
    message = message.strip()
    if not message:
        raise ValidationError("Commit message cannot be empty")

    branch = require_current_branch(repo)
    todos, active = select_commit_todos(repo, include_completed)
    if not todos:
        raise NothingToCommitError(
            "No todos to commit. Start working on a todo or complete one first.",
            {"branch": branch.name},
        )

    commit = Commit(
        id=generate_commit_id(message, branch.name),
        message=message,
        branch=branch.name,
        todos=[t.id for t in todos],
        active_todo=active.id if active else None,
        created_at=utcnow(),
        author=author or "unknown",
    )
    repo.commits.append(commit)

    for todo in todos:
        link_commit(repo, todo.id, commit.id)

    logger.info(f"Recorded commit {commit.id} on {branch.name} covering {commit.todos}")
    return commit


def find_commit(repo: Repository, commit_id: str) -> Commit:
    """
    Look up a commit by id or unique id prefix.

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If a prefix is ambiguous
    """
    commit_id = commit_id.strip()
    exact = repo.get_commit(commit_id)
    if exact is not None:
        return exact

    matches = {c.id for c in repo.commits if commit_id and c.id.startswith(commit_id)}
    if len(matches) == 1:
        return repo.get_commit(matches.pop())  # type: ignore[return-value]
    if len(matches) > 1:
        raise ValidationError(
            f"Commit prefix '{commit_id}' is ambiguous",
            {"matches": sorted(matches)},
        )
    raise NotFoundError(f"Commit {commit_id} not found", kind="commit", key=commit_id)


def render_commit_template(template: str, message: str) -> str:
    """Expand the message placeholder of a commit template."""
    if not template:
        return message
    rendered = template.replace("{{.Message}}", message).replace("{message}", message)
    return rendered


def build_git_message(repo: Repository, commit: Commit) -> str:
    """
    Render the Git commit message for a recorded commit.

    Example:
        todo: Add login form

        Active Task: #3 Implement auth
        GitLike Todos:
        - #3 [high] Implement auth (active)
        - #1 [low] Write docs (done)

        GitLike Commit ID: 1a2b3c4d
    """
    subject = render_commit_template(repo.git_integration.commit_template, commit.message)
    lines = [subject]

    branch = repo.get_branch(commit.branch)
    todos = {t.id: t for t in branch.todos} if branch else {}

    if commit.todos:
        lines.append("")
        if commit.active_todo is not None and commit.active_todo in todos:
            active = todos[commit.active_todo]
            lines.append(f"Active Task: #{active.id} {active.title}")
        lines.append("GitLike Todos:")
        for todo_id in commit.todos:
            todo = todos.get(todo_id)
            if todo is None:
                continue
            line = f"- #{todo.id} [{todo.priority.value}] {todo.title}"
            if todo.status == TodoStatus.COMPLETED:
                line += " (done)"
            elif todo.is_active:
                line += " (active)"
            lines.append(line)
        lines.append("")
        lines.append(f"GitLike Commit ID: {commit.id}")

    return "\n".join(lines)
