"""
GitLike Reconciliation Engine

Two distinct merges live here and their tie-break policies differ:

- merge_repositories(): local vs. remote snapshot. Nothing from either side
  is dropped; a todo present on both sides is replaced by the remote copy
  only when the remote updated_at is strictly later (ties keep local).
- merge_branch_into(): source branch into the current branch. Todos whose id
  already exists on the current branch are never overwritten.

reconcile_with_git() aligns todo branches with the branches of a real Git
repository.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field

from gitlike.exceptions import InvalidOperationError
from gitlike.lifecycle import delete_branch, require_branch, require_current_branch
from gitlike.models import Branch, Commit, Repository, Todo, utcnow

logger = logging.getLogger(__name__)

MERGED_PREFIX = "[MERGED from {source}] "


@dataclass
class BranchMergeResult:
    """Outcome of merging one branch into the current branch."""

    source: str
    target: str
    todos_merged: list[int] = field(default_factory=list)
    commits_merged: list[str] = field(default_factory=list)
    source_deleted: bool = False


@dataclass
class GitReconcileResult:
    """Outcome of aligning todo branches with Git branches."""

    current_branch: str
    branches_created: list[str] = field(default_factory=list)


# ============================================================================
# REMOTE RECONCILIATION
# ============================================================================


def merge_todos(local_todos: list[Todo], remote_todos: list[Todo]) -> list[Todo]:
    """
    Merge two todo lists of the same branch.

    Unknown remote ids are appended in remote order. Known ids keep their
    local position and take the remote copy only if it is strictly newer.
    """
    merged = list(local_todos)
    index = {todo.id: i for i, todo in enumerate(merged)}

    for remote_todo in remote_todos:
        position = index.get(remote_todo.id)
        if position is None:
            index[remote_todo.id] = len(merged)
            merged.append(remote_todo)
        elif remote_todo.updated_at > merged[position].updated_at:
            merged[position] = remote_todo

    return merged


def merge_commits(local_commits: list[Commit], remote_commits: list[Commit]) -> list[Commit]:
    """Append remote commits whose id is not already known, in remote order."""
    merged = list(local_commits)
    seen = {commit.id for commit in merged}
    for commit in remote_commits:
        if commit.id not in seen:
            seen.add(commit.id)
            merged.append(commit)
    return merged


def _keep_single_active(branch: Branch) -> None:
    active = [todo for todo in branch.todos if todo.is_active]
    if len(active) < 2:
        return
    # Newest wins; max() keeps the earliest position on ties
    keep = max(active, key=lambda todo: todo.updated_at)
    for todo in active:
        if todo is not keep:
            todo.is_active = False
    logger.debug(f"Branch {branch.name}: kept todo #{keep.id} active after merge")


def merge_repositories(local: Repository, remote: Repository) -> Repository:
    """
    Combine a local repository with a remote snapshot.

    Neither input is modified. The current branch and Git integration
    settings always come from local. Each branch ends with at most one active todo, the most recently updated.
    """
    merged = copy.deepcopy(local)
    remote = copy.deepcopy(remote)

    for remote_branch in remote.branches:
        local_branch = merged.get_branch(remote_branch.name)
        if local_branch is None:
            # Only the local current branch is active
            remote_branch.is_active = False
            merged.branches.append(remote_branch)
            _keep_single_active(remote_branch)
        else:
            local_branch.todos = merge_todos(local_branch.todos, remote_branch.todos)
            _keep_single_active(local_branch)

    merged.commits = merge_commits(merged.commits, remote.commits)
    merged.next_todo_id = max(merged.next_todo_id, remote.next_todo_id)
    merged.last_sync = utcnow()

    logger.debug(
        f"Merged snapshot: {len(merged.branches)} branches, "
        f"{len(merged.commits)} commits, next id {merged.next_todo_id}"
    )
    return merged


# ============================================================================
# BRANCH MERGE
# ============================================================================


def merge_branch_into(
    repo: Repository,
    source: str,
    delete_source: bool = False,
) -> BranchMergeResult:
    """
    Merge a source branch into the current branch.

    New todos are copied with their branch name rewritten and updated_at
    refreshed. Commits recorded on the source are duplicated onto the current
    branch with a "[MERGED from ...]" prefix; the originals stay in the log.

    Args:
        repo: Repository to mutate
        source: Name of the branch to merge from
        delete_source: Delete the source branch afterwards (caller confirms)

    Raises:
        InvalidOperationError: If source is the current branch
        NotFoundError: If source does not exist
    """
    target = require_current_branch(repo)
    if source == target.name:
        raise InvalidOperationError("Cannot merge branch into itself", {"branch": source})
    source_branch = require_branch(repo, source)

    now = utcnow()
    result = BranchMergeResult(source=source, target=target.name)

    existing = {todo.id for todo in target.todos}
    for todo in source_branch.todos:
        if todo.id in existing:
            continue
        merged_todo = copy.deepcopy(todo)
        merged_todo.branch_name = target.name
        merged_todo.updated_at = now
        # Only one active todo per branch
        if merged_todo.is_active and target.active_todo() is not None:
            merged_todo.is_active = False
        target.todos.append(merged_todo)
        existing.add(todo.id)
        result.todos_merged.append(todo.id)

    prefix = MERGED_PREFIX.format(source=source)
    for commit in [c for c in repo.commits if c.branch == source]:
        duplicate = copy.deepcopy(commit)
        duplicate.branch = target.name
        duplicate.message = prefix + commit.message
        duplicate.created_at = now
        repo.commits.append(duplicate)
        result.commits_merged.append(commit.id)

    if delete_source:
        delete_branch(repo, source, force=True)
        result.source_deleted = True

    logger.info(
        f"Merged {source} into {target.name}: "
        f"{len(result.todos_merged)} todos, {len(result.commits_merged)} commits"
    )
    return result


# ============================================================================
# GIT RECONCILIATION
# ============================================================================


def reconcile_with_git(
    repo: Repository,
    git_current: str,
    git_branches: list[str],
) -> GitReconcileResult:
    """
    Align todo branches with a Git repository.

    Every Git branch missing locally gets an empty todo branch, and the Git
    current branch becomes the todo current branch.
    """
    result = GitReconcileResult(current_branch=git_current)
    now = utcnow()

    names = list(git_branches)
    if git_current and git_current not in names:
        names.append(git_current)

    for name in names:
        if not name or repo.get_branch(name) is not None:
            continue
        repo.branches.append(Branch(name=name, created_at=now))
        result.branches_created.append(name)

    if git_current:
        repo.current_branch = git_current
        for branch in repo.branches:
            branch.is_active = branch.name == git_current

    return result
