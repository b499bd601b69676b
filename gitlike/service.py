"""
GitLike Service - use-case layer

Each public method is one CLI command: load the snapshot, run a core
operation against it, save it. A failure anywhere before the save leaves
the snapshot on disk untouched.

Storage, the remote transport and the Git adapter are injected so tests
can substitute any of them.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from gitlike import commits, lifecycle
from gitlike.config import GitLikeConfig
from gitlike.exceptions import GitError, GitLikeError, InvalidOperationError, NotFoundError
from gitlike.integrations.git_ops import GitOps, PushStatus
from gitlike.logging import OperationLogEntry, SyncLogEntry, now_iso, operation_logger, sync_logger
from gitlike.merge import (
    BranchMergeResult,
    GitReconcileResult,
    merge_branch_into,
    merge_repositories,
    reconcile_with_git,
)
from gitlike.models import (
    DEFAULT_COMMIT_TEMPLATE,
    Branch,
    Commit,
    Priority,
    Remote,
    RemoteType,
    Repository,
    Todo,
    TodoStatus,
    utcnow,
)
from gitlike.remote import RemoteService
from gitlike.storage import RepositoryStorage

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"
AUTO_COMMIT_MESSAGE = "Auto-commit before push"


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass
class SwitchResult:
    """Outcome of switching branches."""

    branch: str
    pulled_from: str | None = None  # Remote the branch was fetched from
    synced_with: str | None = None  # Remote merged after switching
    sync_error: str | None = None
    git_checked_out: bool = False
    git_error: str | None = None


@dataclass
class CommitResult:
    """A recorded commit and, optionally, its Git counterpart."""

    commit: Commit
    git_sha: str | None = None
    git_skipped: str | None = None  # Reason the Git commit was not attempted
    pushed: bool = False
    push_output: str = ""
    push_error: str | None = None


@dataclass
class PullResult:
    """Outcome of pulling and merging a remote snapshot."""

    remote: str
    branches: int
    commits: int
    next_todo_id: int


@dataclass
class FetchSummary:
    """What a remote holds, without merging it."""

    remote: str
    branches: int
    commits: int
    last_sync: datetime | None = None


@dataclass
class SyncResult:
    """Pull followed by push."""

    remote: str
    pull: PullResult
    pushed: bool = True


@dataclass
class GitInitResult:
    """Outcome of enabling Git integration."""

    repo_path: str
    remote_url: str
    current_branch: str
    branches_created: list[str] = field(default_factory=list)
    sync_error: str | None = None


@dataclass
class GitStatus:
    """Integration settings plus the live state of the working tree."""

    enabled: bool
    auto_sync: bool = False
    auto_commit: bool = False
    repo_path: str = ""
    remote_url: str = ""
    last_git_sync: datetime | None = None
    in_git_repo: bool = False
    current_branch: str | None = None
    changed_files: list[str] = field(default_factory=list)


@dataclass
class GitPushResult:
    """Outcome of pushing the Git branch."""

    status: PushStatus
    pushed: bool = False
    output: str = ""
    auto_committed: bool = False


@dataclass
class GitPullResult:
    """Outcome of pulling the Git branch."""

    branch: str
    remote_url: str | None = None
    output: str = ""
    changed_files: list[str] = field(default_factory=list)
    stashed: bool = False
    reconcile: GitReconcileResult | None = None


@dataclass
class _Transaction:
    repo: Repository
    details: dict[str, Any]


# ============================================================================
# SERVICE
# ============================================================================


class GitLikeService:
    """
    Runs GitLike commands against a stored repository.

    Usage:
        service = GitLikeService(RepositoryStorage(config.repo_path), config=config)
        todo = service.create_todo("Write docs", priority="high")
    """

    def __init__(
        self,
        storage: RepositoryStorage,
        remote_service: RemoteService | None = None,
        git: GitOps | None = None,
        config: GitLikeConfig | None = None,
    ):
        self.config = config or GitLikeConfig()
        self.storage = storage
        self.remote_service = remote_service or RemoteService(
            timeout=self.config.http_timeout,
            credentials=self.config.credentials,
        )
        self._git = git

    @property
    def git(self) -> GitOps:
        """Git adapter for the working tree around the current directory."""
        if self._git is None:
            self._git = GitOps(timeout=self.config.git_timeout)
        return self._git

    def load(self) -> Repository:
        """Load the repository for read-only views."""
        return self.storage.load()

    @contextmanager
    def _transaction(self, operation: str, **details: Any) -> Iterator[_Transaction]:
        """Load, hand the repository to the caller, save on success, log either way."""
        start = time.monotonic()
        tx = _Transaction(repo=self.storage.load(), details=dict(details))
        entry = OperationLogEntry(timestamp=now_iso(), operation=operation)
        try:
            yield tx
            self.storage.save(tx.repo)
        except Exception as e:
            entry.success = False
            entry.error = e.message if isinstance(e, GitLikeError) else str(e)
            entry.error_type = type(e).__name__
            raise
        finally:
            entry.branch = tx.repo.current_branch
            entry.details = tx.details
            entry.duration_ms = int((time.monotonic() - start) * 1000)
            operation_logger.info(entry.to_json())

    @contextmanager
    def _sync(self, remote: str, direction: str, url: str = "") -> Iterator[SyncLogEntry]:
        """Time and log one transfer; the caller fills in counts."""
        start = time.monotonic()
        entry = SyncLogEntry(timestamp=now_iso(), remote=remote, direction=direction, url=url)
        try:
            yield entry
        except Exception as e:
            entry.success = False
            entry.error = e.message if isinstance(e, GitLikeError) else str(e)
            raise
        finally:
            entry.duration_ms = int((time.monotonic() - start) * 1000)
            sync_logger.info(entry.to_json())

    # Branch Operations

    def create_branch(self, name: str) -> Branch:
        with self._transaction("branch.create", name=name) as tx:
            lifecycle.create_branch(tx.repo, name)
            return lifecycle.require_branch(tx.repo, name.strip())

    def switch_branch(self, name: str, sync: bool = False) -> SwitchResult:
        """
        Make a branch current.

        With sync, a branch missing locally is fetched from the first remote,
        and after switching the first remote's snapshot is merged in. Git
        checkout follows when integration has auto_sync on.
        """
        result = SwitchResult(branch=name)

        with self._transaction("branch.switch", name=name, sync=sync) as tx:
            remote_repo: Repository | None = None
            remote = tx.repo.remotes[0] if sync and tx.repo.remotes else None

            if tx.repo.get_branch(name) is None and remote is not None:
                logger.info(f"Branch {name} not found locally, pulling from {remote.name}")
                with self._sync(remote.name, "pull", remote.url) as entry:
                    remote_repo = self.remote_service.pull(remote)
                    entry.branches = len(remote_repo.branches)
                    entry.commits = len(remote_repo.commits)
                remote_branch = remote_repo.get_branch(name)
                if remote_branch is None:
                    raise NotFoundError(
                        f"Branch '{name}' does not exist locally or on remote '{remote.name}'",
                        kind="branch",
                        key=name,
                    )
                tx.repo.branches.append(remote_branch)
                result.pulled_from = remote.name

            lifecycle.switch_branch(tx.repo, name)

            if remote is not None:
                try:
                    if remote_repo is None:
                        with self._sync(remote.name, "pull", remote.url) as entry:
                            remote_repo = self.remote_service.pull(remote)
                            entry.branches = len(remote_repo.branches)
                            entry.commits = len(remote_repo.commits)
                    tx.repo = merge_repositories(tx.repo, remote_repo)
                    result.synced_with = remote.name
                except GitLikeError as e:
                    logger.warning(f"Sync with {remote.name} after switch failed: {e}")
                    result.sync_error = e.message

            integration = tx.repo.git_integration
            if integration.enabled and integration.auto_sync and self.git.is_git_repo():
                try:
                    self.git.checkout_branch(name)
                    result.git_checked_out = True
                except GitError as e:
                    logger.warning(f"Git checkout of {name} failed: {e}")
                    result.git_error = e.message

            tx.details["pulled_from"] = result.pulled_from

        return result

    def delete_branch(self, name: str, force: bool = False) -> Branch:
        """Delete a branch, returning it so callers can report its todos."""
        with self._transaction("branch.delete", name=name, force=force) as tx:
            branch = tx.repo.get_branch(name)
            lifecycle.delete_branch(tx.repo, name, force=force, default_branch=self.config.default_branch)
            return branch  # type: ignore[return-value]

    def merge_branch(self, source: str, delete_source: bool = False) -> BranchMergeResult:
        with self._transaction("branch.merge", source=source) as tx:
            result = merge_branch_into(tx.repo, source, delete_source=delete_source)
            tx.details.update(
                todos=len(result.todos_merged),
                commits=len(result.commits_merged),
                source_deleted=result.source_deleted,
            )
            return result

    # Todo Operations

    def create_todo(
        self,
        title: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
    ) -> Todo:
        with self._transaction("todo.create") as tx:
            todo = lifecycle.create_todo(tx.repo, title, description, priority)
            tx.details["todo_id"] = todo.id
            return todo

    def update_todo(self, todo_id: int, status: TodoStatus | str) -> Todo:
        with self._transaction("todo.update", todo_id=todo_id) as tx:
            todo = lifecycle.update_status(tx.repo, todo_id, status)
            tx.details["status"] = todo.status.value
            return todo

    def complete_todo(self, todo_id: int) -> Todo:
        with self._transaction("todo.done", todo_id=todo_id) as tx:
            return lifecycle.complete_todo(tx.repo, todo_id)

    def start_todo(self, todo_id: int) -> Todo:
        with self._transaction("todo.start", todo_id=todo_id) as tx:
            return lifecycle.start_todo(tx.repo, todo_id)

    def stop_todo(self) -> Todo:
        with self._transaction("todo.stop") as tx:
            todo = lifecycle.stop_todo(tx.repo)
            tx.details["todo_id"] = todo.id
            return todo

    def active_todo(self) -> Todo | None:
        return lifecycle.active_todo(self.load())

    def todo_history(self, todo_id: int) -> tuple[Todo, list[Commit]]:
        return lifecycle.todo_history(self.load(), todo_id)

    # Commits

    def commit(
        self,
        message: str,
        include_completed: bool = False,
        git: bool = False,
        add: bool = False,
    ) -> CommitResult:
        """
        Record a commit, optionally mirroring it into Git.

        A Git failure aborts the whole command so the todo commit is not
        saved without its Git counterpart. Outside a Git repository the Git
        step is skipped and reported.
        """
        with self._transaction("commit.create", git=git) as tx:
            commit = commits.record_commit(tx.repo, message, self.config.author, include_completed)
            result = CommitResult(commit=commit)
            tx.details.update(commit_id=commit.id, todos=commit.todos)

            if git:
                if not self.git.is_git_repo():
                    result.git_skipped = "Not in a Git repository"
                else:
                    if add:
                        self.git.add_all()
                    git_message = commits.build_git_message(tx.repo, commit)
                    result.git_sha = self.git.commit_changes(git_message, add_all=False)
                    tx.details["git_sha"] = result.git_sha

            return result

    def find_commit(self, commit_id: str) -> Commit:
        return commits.find_commit(self.load(), commit_id)

    # Remotes

    def add_remote(self, name: str, url: str, remote_type: RemoteType | str = RemoteType.HTTP) -> Remote:
        with self._transaction("remote.add", name=name) as tx:
            return lifecycle.add_remote(tx.repo, name, url, remote_type)

    def remove_remote(self, name: str) -> Remote:
        with self._transaction("remote.remove", name=name) as tx:
            return lifecycle.remove_remote(tx.repo, name)

    def push(self, remote_name: str = DEFAULT_REMOTE) -> Remote:
        """Replace the remote snapshot with the local one."""
        repo = self.load()
        remote = lifecycle.get_remote(repo, remote_name)
        with self._sync(remote.name, "push", remote.url) as entry:
            self.remote_service.push(remote, repo)
            entry.branches = len(repo.branches)
            entry.commits = len(repo.commits)
        return remote

    def pull(self, remote_name: str = DEFAULT_REMOTE) -> PullResult:
        """Fetch the remote snapshot and merge it into the local one."""
        with self._transaction("remote.pull", remote=remote_name) as tx:
            remote = lifecycle.get_remote(tx.repo, remote_name)
            with self._sync(remote.name, "pull", remote.url) as entry:
                remote_repo = self.remote_service.pull(remote)
                entry.branches = len(remote_repo.branches)
                entry.commits = len(remote_repo.commits)
            tx.repo = merge_repositories(tx.repo, remote_repo)
            return PullResult(
                remote=remote.name,
                branches=len(remote_repo.branches),
                commits=len(remote_repo.commits),
                next_todo_id=tx.repo.next_todo_id,
            )

    def fetch(self, remote_name: str = DEFAULT_REMOTE) -> FetchSummary:
        """Report what the remote holds without merging."""
        remote = lifecycle.get_remote(self.load(), remote_name)
        with self._sync(remote.name, "fetch", remote.url) as entry:
            remote_repo = self.remote_service.pull(remote)
            entry.branches = len(remote_repo.branches)
            entry.commits = len(remote_repo.commits)
        return FetchSummary(
            remote=remote.name,
            branches=len(remote_repo.branches),
            commits=len(remote_repo.commits),
            last_sync=remote_repo.last_sync,
        )

    def sync(self, remote_name: str = DEFAULT_REMOTE) -> SyncResult:
        """Pull then push, so both sides end with the merged snapshot."""
        pulled = self.pull(remote_name)
        self.push(remote_name)
        return SyncResult(remote=pulled.remote, pull=pulled)

    # Git Integration

    def _require_git(self, repo: Repository) -> None:
        if not repo.git_integration.enabled:
            raise InvalidOperationError(
                "Git integration not enabled. Run 'gitlike git init' first."
            )
        if not self.git.is_git_repo():
            raise GitError("Not in a Git repository")

    def git_init(self) -> GitInitResult:
        """Enable Git integration for the working tree around cwd."""
        if not self.git.is_git_repo():
            raise GitError("Not in a Git repository")

        with self._transaction("git.init") as tx:
            integration = tx.repo.git_integration
            integration.enabled = True
            integration.auto_sync = True
            integration.repo_path = str(self.git.repo_path)
            integration.remote_url = self.git.remote_url() or ""
            integration.commit_template = DEFAULT_COMMIT_TEMPLATE

            result = GitInitResult(
                repo_path=integration.repo_path,
                remote_url=integration.remote_url,
                current_branch=tx.repo.current_branch,
            )
            try:
                reconciled = reconcile_with_git(
                    tx.repo, self.git.current_branch(), self.git.list_branches()
                )
                result.current_branch = reconciled.current_branch
                result.branches_created = reconciled.branches_created
            except GitError as e:
                # Integration stays enabled; `git sync` can be retried
                logger.warning(f"Could not sync with Git: {e}")
                result.sync_error = e.message

            tx.details["repo_path"] = result.repo_path
            return result

    def git_status(self) -> GitStatus:
        repo = self.load()
        integration = repo.git_integration
        status = GitStatus(
            enabled=integration.enabled,
            auto_sync=integration.auto_sync,
            auto_commit=integration.auto_commit,
            repo_path=integration.repo_path,
            remote_url=integration.remote_url,
            last_git_sync=integration.last_git_sync,
        )
        if integration.enabled and self.git.is_git_repo():
            status.in_git_repo = True
            status.current_branch = self.git.current_branch()
            status.changed_files = self.git.changed_files()
        return status

    def git_sync(self) -> GitReconcileResult:
        """Create todo branches for Git branches and follow the Git current branch."""
        with self._transaction("git.sync") as tx:
            self._require_git(tx.repo)
            with self._sync("git", "sync", tx.repo.git_integration.remote_url) as entry:
                result = reconcile_with_git(
                    tx.repo, self.git.current_branch(), self.git.list_branches()
                )
                entry.branches = len(tx.repo.branches)
            tx.repo.git_integration.last_git_sync = utcnow()
            tx.details["branches_created"] = result.branches_created
            return result

    def git_commit(self, message: str, push: bool = False) -> CommitResult:
        """Record a commit including completed todos and commit the working tree to Git."""
        with self._transaction("git.commit", push=push) as tx:
            self._require_git(tx.repo)
            commit = commits.record_commit(
                tx.repo, message, self.config.author, include_completed=True
            )
            result = CommitResult(commit=commit)
            result.git_sha = self.git.commit_changes(commits.build_git_message(tx.repo, commit))
            tx.details.update(commit_id=commit.id, git_sha=result.git_sha)

            if push:
                try:
                    with self._sync("git", "push", tx.repo.git_integration.remote_url) as entry:
                        entry.commits = len(self.git.unpushed_commits())
                        result.push_output = self.git.push()
                except GitError as e:
                    # Git already holds the commit, so the todo commit it names must be saved
                    logger.warning(f"Push after commit {commit.short_id} failed: {e}")
                    result.push_error = e.message
                    tx.details["push_error"] = e.message
                else:
                    result.pushed = True
                    tx.repo.git_integration.last_git_sync = utcnow()

            return result

    def git_push(self, auto_commit: bool = False) -> GitPushResult:
        """Push the current Git branch, optionally committing pending changes first."""
        repo = self.load()
        self._require_git(repo)

        status = self.git.push_status()
        result = GitPushResult(status=status)

        if status.changed_files and auto_commit:
            self.git.commit_changes(AUTO_COMMIT_MESSAGE)
            result.auto_committed = True
            result.status = status = self.git.push_status()

        if status.unpushed_count == 0:
            return result

        with self._transaction("git.push", branch=status.current_branch) as tx:
            with self._sync("git", "push", status.remote_url or "") as entry:
                entry.commits = status.unpushed_count
                result.output = self.git.push()
            result.pushed = True
            tx.repo.git_integration.last_git_sync = utcnow()

        return result

    def git_pull(self, stash: bool = False, sync: bool = False) -> GitPullResult:
        """Pull the current Git branch, optionally stashing first and syncing after."""
        with self._transaction("git.pull", stash=stash, sync=sync) as tx:
            self._require_git(tx.repo)
            result = GitPullResult(
                branch=self.git.current_branch(),
                remote_url=self.git.remote_url(),
                changed_files=self.git.changed_files(),
            )

            if result.changed_files and stash:
                self.git.stash()
                result.stashed = True

            with self._sync("git", "pull", result.remote_url or "") as entry:
                result.output = self.git.pull()
                if sync:
                    result.reconcile = reconcile_with_git(
                        tx.repo, self.git.current_branch(), self.git.list_branches()
                    )
                entry.branches = len(tx.repo.branches)

            tx.repo.git_integration.last_git_sync = utcnow()
            return result
