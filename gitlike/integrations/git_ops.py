"""
Git Operations Integration

Drives the local git binary for:
- Branch discovery, creation and checkout
- Working-tree status and commits
- Push/pull against the configured upstream
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from gitlike.exceptions import GitError

logger = logging.getLogger(__name__)

LOG_FORMAT = "--pretty=format:%H|%s|%an|%at"


@dataclass
class GitCommitInfo:
    """A commit as reported by git log."""

    sha: str
    message: str
    author: str
    created_at: datetime

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass
class PushStatus:
    """Snapshot of what a push would do."""

    current_branch: str
    remote_url: str | None = None
    unpushed_commits: list[GitCommitInfo] = field(default_factory=list)
    changed_files: list[str] = field(default_factory=list)
    has_upstream: bool = False

    @property
    def unpushed_count(self) -> int:
        return len(self.unpushed_commits)

    @property
    def uncommitted_count(self) -> int:
        return len(self.changed_files)


def find_git_repo(start: Path | str) -> Path | None:
    """Walk up from start looking for a .git entry."""
    current = Path(start).resolve()
    for candidate in [current, *current.parents]:
        if (candidate / ".git").exists():
            return candidate
    return None


class GitOps:
    """
    Git operations via the git CLI.

    Every command runs synchronously with captured output; a non-zero exit
    raises GitError carrying that output.
    """

    def __init__(self, repo_path: Path | str | None = None, timeout: int = 60):
        """
        Initialize Git operations.

        Args:
            repo_path: Working tree root (auto-detected from cwd if not provided)
            timeout: Seconds before a git command is killed
        """
        if repo_path is None:
            self.repo_path = find_git_repo(Path.cwd())
        else:
            self.repo_path = find_git_repo(repo_path)
        self.timeout = timeout

    def is_git_repo(self) -> bool:
        """Check whether a working tree was found."""
        return self.repo_path is not None

    def _require_repo(self) -> Path:
        if self.repo_path is None:
            raise GitError("not in a git repository")
        return self.repo_path

    def _run_git(
        self,
        args: list[str],
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a git command inside the working tree."""
        cwd = self._require_repo()
        cmd = ["git"] + args

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise GitError("git executable not found")
        except subprocess.TimeoutExpired:
            raise GitError(f"git {args[0]} timed out after {self.timeout}s")

        if check and result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise GitError(
                f"git {args[0]} failed: {output}",
                exit_code=result.returncode,
                output=output,
            )

        return result

    # Branch Operations

    def current_branch(self) -> str:
        """Name of the checked-out branch."""
        result = self._run_git(["rev-parse", "--abbrev-ref", "HEAD"])
        return result.stdout.strip()

    def list_branches(self) -> list[str]:
        """Local and remote-tracking branch names, de-duplicated."""
        result = self._run_git(["branch", "-a"])
        branches: list[str] = []
        for raw in result.stdout.splitlines():
            line = raw.strip()
            if not line or "HEAD ->" in line:
                continue
            line = line.removeprefix("* ").strip()
            if line.startswith("remotes/"):
                # remotes/<remote>/<branch...>
                parts = line.split("/", 2)
                if len(parts) < 3:
                    continue
                line = parts[2]
            if line.startswith("(HEAD detached"):
                continue
            if line not in branches:
                branches.append(line)
        return branches

    def create_branch(self, name: str) -> None:
        """Create and check out a new branch."""
        self._run_git(["checkout", "-b", name])

    def checkout_branch(self, name: str) -> None:
        """Switch to an existing branch."""
        self._run_git(["checkout", name])

    # Working Tree

    def changed_files(self) -> list[str]:
        """Paths with uncommitted changes (porcelain status)."""
        result = self._run_git(["status", "--porcelain"])
        files = []
        for line in result.stdout.splitlines():
            # Format: "XY path"
            if len(line) > 3:
                files.append(line[3:])
        return files

    def remote_url(self, remote: str = "origin") -> str | None:
        """URL of a git remote, or None when it is not configured."""
        result = self._run_git(["remote", "get-url", remote], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def add_all(self) -> None:
        """Stage every change."""
        self._run_git(["add", "."])

    def commit_changes(self, message: str, add_all: bool = True) -> str:
        """
        Commit staged changes.

        Returns:
            The new HEAD sha
        """
        if add_all:
            self.add_all()
        self._run_git(["commit", "-m", message])
        return self.head_sha()

    def head_sha(self) -> str:
        """Full sha of HEAD."""
        return self._run_git(["rev-parse", "HEAD"]).stdout.strip()

    def stash(self, message: str = "Auto-stash before pull") -> None:
        """Stash uncommitted changes."""
        self._run_git(["stash", "push", "-m", message])

    # History

    def _parse_log(self, output: str) -> list[GitCommitInfo]:
        commits = []
        for line in output.splitlines():
            parts = line.split("|")
            if len(parts) != 4:
                continue
            try:
                created_at = datetime.fromtimestamp(int(parts[3]), tz=timezone.utc)
            except ValueError:
                continue
            commits.append(
                GitCommitInfo(sha=parts[0], message=parts[1], author=parts[2], created_at=created_at)
            )
        return commits

    def recent_commits(self, limit: int = 10) -> list[GitCommitInfo]:
        """The last N commits on HEAD."""
        result = self._run_git(["log", f"-{limit}", LOG_FORMAT])
        return self._parse_log(result.stdout)

    def has_upstream(self, branch: str | None = None) -> bool:
        """Whether the branch tracks a remote branch."""
        branch = branch or self.current_branch()
        result = self._run_git(["rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"], check=False)
        return result.returncode == 0

    def unpushed_commits(self) -> list[GitCommitInfo]:
        """Commits on HEAD not yet on origin/<branch> (all of HEAD if no such ref)."""
        branch = self.current_branch()
        result = self._run_git(["log", f"origin/{branch}..HEAD", LOG_FORMAT], check=False)
        if result.returncode != 0:
            result = self._run_git(["log", "HEAD", LOG_FORMAT], check=False)
            if result.returncode != 0:
                # Empty repository, nothing to push
                return []
        return self._parse_log(result.stdout)

    def push_status(self) -> PushStatus:
        """Collect branch, remote, unpushed and uncommitted state."""
        branch = self.current_branch()
        return PushStatus(
            current_branch=branch,
            remote_url=self.remote_url(),
            unpushed_commits=self.unpushed_commits(),
            changed_files=self.changed_files(),
            has_upstream=self.has_upstream(branch),
        )

    # Remote Operations

    def push(self) -> str:
        """
        Push the current branch, setting upstream when it has none.

        Returns:
            Combined git output
        """
        branch = self.current_branch()
        if self.has_upstream(branch):
            args = ["push"]
        else:
            args = ["push", "--set-upstream", "origin", branch]
        result = self._run_git(args)
        return (result.stdout + result.stderr).strip()

    def pull(self) -> str:
        """Pull from the upstream branch."""
        result = self._run_git(["pull"])
        return (result.stdout + result.stderr).strip()
