"""Tests for the command-line interface."""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from gitlike import __version__
from gitlike.cli import EXIT_CODES, app, exit_code_for, get_service
from gitlike.exceptions import (
    BranchNotEmptyError,
    GitError,
    GitLikeError,
    NotFoundError,
    ProtectedBranchError,
    StorageError,
)
from gitlike.models import Commit, Remote
from gitlike.service import CommitResult

runner = CliRunner()


def invoke(*args, **kwargs):
    return runner.invoke(app, list(args), **kwargs)


class TestExitCodes:
    """Tests for error kind to exit code mapping."""

    def test_specific_class_wins(self):
        """Test subclasses map to their own code."""
        assert exit_code_for(GitError("x")) == 14
        assert exit_code_for(ProtectedBranchError("x", branch="main")) == 7
        assert exit_code_for(NotFoundError("x", kind="todo", key=1)) == 4

    def test_unmapped_subclass_falls_back(self):
        """Test an unmapped subclass uses its nearest mapped base."""

        class OddStorageError(StorageError):
            pass

        assert exit_code_for(OddStorageError("x")) == EXIT_CODES[StorageError]
        assert exit_code_for(GitLikeError("x")) == 1

    def test_codes_are_distinct(self):
        """Test every error kind has its own code."""
        assert len(set(EXIT_CODES.values())) == len(EXIT_CODES)


class TestBasics:
    """Tests for top-level commands."""

    def test_version(self):
        """Test version output."""
        result = invoke("version")
        assert result.exit_code == 0
        assert f"gitlike {__version__}" in result.output

    def test_storage_under_gitlike_home(self, isolated_env):
        """Test the CLI uses GITLIKE_HOME for its snapshot."""
        invoke("branch", "list")
        assert (isolated_env / "repository.json").exists()

    @pytest.mark.parametrize("content", [b"\xff\xfe{}", b'{"branches": [], "git_integration": "yes"}'])
    def test_unreadable_snapshot_exit_code(self, isolated_env, content):
        """Snapshots that cannot be decoded exit with the storage code."""
        isolated_env.mkdir(parents=True, exist_ok=True)
        (isolated_env / "repository.json").write_bytes(content)

        result = invoke("branch", "list")

        assert result.exit_code == 2
        assert (isolated_env / "repository.json").read_bytes() == content


class TestBranchCommands:
    """Tests for branch subcommands."""

    def test_create_list_switch(self):
        """Test the basic branch workflow."""
        assert invoke("branch", "create", "feature").exit_code == 0

        result = invoke("branch", "switch", "feature")
        assert result.exit_code == 0
        assert "Switched to branch: feature" in result.output

        result = invoke("branch", "list")
        assert "feature" in result.output
        assert get_service().load().current_branch == "feature"

    def test_duplicate_branch_exit_code(self):
        """Test AlreadyExists maps to its exit code."""
        invoke("branch", "create", "feature")
        result = invoke("branch", "create", "feature")
        assert result.exit_code == 5
        assert "already exists" in result.output

    def test_delete_guards(self):
        """Test protected and non-empty branch exit codes."""
        invoke("branch", "create", "feature")
        invoke("branch", "switch", "feature")
        invoke("todo", "add", "Work")

        assert invoke("branch", "delete", "main").exit_code == 7

        invoke("branch", "switch", "main")
        result = invoke("branch", "delete", "feature")
        assert result.exit_code == exit_code_for(BranchNotEmptyError("x", branch="feature", todo_count=1))

        result = invoke("branch", "delete", "feature", "--force")
        assert result.exit_code == 0
        assert "removed 1 todos" in result.output

    def test_switch_unknown(self):
        """Test switching to a missing branch."""
        result = invoke("branch", "switch", "ghost")
        assert result.exit_code == 4
        assert "does not exist" in result.output


class TestTodoCommands:
    """Tests for todo subcommands."""

    def test_create_and_alias(self):
        """Test create and add both create todos."""
        result = invoke("todo", "create", "First", "-p", "high", "-d", "details")
        assert result.exit_code == 0
        assert "Created todo #1" in result.output
        assert "Priority: high" in result.output

        result = invoke("todo", "add", "Second")
        assert "Created todo #2" in result.output

    def test_invalid_priority(self):
        """Test validation failures exit with the validation code."""
        result = invoke("todo", "add", "x", "--priority", "urgent")
        assert result.exit_code == 9

    def test_start_stop_active(self):
        """Test the active todo workflow."""
        invoke("todo", "add", "Implement auth")
        assert invoke("todo", "start", "1").exit_code == 0

        result = invoke("todo", "active")
        assert "Implement auth" in result.output

        assert invoke("todo", "stop").exit_code == 0
        result = invoke("todo", "stop")
        assert result.exit_code == 11

    def test_update_and_done(self):
        """Test status updates."""
        invoke("todo", "add", "x")
        result = invoke("todo", "update", "1", "in-progress")
        assert "status to: in-progress" in result.output

        result = invoke("todo", "done", "#1")
        assert result.exit_code == 0
        assert "marked as completed" in result.output

    def test_bad_id(self):
        """Test malformed ids."""
        assert invoke("todo", "done", "abc").exit_code == 9

    def test_missing_todo(self):
        """Test unknown ids."""
        assert invoke("todo", "start", "99").exit_code == 4

    def test_empty_list(self):
        """Test listing an empty branch."""
        result = invoke("todo", "list")
        assert "No todos in branch 'main'" in result.output


class TestCommitCommands:
    """Tests for commit subcommands."""

    def test_nothing_to_commit(self):
        """Test committing with nothing active or completed."""
        invoke("todo", "add", "x")
        result = invoke("commit", "create", "Nothing")
        assert result.exit_code == 10
        assert "No todos to commit" in result.output

    def test_create_list_show(self):
        """Test recording and inspecting a commit."""
        invoke("todo", "add", "Write docs")
        invoke("todo", "done", "1")

        result = invoke("commit", "create", "Document", "the", "API")
        assert result.exit_code == 0
        assert "Linked to 1 todos: #1" in result.output

        commit = get_service().load().commits[0]
        assert commit.message == "Document the API"

        assert invoke("commit", "list").exit_code == 0
        result = invoke("commit", "show", commit.id[:4])
        assert result.exit_code == 0
        assert "Document the API" in result.output

    def test_show_unknown(self):
        """Test showing a missing commit."""
        assert invoke("commit", "show", "deadbeef").exit_code == 4


class TestMergeCommand:
    """Tests for the merge command."""

    @pytest.fixture
    def feature_with_todo(self):
        invoke("branch", "create", "feature")
        invoke("branch", "switch", "feature")
        invoke("todo", "add", "Feature work")
        invoke("branch", "switch", "main")

    def test_prompt_yes_deletes(self, feature_with_todo):
        """Test answering yes to the prompt deletes the source."""
        result = invoke("merge", "feature", input="y\n")

        assert result.exit_code == 0
        assert "1 todos merged" in result.output
        assert "Deleted branch 'feature'" in result.output
        assert get_service().load().get_branch("feature") is None

    def test_prompt_no_keeps(self, feature_with_todo):
        """Test answering no keeps the source."""
        result = invoke("merge", "feature", input="n\n")

        assert result.exit_code == 0
        assert get_service().load().get_branch("feature") is not None

    def test_flags_skip_prompt(self, feature_with_todo):
        """Test --delete-source deletes without asking."""
        result = invoke("merge", "feature", "--delete-source")

        assert result.exit_code == 0
        assert "?" not in result.output
        assert get_service().load().get_branch("feature") is None

    def test_merge_self(self):
        """Test merging the current branch into itself."""
        assert invoke("merge", "main", "--keep-source").exit_code == 6


class TestRemoteCommands:
    """Tests for remote registry and transfer commands."""

    def test_add_list_remove(self):
        """Test the remote registry."""
        result = invoke("remote", "add", "origin", "http://localhost:8080/")
        assert result.exit_code == 0
        assert "http://localhost:8080 (http)" in result.output

        assert invoke("remote", "add", "origin", "http://x").exit_code == 5
        assert "origin" in invoke("remote", "list").output

        assert invoke("remote", "remove", "origin").exit_code == 0
        assert "No remotes configured" in invoke("remote", "list").output

    def test_push_pull_file_remote(self, tmp_path):
        """Test push, fetch and pull against a file remote."""
        shared = tmp_path / "shared.json"
        invoke("todo", "add", "Shared")
        invoke("remote", "add", "origin", str(shared), "--type", "file")

        assert invoke("push").exit_code == 0
        assert shared.exists()

        result = invoke("fetch")
        assert "1 branches" in result.output

        result = invoke("pull", "origin")
        assert result.exit_code == 0
        assert "Successfully pulled" in result.output

        assert invoke("sync").exit_code == 0

    def test_pull_unreachable(self, tmp_path):
        """Test network failures exit with the network code."""
        invoke("remote", "add", "origin", str(tmp_path / "missing.json"), "-t", "file")
        assert invoke("pull").exit_code == 12

    def test_unknown_remote(self):
        """Test transfers to an unknown remote."""
        assert invoke("push", "nowhere").exit_code == 4

    def test_legacy_remote_type(self):
        """Test a remote with an unsupported type lists but cannot transfer."""
        service = get_service()
        repo = service.load()
        repo.remotes.append(Remote(name="legacy", url="git@example.com:todos.git", type="git"))
        service.storage.save(repo)

        result = invoke("remote", "list")
        assert result.exit_code == 0
        assert "legacy" in result.output

        result = invoke("pull", "legacy")
        assert result.exit_code == 9
        assert "Unsupported remote type: git" in result.output


class TestGitCommands:
    """Tests for git subcommands that do not need a working tree."""

    def test_status_disabled(self):
        """Test status before init."""
        result = invoke("git", "status")
        assert result.exit_code == 0
        assert "disabled" in result.output

    def test_sync_requires_init(self):
        """Test git sync before init."""
        assert invoke("git", "sync").exit_code == 6

    def test_commit_push_failure_reported(self):
        """Test a failed push after a Git commit is a warning, not an error."""
        service = MagicMock()
        service.git_commit.return_value = CommitResult(
            commit=Commit(id="1a2b3c4d", message="Ship", branch="main", todos=[1]),
            git_sha="abc123",
            push_error="git push failed",
        )
        with patch("gitlike.cli.git.get_service", return_value=service):
            result = invoke("git", "commit", "Ship", "--push")

        assert result.exit_code == 0
        assert "Created commit 1a2b3c4d" in result.output
        assert "Push failed: git push failed" in result.output
        assert "Pushed to Git remote" not in result.output
        service.git_commit.assert_called_once_with("Ship", push=True)


class TestLogsCommand:
    """Tests for the logs command."""

    def test_empty(self):
        """Test no entries yet."""
        result = invoke("logs")
        assert "No log entries found" in result.output

    def test_shows_operations(self):
        """Test commands show up in the log."""
        invoke("branch", "create", "feature")
        invoke("branch", "create", "feature")

        result = invoke("logs", "--type", "operations")
        assert result.exit_code == 0
        assert "branch.create" in result.output
        assert "FAIL" in result.output

        result = invoke("logs", "--failed")
        assert result.output.count("branch.create") == 1

    def test_stats(self):
        """Test --stats output."""
        invoke("todo", "add", "x")
        result = invoke("logs", "--stats")
        assert "GitLike Activity" in result.output

    def test_bad_type(self):
        """Test an unknown log type."""
        assert invoke("logs", "--type", "audit").exit_code == 1
