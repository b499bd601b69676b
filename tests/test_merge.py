"""Tests for the reconciliation engine."""

import copy
from datetime import timedelta

import pytest

from conftest import BASE_TIME, make_repo, make_todo
from gitlike.exceptions import InvalidOperationError, NotFoundError
from gitlike.merge import (
    merge_branch_into,
    merge_commits,
    merge_repositories,
    merge_todos,
    reconcile_with_git,
)
from gitlike.models import Commit, GitIntegration, TodoStatus


def make_commit(commit_id, branch="main", message=None):
    return Commit(
        id=commit_id,
        message=message or f"commit {commit_id}",
        branch=branch,
        created_at=BASE_TIME,
        author="dev",
    )


class TestMergeTodos:
    """Tests for per-branch todo merging."""

    def test_unknown_remote_ids_appended(self):
        """New remote todos are appended in remote order."""
        merged = merge_todos([make_todo(1)], [make_todo(3), make_todo(2)])
        assert [t.id for t in merged] == [1, 3, 2]

    def test_newer_remote_replaces_in_place(self, later):
        """A strictly newer remote copy replaces the local one at the same position."""
        local = [make_todo(1), make_todo(5, title="local")]
        remote = [make_todo(5, title="remote", updated_at=later)]
        merged = merge_todos(local, remote)
        assert [t.id for t in merged] == [1, 5]
        assert merged[1].title == "remote"

    def test_tie_keeps_local(self):
        """Equal updated_at keeps the local copy."""
        merged = merge_todos([make_todo(5, title="local")], [make_todo(5, title="remote")])
        assert merged[0].title == "local"

    def test_older_remote_ignored(self, later):
        """An older remote copy never wins."""
        merged = merge_todos([make_todo(5, title="local", updated_at=later)], [make_todo(5, title="remote")])
        assert merged[0].title == "local"


class TestMergeRepositories:
    """Tests for local/remote snapshot merge."""

    def test_remote_newer_todo_wins(self, later):
        """Local todo 5 at t1, remote todo 5 at t2 > t1: merged equals remote's copy."""
        local = make_repo(("main", [make_todo(5, title="old")]))
        remote_todo = make_todo(5, title="new", status=TodoStatus.COMPLETED, updated_at=later)
        remote = make_repo(("main", [remote_todo]))

        merged = merge_repositories(local, remote)

        assert merged.get_branch("main").get_todo(5) == remote_todo

    def test_commits_deduplicated(self):
        """Local [a1b2c3d4] + remote [a1b2c3d4, e5f6g7h8] gives both once, in order."""
        local = make_repo(("main", []), commits=[make_commit("a1b2c3d4")])
        remote = make_repo(("main", []), commits=[make_commit("a1b2c3d4"), make_commit("e5f6g7h8")])

        merged = merge_repositories(local, remote)

        assert [c.id for c in merged.commits] == ["a1b2c3d4", "e5f6g7h8"]

    def test_unknown_remote_branch_appended(self):
        """Branches only on the remote are added."""
        local = make_repo(("main", [make_todo(1)]))
        remote = make_repo(("main", []), ("feature", [make_todo(2, branch="feature")]))

        merged = merge_repositories(local, remote)

        assert [b.name for b in merged.branches] == ["main", "feature"]
        assert merged.get_branch("feature").get_todo(2) is not None
        assert merged.get_branch("main").get_todo(1) is not None

    def test_counter_is_max(self):
        """next_todo_id takes the larger side."""
        local = make_repo(("main", []), next_todo_id=4)
        remote = make_repo(("main", []), next_todo_id=9)
        assert merge_repositories(local, remote).next_todo_id == 9
        assert merge_repositories(remote, local).next_todo_id == 9

    def test_local_settings_kept(self):
        """current_branch and git_integration always come from local."""
        local = make_repo(("main", []), ("feature", []), current="feature")
        local.git_integration = GitIntegration(enabled=True, repo_path="/local")
        remote = make_repo(("main", []))
        remote.git_integration = GitIntegration(enabled=False, repo_path="/remote")

        merged = merge_repositories(local, remote)

        assert merged.current_branch == "feature"
        assert merged.git_integration.repo_path == "/local"

    def test_last_sync_refreshed(self):
        """last_sync is stamped with the merge time."""
        local = make_repo(("main", []))
        merged = merge_repositories(local, make_repo(("main", [])))
        assert merged.last_sync is not None
        assert merged.last_sync > BASE_TIME

    def test_inputs_not_modified(self, later):
        """Neither input is mutated."""
        local = make_repo(("main", [make_todo(1)]))
        remote = make_repo(("main", [make_todo(1, updated_at=later), make_todo(2)]), ("x", []))
        local_before = copy.deepcopy(local)
        remote_before = copy.deepcopy(remote)

        merge_repositories(local, remote)

        assert local == local_before
        assert remote == remote_before

    def test_merge_with_self_is_identity(self):
        """merge(R, R) equals R apart from last_sync."""
        repo = make_repo(
            ("main", [make_todo(1), make_todo(2)]),
            ("feature", [make_todo(3, branch="feature")]),
            commits=[make_commit("a1b2c3d4")],
        )

        merged = merge_repositories(repo, repo)

        merged.last_sync = repo.last_sync
        assert merged == repo

    @pytest.mark.parametrize(
        "local_ids,remote_ids",
        [
            ([1, 2], [2, 3]),
            ([], [1]),
            ([4], []),
            ([1, 2, 3], [3, 2, 1]),
        ],
    )
    def test_never_loses_branch_todo_pairs(self, local_ids, remote_ids, later):
        """Every (branch, id) pair from either side survives the merge."""
        local = make_repo(
            ("main", [make_todo(i) for i in local_ids]),
            ("local-only", [make_todo(100 + i, branch="local-only") for i in local_ids]),
        )
        remote = make_repo(
            ("main", [make_todo(i, updated_at=later) for i in remote_ids]),
            ("remote-only", [make_todo(200 + i, branch="remote-only") for i in remote_ids]),
        )

        def pairs(repo):
            return {(b.name, t.id) for b in repo.branches for t in b.todos}

        merged = merge_repositories(local, remote)

        assert pairs(local) | pairs(remote) <= pairs(merged)

    def test_single_active_todo_per_branch(self, later):
        """A newer remote active todo deactivates the older local one."""
        local = make_repo(("main", [make_todo(1, is_active=True), make_todo(2)]))
        remote = make_repo(("main", [make_todo(1), make_todo(2, is_active=True, updated_at=later)]))

        merged = merge_repositories(local, remote).get_branch("main")

        assert [t.id for t in merged.todos if t.is_active] == [2]
        assert merged.get_todo(1).title == "Todo 1"

    def test_active_tie_keeps_local_position(self):
        """Equal timestamps keep the todo that comes first on the branch."""
        local = make_repo(("main", [make_todo(1, is_active=True)]))
        remote = make_repo(("main", [make_todo(3, is_active=True)]))

        merged = merge_repositories(local, remote).get_branch("main")

        assert merged.active_todo().id == 1
        assert merged.get_todo(3).is_active is False

    def test_appended_branch_is_not_active(self):
        """Only the local current branch stays marked active."""
        local = make_repo(("main", []))
        local.get_branch("main").is_active = True
        remote = make_repo(("main", []), ("feature", []), current="feature")
        remote.get_branch("feature").is_active = True

        merged = merge_repositories(local, remote)

        assert [b.name for b in merged.branches if b.is_active] == ["main"]
        assert merged.current_branch == "main"


class TestMergeCommits:
    """Tests for commit-log merging."""

    def test_remote_order_preserved(self):
        """New remote commits keep their relative order."""
        merged = merge_commits([make_commit("b")], [make_commit("c"), make_commit("a"), make_commit("b")])
        assert [c.id for c in merged] == ["b", "c", "a"]


class TestMergeBranchInto:
    """Tests for merging a branch into the current branch."""

    def test_copies_new_todos(self):
        """Unknown todos are copied with branch_name rewritten and updated_at refreshed."""
        repo = make_repo(
            ("main", [make_todo(1)]),
            ("feature", [make_todo(2, branch="feature")]),
        )

        result = merge_branch_into(repo, "feature")

        copied = repo.get_branch("main").get_todo(2)
        assert copied.branch_name == "main"
        assert copied.updated_at > BASE_TIME
        assert result.todos_merged == [2]
        assert result.target == "main"
        # Source keeps its own copy
        assert repo.get_branch("feature").get_todo(2).branch_name == "feature"

    def test_never_overwrites_existing_ids(self, later):
        """A todo id already on the current branch is left untouched."""
        repo = make_repo(
            ("main", [make_todo(1, title="main copy")]),
            ("feature", [make_todo(1, title="feature copy", branch="feature", updated_at=later)]),
        )

        result = merge_branch_into(repo, "feature")

        assert repo.get_branch("main").get_todo(1).title == "main copy"
        assert result.todos_merged == []

    def test_duplicates_source_commits(self):
        """Source commits are duplicated onto the target with a prefix; originals stay."""
        repo = make_repo(
            ("main", []),
            ("feature", [make_todo(2, branch="feature")]),
            commits=[make_commit("a1b2c3d4", branch="feature", message="feature work"), make_commit("11111111")],
        )

        result = merge_branch_into(repo, "feature")

        assert len(repo.commits) == 3
        original, other, duplicate = repo.commits
        assert original.branch == "feature"
        assert original.message == "feature work"
        assert duplicate.branch == "main"
        assert duplicate.message == "[MERGED from feature] feature work"
        assert duplicate.id == original.id
        assert duplicate.created_at > BASE_TIME
        assert result.commits_merged == ["a1b2c3d4"]

    def test_merge_into_self_rejected(self):
        """Merging the current branch into itself fails without changes."""
        repo = make_repo(("main", [make_todo(1)]))
        before = copy.deepcopy(repo)

        with pytest.raises(InvalidOperationError):
            merge_branch_into(repo, "main")
        assert repo == before

    def test_missing_source(self):
        """Unknown source branch is NotFound."""
        repo = make_repo(("main", []))
        with pytest.raises(NotFoundError):
            merge_branch_into(repo, "ghost")

    def test_delete_source(self):
        """delete_source removes the source branch after merging."""
        repo = make_repo(("main", []), ("feature", [make_todo(2, branch="feature")]))

        result = merge_branch_into(repo, "feature", delete_source=True)

        assert result.source_deleted is True
        assert repo.get_branch("feature") is None
        assert repo.get_branch("main").get_todo(2) is not None

    def test_keeps_single_active_todo(self):
        """A copied active todo is deactivated when the target already has one."""
        repo = make_repo(
            ("main", [make_todo(1, is_active=True)]),
            ("feature", [make_todo(2, branch="feature", is_active=True)]),
        )

        merge_branch_into(repo, "feature")

        actives = [t.id for t in repo.get_branch("main").todos if t.is_active]
        assert actives == [1]


class TestReconcileWithGit:
    """Tests for aligning todo branches with Git branches."""

    def test_creates_missing_branches_and_switches(self):
        """Missing Git branches become empty todo branches; Git current becomes current."""
        repo = make_repo(("main", [make_todo(1)]))

        result = reconcile_with_git(repo, "develop", ["main", "develop", "release/1.0"])

        assert [b.name for b in repo.branches] == ["main", "develop", "release/1.0"]
        assert repo.current_branch == "develop"
        assert result.branches_created == ["develop", "release/1.0"]
        assert repo.get_branch("develop").is_active is True
        assert repo.get_branch("main").is_active is False

    def test_current_branch_added_even_if_unlisted(self):
        """The Git current branch is created even when missing from the list."""
        repo = make_repo(("main", []))
        reconcile_with_git(repo, "hotfix", [])
        assert repo.get_branch("hotfix") is not None
        assert repo.current_branch == "hotfix"

    def test_existing_branches_untouched(self):
        """Existing branches keep their todos."""
        repo = make_repo(("main", [make_todo(1)]))
        result = reconcile_with_git(repo, "main", ["main"])
        assert result.branches_created == []
        assert repo.get_branch("main").get_todo(1) is not None
