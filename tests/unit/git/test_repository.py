"""Tests for the git adapter against real repositories."""

import pytest

from branchflow.core.errors import ExternalToolFailure


class TestQueries:
    def test_current_branch(self, repo, git):
        assert git.current_branch() == "develop"

    def test_current_branch_detached(self, repo, git):
        repo.git("checkout", "-q", "--detach")
        assert git.current_branch() is None

    def test_branch_listings(self, repo, git):
        repo.git("branch", "feature/x")

        assert sorted(git.local_branches()) == [
            "develop", "feature/x", "master",
        ]
        assert sorted(git.remote_branches()) == [
            "origin/develop", "origin/master",
        ]
        assert "origin/develop" in git.all_branches()

    def test_remote_head_excluded(self, repo, git):
        repo.git("remote", "set-head", "origin", "master")
        assert not any(
            b.endswith("HEAD") or b == "origin"
            for b in git.remote_branches()
        )

    def test_tags(self, repo, git):
        repo.git("tag", "-a", "-m", "one", "1.0")
        assert git.tags() == ["1.0"]

    def test_git_dir_is_absolute(self, repo, git):
        path = git.git_dir()
        assert path.is_absolute()
        assert path == (repo.path / ".git").resolve()

    def test_dirty_checks(self, repo, git):
        assert not git.has_unstaged_changes()
        assert not git.has_staged_changes()

        (repo.path / "README").write_text("changed\n")
        assert git.has_unstaged_changes()
        assert not git.has_staged_changes()

        repo.git("add", "README")
        assert not git.has_unstaged_changes()
        assert git.has_staged_changes()

    def test_untracked_files_are_not_dirty(self, repo, git):
        (repo.path / "scratch.txt").write_text("x\n")
        assert not git.has_unstaged_changes()
        assert not git.has_staged_changes()

    def test_ancestry(self, repo, git):
        repo.commit("a.txt", "a\n")
        assert git.is_ancestor("master", "develop")
        assert not git.is_ancestor("develop", "master")
        assert git.count_commits("master", "develop") == 1
        assert git.merge_base("master", "develop") == repo.head("master")

    def test_rev_parse_unknown_ref(self, git):
        assert git.rev_parse("no-such-branch") is None

    def test_values_are_shell_quoted(self, repo, git):
        """A name with shell metacharacters reaches git as one argument."""
        assert git.rev_parse("develop; touch pwned") is None
        assert not (repo.path / "pwned").exists()

    def test_diff(self, repo, git):
        repo.commit("a.txt", "hello diff\n")
        assert "hello diff" in git.diff("master", "develop")


class TestMutations:
    def test_create_branch_checks_out(self, repo, git):
        git.create_branch("feature/x", "develop")
        assert repo.current() == "feature/x"

    def test_merge_conflict_returns_false(self, repo, git):
        repo.git("checkout", "-q", "-b", "feature/x")
        repo.commit("README", "topic\n")
        repo.git("checkout", "-q", "develop")
        repo.commit("README", "develop\n")

        assert git.merge("feature/x", "no-ff") is False
        assert git.has_unstaged_changes()

        repo.git("merge", "--abort")
        assert not git.has_unstaged_changes()

    def test_merge_no_ff_makes_merge_commit(self, repo, git):
        repo.git("checkout", "-q", "-b", "feature/x")
        repo.commit("a.txt", "a\n")
        repo.git("checkout", "-q", "develop")

        assert git.merge("feature/x", "no-ff")
        assert len(repo.parents()) == 2

    def test_unknown_merge_mode(self, git):
        with pytest.raises(ValueError, match="Unknown merge mode"):
            git.merge("develop", "octopus")

    def test_tag_annotated(self, repo, git):
        git.tag("1.0", "master", "Release 1.0")
        assert repo.git("cat-file", "-t", "1.0") == "tag"
        assert "Release 1.0" in repo.git("tag", "-n1", "1.0")

    def test_delete_unmerged_branch_needs_force(self, repo, git):
        repo.git("checkout", "-q", "-b", "feature/x")
        repo.commit("a.txt", "a\n")
        repo.git("checkout", "-q", "develop")

        with pytest.raises(ExternalToolFailure) as exc_info:
            git.delete_branch("feature/x")
        assert exc_info.value.tool_exit_code != 0

        git.delete_branch("feature/x", force=True)
        assert "feature/x" not in repo.branches()

    def test_push_and_delete_remote(self, repo, git):
        repo.git("branch", "feature/x")
        git.push("origin", "feature/x", set_upstream=True)
        assert "origin/feature/x" in git.remote_branches()

        git.delete_remote_branch("origin", "feature/x")
        assert "origin/feature/x" not in git.remote_branches()

    def test_rebase_conflict_returns_false(self, repo, git):
        repo.git("checkout", "-q", "-b", "feature/x")
        repo.commit("README", "topic\n")
        repo.git("checkout", "-q", "develop")
        repo.commit("README", "develop\n")

        assert git.rebase("feature/x", "develop") is False
        repo.git("rebase", "--abort")
