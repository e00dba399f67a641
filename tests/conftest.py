"""Pytest configuration and fixtures for branchflow tests."""

import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

from branchflow.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    Nothing is sent to logfire.dev and no log files are written.
    """
    test_log_root = Path(tempfile.gettempdir()) / "branchflow-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(autouse=True)
def git_identity(monkeypatch, tmp_path_factory):
    """Isolate git from the user's configuration."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_EDITOR", "true")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")


class Repo:
    """A throwaway git repository driven with plain git commands."""

    def __init__(self, path: Path):
        self.path = path

    def git(self, *args: str, check: bool = True) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            text=True,
            check=False,
        )
        if check and result.returncode != 0:
            raise AssertionError(
                f"git {' '.join(args)} failed: {result.stderr}"
            )
        return result.stdout.strip()

    def commit(self, filename: str, content: str, message: str | None = None):
        """Write a file and commit it on the current branch."""
        target = self.path / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        self.git("add", filename)
        self.git("commit", "-q", "-m", message or f"Change {filename}")

    def branches(self) -> list[str]:
        out = self.git("for-each-ref", "--format=%(refname:short)",
                       "refs/heads")
        return out.splitlines()

    def remote_branches(self) -> list[str]:
        out = self.git("for-each-ref", "--format=%(refname:short)",
                       "refs/remotes")
        return out.splitlines()

    def tags(self) -> list[str]:
        return self.git("tag", "--list").splitlines()

    def current(self) -> str:
        return self.git("symbolic-ref", "--short", "HEAD")

    def head(self, ref: str = "HEAD") -> str:
        return self.git("rev-parse", ref)

    def parents(self, ref: str = "HEAD") -> list[str]:
        return self.git("rev-list", "--parents", "-n", "1", ref).split()[1:]

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = subprocess.run(
            ["git", "merge-base", "--is-ancestor", ancestor, descendant],
            cwd=self.path,
            capture_output=True,
        )
        return result.returncode == 0


@pytest.fixture
def origin(tmp_path):
    """Bare repository standing in for the shared remote."""
    path = tmp_path / "origin.git"
    subprocess.run(
        ["git", "init", "-q", "--bare", str(path)], check=True
    )
    return path


@pytest.fixture
def repo(tmp_path, origin):
    """Repository with master and develop, both pushed to origin."""
    path = tmp_path / "work"
    path.mkdir()
    r = Repo(path)
    r.git("init", "-q")
    r.git("symbolic-ref", "HEAD", "refs/heads/master")
    r.commit("README", "hello\n", "Initial commit")
    r.git("branch", "develop")
    r.git("checkout", "-q", "develop")
    r.git("remote", "add", "origin", str(origin))
    r.git("push", "-q", "origin", "master", "develop")
    r.git("fetch", "-q", "origin")
    return r


@pytest.fixture
def state(repo):
    """State pointed at the test repository, without CLI parsing."""
    from branchflow.core.config import State

    old_argv = sys.argv
    sys.argv = ["branchflow"]
    try:
        return State(
            _cli_parse_args=False,
            config={"git": {"workdir": str(repo.path)}},
        )
    finally:
        sys.argv = old_argv


@pytest.fixture
def git(state):
    from branchflow.git.repository import Git
    return Git.from_state(state)


@pytest.fixture
def deps(state):
    from branchflow.workflow.deps import FlowDeps
    return FlowDeps.from_state(state)
