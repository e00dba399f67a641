"""git adapter: every git call branchflow makes goes through here."""

from __future__ import annotations

import shlex
from pathlib import Path

from invoke import Result

from branchflow.core.errors import ExternalToolFailure
from branchflow.core.log import logger
from branchflow.core.runner import Runner

MERGE_MODES = ("ff", "no-ff", "squash")


class Git:
    """Runs git command templates from the configuration.

    Nothing is cached: branch and tag listings are read from git at
    the point of use, so a command that creates or deletes branches
    part way through always sees the current set.
    """

    def __init__(self, workdir: Path, commands: dict[str, str]):
        """Initialize the adapter.

        Args:
            workdir: git working directory
            commands: command templates (config.commands["git"])
        """
        self.workdir = Path(workdir)
        self.commands = commands
        self.runner = Runner()

    @classmethod
    def from_state(cls, state) -> Git:
        return cls(
            state.config.git.workdir,
            state.config.commands.get("git", {}),
        )

    def _run(
        self,
        key: str,
        check: bool = True,
        interactive: bool = False,
        **params,
    ) -> Result:
        """Format template `key` with shell-quoted params and run it.

        Raises:
            ExternalToolFailure: check is True and git exited non-zero
        """
        quoted = {
            name: (
                " ".join(shlex.quote(str(v)) for v in value)
                if isinstance(value, (list, tuple))
                else shlex.quote(str(value))
            )
            for name, value in params.items()
        }
        command = self.commands[key].format(**quoted)
        result = self.runner.execute(
            command,
            cwd=self.workdir,
            check=False,
            interactive=interactive,
        )
        if check and result.exited != 0:
            raise ExternalToolFailure(command, result.exited, result.stderr)
        return result

    def _lines(self, key: str, **params) -> list[str]:
        output = self._run(key, **params).stdout
        return [line.strip() for line in output.splitlines() if line.strip()]

    # Queries

    def git_dir(self) -> Path:
        """Absolute path of the repository metadata directory."""
        path = Path(self._run("git_dir").stdout.strip())
        if not path.is_absolute():
            path = self.workdir / path
        return path.resolve()

    def is_repository(self) -> bool:
        return self._run("git_dir", check=False).exited == 0

    def current_branch(self) -> str | None:
        """Checked-out branch, None on a detached HEAD."""
        result = self._run("current_branch", check=False)
        name = result.stdout.strip()
        return name if result.exited == 0 and name else None

    def local_branches(self) -> list[str]:
        return self._lines("list_local")

    def remote_branches(self) -> list[str]:
        """Remote-tracking branches as 'remote/name', without */HEAD."""
        return [
            name for name in self._lines("list_remote")
            if "/" in name and not name.endswith("/HEAD")
        ]

    def all_branches(self) -> list[str]:
        return self.local_branches() + self.remote_branches()

    def tags(self) -> list[str]:
        return self._lines("list_tags")

    def has_unstaged_changes(self) -> bool:
        return self._exit_flag("diff_unstaged")

    def has_staged_changes(self) -> bool:
        return self._exit_flag("diff_staged")

    def _exit_flag(self, key: str, **params) -> bool:
        """True for exit 1, False for exit 0, raise otherwise."""
        result = self._run(key, check=False, **params)
        if result.exited not in (0, 1):
            raise ExternalToolFailure(
                self.commands[key], result.exited, result.stderr
            )
        return result.exited == 1

    def rev_parse(self, ref: str) -> str | None:
        result = self._run("rev_parse", check=False, ref=ref)
        return result.stdout.strip() if result.exited == 0 else None

    def merge_base(self, a: str, b: str) -> str | None:
        """Common ancestor of a and b, None for unrelated histories."""
        result = self._run("merge_base", check=False, a=a, b=b)
        if result.exited == 1:
            return None
        if result.exited != 0:
            raise ExternalToolFailure(
                self.commands["merge_base"], result.exited, result.stderr
            )
        return result.stdout.strip()

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Whether every commit of ancestor is reachable from descendant."""
        return not self._exit_flag(
            "is_ancestor", ancestor=ancestor, descendant=descendant
        )

    def count_commits(self, base: str, head: str) -> int:
        """Number of commits in head that are not in base."""
        return int(
            self._run("count_commits", base=base, head=head).stdout.strip()
        )

    def diff(self, base: str, head: str) -> str:
        return self._run("diff", base=base, head=head).stdout

    # Mutations

    def init(self):
        self._run("init")

    def branch(self, name: str, base: str):
        """Create a branch without checking it out."""
        self._run("branch", name=name, base=base)

    def create_branch(self, name: str, base: str):
        """Create a branch at base and check it out."""
        self._run("create_branch", name=name, base=base)

    def checkout(self, name: str):
        self._run("checkout", name=name)

    def track_branch(self, name: str, remote_ref: str):
        self._run("track_branch", name=name, remote_ref=remote_ref)

    def merge(self, branch: str, mode: str = "no-ff") -> bool:
        """Merge branch into the checked-out branch.

        Returns:
            True on success, False when git stopped on conflicts
        """
        if mode not in MERGE_MODES:
            raise ValueError(f"Unknown merge mode: {mode}")
        key = "merge_" + mode.replace("-", "_")
        result = self._run(key, check=False, branch=branch)
        if result.exited != 0:
            logger.info(
                "Merge stopped",
                branch=branch,
                mode=mode,
                exit_code=result.exited,
            )
            return False
        return True

    def commit(self, message: str):
        self._run("commit", message=message)

    def commit_empty(self, message: str):
        self._run("commit_empty", message=message)

    def set_head(self, name: str):
        """Point HEAD at a (possibly unborn) branch."""
        self._run("symbolic_ref_head", name=name)

    def rebase(self, branch: str, onto: str, interactive: bool = False) -> bool:
        """Rebase branch onto onto.

        Returns:
            True on success, False when the rebase stopped on conflicts
        """
        key = "rebase_interactive" if interactive else "rebase"
        result = self._run(
            key, check=False, interactive=interactive,
            onto=onto, branch=branch,
        )
        return result.exited == 0

    def tag(
        self,
        name: str,
        commit: str,
        message: str,
        sign: bool = False,
        signingkey: str | None = None,
    ):
        """Create an annotated tag, signed when asked to."""
        if signingkey:
            self._run(
                "tag_signed_key",
                key=signingkey, message=message, name=name, commit=commit,
            )
        elif sign:
            self._run(
                "tag_signed", message=message, name=name, commit=commit
            )
        else:
            self._run(
                "tag_annotated", message=message, name=name, commit=commit
            )

    def delete_branch(self, name: str, force: bool = False):
        self._run(
            "force_delete_branch" if force else "delete_branch", name=name
        )

    def delete_remote_branch(self, remote: str, name: str):
        self._run("push_delete", remote=remote, name=name)

    def push(self, remote: str, *refs: str, set_upstream: bool = False):
        self._run(
            "push_upstream" if set_upstream else "push",
            remote=remote,
            refs=list(refs),
        )

    def push_tags(self, remote: str):
        self._run("push_tags", remote=remote)

    def fetch(self, remote: str):
        self._run("fetch", remote=remote)
