"""Actions shared by the feature, release, hotfix and support workflows.

Each action is a pydantic model whose fields are its command line
options. A workflow command holds its actions as subcommands and hands
the selected one the workflow kind ("feature", "release", ...), which
picks the branch prefix and the default base branch.
"""

from __future__ import annotations

import sys
from typing import ClassVar, get_args

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import CliPositionalArg, get_subcommand

from branchflow.core.config import State
from branchflow.core.errors import AmbiguousName, FlowError, RebaseConflict
from branchflow.core.log import logger
from branchflow.core.result import Equal, NeedsFastForward, format_summary
from branchflow.flow.guards import Guards, compare_branches
from branchflow.flow.resolver import current_topic, resolve_name
from branchflow.git.repository import Git

# Integration branch each kind of branch starts from
BASE_BRANCH = {
    "feature": "develop",
    "release": "develop",
    "hotfix": "master",
    "support": "master",
}


def prefix_for(state: State, kind: str) -> str:
    return getattr(state.flow.prefix, kind)


def default_base(state: State, kind: str) -> str:
    return getattr(state.flow, BASE_BRANCH[kind])


def resolve_or_current(git: Git, name: str | None, prefix: str) -> str:
    """Short name from an explicit name, else from the current branch."""
    if name:
        return resolve_name(name, prefix, git.local_branches())
    return current_topic(prefix, git.current_branch())


def print_summary(actions: list[str]):
    print(format_summary(actions))


def report_error(error: FlowError) -> int:
    """Log and print a command failure; return the exit code."""
    # The message itself goes to stderr below
    logger.debug(
        "{message}", message=error.message, error=type(error).__name__
    )
    print(f"Fatal: {error.message}", file=sys.stderr)
    if isinstance(error, AmbiguousName):
        for candidate in error.candidates:
            print(f"    {candidate}", file=sys.stderr)
    return error.exit_code


def flag(short: str, long: str, description: str):
    """A boolean option spelled -<short> or --<long>."""
    return Field(
        default=False,
        validation_alias=AliasChoices(short, long),
        description=description,
    )


class Action(BaseModel):
    """Base for workflow actions."""

    model_config = ConfigDict(populate_by_name=True)

    async def run_workflow(self, state: State, kind: str) -> int:
        raise NotImplementedError


class HelpAction(Action):
    """Show this help."""

    # Handled by WorkflowCommand, which knows the usage text


class ListAction(Action):
    """List existing branches."""

    verbose: bool = flag(
        "v", "verbose", "Show each branch's relation to its base"
    )

    async def run_workflow(self, state: State, kind: str) -> int:
        git = Git.from_state(state)
        prefix = prefix_for(state, kind)
        base = default_base(state, kind)
        current = git.current_branch()

        branches = sorted(
            b for b in git.local_branches() if b.startswith(prefix)
        )
        if not branches:
            print(f"No {kind} branches exist.", file=sys.stderr)
            print(
                f"\nYou can start a new {kind} branch:\n\n"
                f"    branchflow {kind} start <name> [<base>]\n",
                file=sys.stderr,
            )
            return 0

        width = max(len(b) - len(prefix) for b in branches)
        for branch in branches:
            short = branch[len(prefix):]
            mark = "* " if branch == current else "  "
            if self.verbose:
                relation = self._relation(git, branch, base)
                print(f"{mark}{short:<{width}}  {relation}")
            else:
                print(f"{mark}{short}")
        return 0

    @staticmethod
    def _relation(git: Git, branch: str, base: str) -> str:
        status = compare_branches(git, branch, base)
        if isinstance(status, Equal):
            return "(no commits yet)"
        if isinstance(status, NeedsFastForward):
            if status.side == "local":
                return f"(merged into {base})"
            return f"(ahead of {base})"
        # NeedsMerge
        return f"(diverged from {base})"


class StartAction(Action):
    """Start a new branch from <base>."""

    name: CliPositionalArg[str] = Field(description="Short branch name")
    base: CliPositionalArg[str | None] = Field(
        default=None,
        description="Branch to start from (defaults per workflow)",
    )
    fetch: bool = flag(
        "F", "fetch", "Fetch from origin and require <base> up to date"
    )
    force: bool = flag(
        "f", "force", "Only warn when <base> is out of sync with origin"
    )

    async def run_workflow(self, state: State, kind: str) -> int:
        git = Git.from_state(state)
        guards = Guards(git)
        flow = state.flow
        prefix = prefix_for(state, kind)
        branch = prefix + self.name
        base = self.base or default_base(state, kind)

        if self.fetch:
            git.fetch(flow.origin)

        # One release or hotfix at a time, and its tag must be free
        if kind in ("release", "hotfix"):
            guards.require_clean_working_tree()
            guards.require_no_branch_with_prefix(prefix)
            guards.require_tag_absent(flow.prefix.versiontag + self.name)

        guards.require_branch_absent(branch)
        self._check_base(git, guards, base)
        if self.fetch and base in git.local_branches():
            guards.require_branches_synced(
                base, f"{flow.origin}/{base}", force=self.force
            )

        git.create_branch(branch, base)
        logger.info("Started {branch} from {base}", branch=branch, base=base)
        print_summary([
            f"A new branch '{branch}' was created, based on '{base}'",
            f"You are now on branch '{branch}'",
        ])
        return 0

    def _check_base(self, git: Git, guards: Guards, base: str):
        guards.require_branch_present(base)


class PublishAction(Action):
    """Push a branch to origin and track it."""

    name: CliPositionalArg[str | None] = Field(
        default=None,
        description="Branch name or prefix (defaults to current branch)",
    )

    async def run_workflow(self, state: State, kind: str) -> int:
        git = Git.from_state(state)
        guards = Guards(git)
        origin = state.flow.origin
        prefix = prefix_for(state, kind)
        branch = prefix + resolve_or_current(git, self.name, prefix)

        guards.require_clean_working_tree()
        git.fetch(origin)
        guards.require_remote_branch_absent(origin, branch)

        git.push(origin, branch, set_upstream=True)
        git.checkout(branch)
        print_summary([
            f"A new remote branch '{branch}' was created on '{origin}'",
            f"The local branch '{branch}' was configured to track it",
            f"You are now on branch '{branch}'",
        ])
        return 0


class TrackAction(Action):
    """Create a local branch tracking one on origin."""

    name: CliPositionalArg[str] = Field(description="Short branch name")

    async def run_workflow(self, state: State, kind: str) -> int:
        git = Git.from_state(state)
        guards = Guards(git)
        origin = state.flow.origin
        branch = prefix_for(state, kind) + self.name

        git.fetch(origin)
        guards.require_local_branch_absent(branch)
        guards.require_remote_branch_present(origin, branch)

        git.track_branch(branch, f"{origin}/{branch}")
        print_summary([
            f"A new branch '{branch}' was created, tracking "
            f"'{origin}/{branch}'",
            f"You are now on branch '{branch}'",
        ])
        return 0


class DiffAction(Action):
    """Show what a branch changed since it left its base."""

    name: CliPositionalArg[str | None] = Field(
        default=None,
        description="Branch name or prefix (defaults to current branch)",
    )

    async def run_workflow(self, state: State, kind: str) -> int:
        git = Git.from_state(state)
        prefix = prefix_for(state, kind)
        branch = prefix + resolve_or_current(git, self.name, prefix)
        base = default_base(state, kind)

        start = git.merge_base(base, branch) or base
        sys.stdout.write(git.diff(start, branch))
        return 0


class RebaseAction(Action):
    """Rebase a branch onto its base."""

    name: CliPositionalArg[str | None] = Field(
        default=None,
        description="Branch name or prefix (defaults to current branch)",
    )
    interactive: bool = flag("i", "interactive", "Rebase interactively")

    async def run_workflow(self, state: State, kind: str) -> int:
        git = Git.from_state(state)
        guards = Guards(git)
        prefix = prefix_for(state, kind)
        branch = prefix + resolve_or_current(git, self.name, prefix)
        base = default_base(state, kind)

        guards.require_clean_working_tree()
        if not git.rebase(branch, base, interactive=self.interactive):
            raise RebaseConflict(branch, base)

        print_summary([
            f"Branch '{branch}' was rebased onto '{base}'",
            f"You are now on branch '{branch}'",
        ])
        return 0


class WorkflowCommand(BaseModel):
    """Base for the per-workflow commands; subclasses declare actions."""

    kind: ClassVar[str]

    model_config = ConfigDict(populate_by_name=True)

    async def run_workflow(self, state: State) -> int:
        action = get_subcommand(self, is_required=False)
        if action is None:
            print(self.usage(), file=sys.stderr)
            return 1
        if isinstance(action, HelpAction):
            print(self.usage())
            return 0
        logger.debug(
            "Running {kind} {action}",
            kind=self.kind,
            action=type(action).__name__,
        )
        return await action.run_workflow(state, self.kind)

    @classmethod
    def usage(cls) -> str:
        lines = [
            f"usage: branchflow {cls.kind} <action> [options]",
            "",
            "actions:",
        ]
        for name, field in cls.model_fields.items():
            action = next(
                (
                    arg for arg in get_args(field.annotation)
                    if isinstance(arg, type) and issubclass(arg, Action)
                ),
                None,
            )
            if action is None:
                continue
            doc = (action.__doc__ or "").strip().splitlines()
            lines.append(f"  {field.alias or name:<10} {doc[0] if doc else ''}")
        return "\n".join(lines)
