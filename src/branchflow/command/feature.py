"""Feature workflow - topic branches off develop."""

from __future__ import annotations

import sys

from pydantic import Field, model_validator
from pydantic_settings import CliPositionalArg, CliSubCommand

from branchflow.command.base import (
    Action,
    DiffAction,
    HelpAction,
    ListAction,
    PublishAction,
    RebaseAction,
    StartAction,
    TrackAction,
    WorkflowCommand,
    flag,
    prefix_for,
)
from branchflow.core.config import State
from branchflow.core.log import logger
from branchflow.workflow.deps import FlowDeps
from branchflow.workflow.finish import run_finish


class FinishAction(Action):
    """Merge a feature branch into develop and delete it."""

    name: CliPositionalArg[str | None] = Field(
        default=None,
        description="Branch name or prefix (defaults to current branch)",
    )
    fetch: bool = flag(
        "F", "fetch", "Fetch from origin and require branches up to date"
    )
    rebase: bool = flag("r", "rebase", "Rebase onto develop before merging")
    squash: bool = flag(
        "s", "squash", "Squash the branch into one commit (implies rebase)"
    )
    interactive: bool = flag(
        "i", "interactive", "Rebase interactively"
    )
    keep: bool = flag("k", "keep", "Keep the branch after finishing")
    verbose: bool = flag("v", "verbose", "Log each step to the console")

    @model_validator(mode="after")
    def _squash_implies_rebase(self) -> FinishAction:
        if self.squash:
            self.rebase = True
        return self

    async def run_workflow(self, state: State, kind: str) -> int:
        if self.verbose:
            logger.set_console_level("debug")

        finish = state.runtime.finish
        finish.target = state.flow.develop
        finish.fetch = self.fetch
        finish.rebase = self.rebase
        finish.squash = self.squash
        finish.interactive = self.interactive
        finish.keep = self.keep

        outcome = await run_finish(
            state,
            FlowDeps.from_state(state),
            name=self.name,
            prefix=prefix_for(state, kind),
        )

        if outcome.status == "paused":
            print(
                f"There were merge conflicts merging '{outcome.branch}' "
                f"into '{finish.target}'.\n"
                f"To resolve them, fix the conflicts and commit the "
                f"result with 'git commit',\nthen run "
                f"'branchflow {kind} finish' again.",
                file=sys.stderr,
            )
            return 1

        print(outcome.summary())
        return 0


class FeatureCommand(WorkflowCommand):
    """Feature branches: new work, merged back into develop."""

    kind = "feature"

    list_: CliSubCommand[ListAction] = Field(alias="list")
    start: CliSubCommand[StartAction]
    finish: CliSubCommand[FinishAction]
    publish: CliSubCommand[PublishAction]
    track: CliSubCommand[TrackAction]
    diff: CliSubCommand[DiffAction]
    rebase: CliSubCommand[RebaseAction]
    help: CliSubCommand[HelpAction]
