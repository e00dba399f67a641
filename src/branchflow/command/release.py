"""Release workflow - stabilise develop, then merge to master and tag."""

from __future__ import annotations

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import CliPositionalArg, CliSubCommand

from branchflow.command.base import (
    Action,
    HelpAction,
    ListAction,
    PublishAction,
    StartAction,
    TrackAction,
    WorkflowCommand,
    flag,
    prefix_for,
)
from branchflow.core.config import State
from branchflow.core.log import logger
from branchflow.workflow.deps import FlowDeps
from branchflow.workflow.release import run_release_finish


class ReleaseFinishAction(Action):
    """Merge into master, tag, merge into develop and delete the branch."""

    name: CliPositionalArg[str | None] = Field(
        default=None,
        description="Version or version prefix (defaults to current branch)",
    )
    fetch: bool = flag(
        "F", "fetch", "Fetch from origin and require branches up to date"
    )
    sign: bool = flag("s", "sign", "Sign the tag cryptographically")
    signingkey: str | None = Field(
        default=None,
        validation_alias=AliasChoices("u", "signingkey"),
        description="Sign the tag with this GPG key (implies --sign)",
    )
    message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("m", "message"),
        description="Tag message",
    )
    keep: bool = flag("k", "keep", "Keep the branch after finishing")
    push: bool = flag(
        "p", "push", "Push master, develop and tags to origin"
    )
    verbose: bool = flag("v", "verbose", "Log each step to the console")

    @model_validator(mode="after")
    def _signingkey_implies_sign(self) -> ReleaseFinishAction:
        if self.signingkey:
            self.sign = True
        return self

    async def run_workflow(self, state: State, kind: str) -> int:
        if self.verbose:
            logger.set_console_level("debug")

        release = state.runtime.release
        release.kind = kind
        release.fetch = self.fetch
        release.sign = self.sign
        release.signingkey = self.signingkey
        release.message = self.message
        release.keep = self.keep
        release.push = self.push

        outcome = await run_release_finish(
            state,
            FlowDeps.from_state(state),
            name=self.name,
            prefix=prefix_for(state, kind),
        )
        print(outcome.summary())
        return 0


class ReleaseCommand(WorkflowCommand):
    """Release branches: prepare a version off develop."""

    kind = "release"

    list_: CliSubCommand[ListAction] = Field(alias="list")
    start: CliSubCommand[StartAction]
    finish: CliSubCommand[ReleaseFinishAction]
    publish: CliSubCommand[PublishAction]
    track: CliSubCommand[TrackAction]
    help: CliSubCommand[HelpAction]
