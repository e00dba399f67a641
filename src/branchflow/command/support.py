"""Support workflow - long-lived branches for old releases."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import CliPositionalArg, CliSubCommand

from branchflow.command.base import (
    HelpAction,
    ListAction,
    StartAction,
    WorkflowCommand,
)
from branchflow.core.errors import BranchMissing
from branchflow.flow.guards import Guards
from branchflow.git.repository import Git


class SupportStartAction(StartAction):
    """Start a support branch from <base> (a tag or commit on master)."""

    base: CliPositionalArg[str] = Field(
        description="Branch, tag or commit to start from"
    )

    def _check_base(self, git: Git, guards: Guards, base: str):
        if git.rev_parse(base) is None:
            raise BranchMissing(base)


class SupportCommand(WorkflowCommand):
    """Support branches: maintenance lines for released versions."""

    kind = "support"

    list_: CliSubCommand[ListAction] = Field(alias="list")
    start: CliSubCommand[SupportStartAction]
    help: CliSubCommand[HelpAction]
