"""Hotfix workflow - fix production off master, finish like a release."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import CliSubCommand

from branchflow.command.base import (
    HelpAction,
    ListAction,
    PublishAction,
    StartAction,
    WorkflowCommand,
)
from branchflow.command.release import ReleaseFinishAction


class HotfixCommand(WorkflowCommand):
    """Hotfix branches: urgent fixes to a production release."""

    kind = "hotfix"

    list_: CliSubCommand[ListAction] = Field(alias="list")
    start: CliSubCommand[StartAction]
    finish: CliSubCommand[ReleaseFinishAction]
    publish: CliSubCommand[PublishAction]
    help: CliSubCommand[HelpAction]
