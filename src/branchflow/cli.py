#!/usr/bin/env python3
"""branchflow CLI - a branching workflow on top of git."""

import asyncio
import sys

from pydantic_settings import (
    CliApp,
    CliSubCommand,
    SettingsError,
    get_subcommand,
)

from branchflow.command import (
    FeatureCommand,
    HotfixCommand,
    InitCommand,
    ReleaseCommand,
    SupportCommand,
)
from branchflow.command.base import report_error
from branchflow.core.config import State
from branchflow.core.errors import FlowError
from branchflow.core.log import logger
from branchflow.core.yaml_settings import parsing_args

USAGE = """\
usage: branchflow <workflow> <action> [options] [<name>] [<base>]

workflows:
  init      Set up master and develop
  feature   list, start, finish, publish, track, diff, rebase, help
  release   list, start, finish, publish, track, help
  hotfix    list, start, finish, publish, help
  support   list, start, help

Try 'branchflow <workflow> help' for the options of each action."""


class CliState(State):
    """Branching workflow (feature, release, hotfix and support branches)
    on top of git.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.flow.develop dev)
    2. branchflow.yaml in the current directory, the user config
       directory and files given with --include
    3. .env file
    4. Environment variables (BRANCHFLOW_CONFIG__FLOW__DEVELOP=dev)
    """

    feature: CliSubCommand[FeatureCommand]
    release: CliSubCommand[ReleaseCommand]
    hotfix: CliSubCommand[HotfixCommand]
    support: CliSubCommand[SupportCommand]
    init: CliSubCommand[InitCommand]

    def cli_cmd(self):
        """Run the selected workflow; print usage when none was given."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            print(USAGE, file=sys.stderr)
            raise SystemExit(1)

        # Close the logger sinks however the command ends
        with logger:
            try:
                exit_code = asyncio.run(subcommand.run_workflow(self))
            except FlowError as e:
                exit_code = report_error(e)
            raise SystemExit(exit_code)


def main(argv: list[str] | None = None):
    """Main entry point for CLI."""
    try:
        with parsing_args(argv):
            CliApp.run(CliState, cli_args=argv)
    except SettingsError as e:
        print(f"branchflow: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        raise SystemExit(1) from e
    except SystemExit as e:
        # Nested argparse parsers report usage errors with status 2
        if e.code == 2:
            print(USAGE, file=sys.stderr)
            raise SystemExit(1) from e
        raise


if __name__ == "__main__":
    main()
