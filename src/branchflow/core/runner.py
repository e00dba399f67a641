"""Command execution on top of invoke."""

from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from branchflow.core.log import logger


class Runner(Context):
    """invoke.Context with a single entry point for running git.

    Methods are named so they don't collide with invoke's own
    run()/sudo()/cd().
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
        interactive: bool = False,
        log_level: str | None = "spew",
    ) -> Result:
        """Execute a command and return its result.

        Args:
            command: Command string to execute
            cwd: Working directory for the command
            timeout: Maximum execution time in seconds
            check: If True, raise invoke.UnexpectedExit on non-zero
                exit code
            env: Environment variables to add to os.environ
            interactive: Attach the terminal (stdin/stdout) instead
                of capturing output, e.g. for an interactive rebase
            log_level: Level for echoing captured output to the
                logger, None to skip

        Returns:
            invoke.Result with stdout, stderr and exited
        """
        kwargs = {
            "hide": not interactive,
            "warn": not check,
            "in_stream": None if interactive else False,
            "pty": interactive,
        }

        if timeout:
            kwargs["timeout"] = timeout

        if env:
            kwargs["env"] = env

        logger.debug(
            "Running command",
            command=command,
            cwd=str(cwd) if cwd else None,
        )

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            # Reported like any other failure: exit code -1
            result = e.result
            result.exited = -1

        # Output goes in as an attribute, git output may contain braces
        if log_level and not interactive:
            for stream in ("stdout", "stderr"):
                for line in getattr(result, stream).splitlines():
                    logger.log(
                        log_level,
                        "{stream}: {line}",
                        stream=stream,
                        line=line.rstrip(),
                    )

        return result
