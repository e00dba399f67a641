"""Error taxonomy for branchflow commands.

Every error a command raises on purpose derives from FlowError and
carries the process exit code. The CLI turns a FlowError into a
message on stderr; anything else is a bug and propagates.
"""

from __future__ import annotations


class FlowError(Exception):
    """Command-level failure with an exit code."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class UsageError(FlowError):
    """Bad or missing arguments."""


class PreconditionFailed(FlowError):
    """A guard refused to let a command start mutating the repository."""


class DirtyUnstaged(PreconditionFailed):
    def __init__(self) -> None:
        super().__init__(
            "Working tree contains unstaged changes. Aborting."
        )


class DirtyStaged(PreconditionFailed):
    def __init__(self) -> None:
        super().__init__(
            "Index contains uncommitted changes. Aborting."
        )


class UnresolvedConflicts(PreconditionFailed):
    def __init__(self, topic: str, target: str) -> None:
        super().__init__(
            f"Merge of '{topic}' into '{target}' still has unresolved "
            f"conflicts.\nResolve them, commit the result with "
            f"'git commit', then run finish again."
        )
        self.topic = topic
        self.target = target


class BranchMissing(PreconditionFailed):
    def __init__(self, branch: str, where: str = "") -> None:
        location = f" {where}" if where else ""
        super().__init__(f"Branch '{branch}' does not exist{location}.")
        self.branch = branch


class BranchExists(PreconditionFailed):
    def __init__(self, branch: str, where: str = "") -> None:
        location = f" {where}" if where else ""
        super().__init__(f"Branch '{branch}' already exists{location}.")
        self.branch = branch


class TagExists(PreconditionFailed):
    def __init__(self, tag: str) -> None:
        super().__init__(f"Tag '{tag}' already exists.")
        self.tag = tag


class BranchesOutOfSync(PreconditionFailed):
    """Local and remote branch point at different, incompatible commits."""


class NameNotFound(FlowError):
    def __init__(self, name: str, prefix: str) -> None:
        super().__init__(
            f"No branch matches prefix '{prefix}{name}': "
            f"branch does not exist."
        )
        self.name = name
        self.prefix = prefix


class AmbiguousName(FlowError):
    """More than one branch matches a name prefix."""

    def __init__(self, name: str, candidates: list[str]) -> None:
        super().__init__(
            f"Multiple branches match prefix '{name}':"
        )
        self.name = name
        self.candidates = candidates


class MergeConflict(FlowError):
    def __init__(self, source: str, target: str, detail: str = "") -> None:
        message = (
            f"There were merge conflicts merging '{source}' into "
            f"'{target}'."
        )
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.source = source
        self.target = target


class RebaseConflict(FlowError):
    def __init__(self, branch: str, onto: str) -> None:
        super().__init__(
            f"Rebasing '{branch}' onto '{onto}' stopped on conflicts.\n"
            f"Resolve them and run 'git rebase --continue', or abort "
            f"with 'git rebase --abort'. Then run the command again."
        )
        self.branch = branch
        self.onto = onto


class ExternalToolFailure(FlowError):
    """git itself failed where failure is not an expected outcome."""

    def __init__(self, command: str, exit_code: int, stderr: str) -> None:
        detail = stderr.strip() or "no output"
        super().__init__(
            f"Command failed (exit {exit_code}): {command}\n{detail}"
        )
        self.command = command
        self.tool_exit_code = exit_code
        self.stderr = stderr
