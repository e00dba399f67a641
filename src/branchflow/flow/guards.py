"""Precondition checks run before any command mutates the repository."""

from __future__ import annotations

from branchflow.core.errors import (
    BranchesOutOfSync,
    BranchExists,
    BranchMissing,
    DirtyStaged,
    DirtyUnstaged,
    TagExists,
)
from branchflow.core.log import logger
from branchflow.core.result import (
    Equal,
    NeedsFastForward,
    NeedsMerge,
    SyncStatus,
)
from branchflow.git.repository import Git


def compare_branches(git: Git, local: str, remote: str) -> SyncStatus:
    """Classify how two refs relate.

    Returns:
        Equal, NeedsFastForward("local") when local is behind,
        NeedsFastForward("remote") when local is ahead, or NeedsMerge
    """
    local_commit = git.rev_parse(local)
    remote_commit = git.rev_parse(remote)
    if local_commit == remote_commit:
        return Equal()

    base = git.merge_base(local, remote)
    if base == local_commit:
        return NeedsFastForward(side="local")
    if base == remote_commit:
        return NeedsFastForward(side="remote")
    return NeedsMerge(base=base)


class Guards:
    """Guard predicates over a Git adapter.

    Each require_* method returns quietly when the condition holds
    and raises a PreconditionFailed subclass when it does not.
    """

    def __init__(self, git: Git):
        self.git = git

    def require_clean_working_tree(self):
        # Unstaged first, then staged
        if self.git.has_unstaged_changes():
            raise DirtyUnstaged()
        if self.git.has_staged_changes():
            raise DirtyStaged()

    def require_branch_present(self, name: str):
        if name not in self.git.all_branches():
            raise BranchMissing(name)

    def require_branch_absent(self, name: str):
        if name in self.git.all_branches():
            raise BranchExists(name)

    def require_local_branch_present(self, name: str):
        if name not in self.git.local_branches():
            raise BranchMissing(name, "locally")

    def require_local_branch_absent(self, name: str):
        if name in self.git.local_branches():
            raise BranchExists(name, "locally")

    def require_remote_branch_present(self, remote: str, name: str):
        if f"{remote}/{name}" not in self.git.remote_branches():
            raise BranchMissing(name, f"on remote '{remote}'")

    def require_remote_branch_absent(self, remote: str, name: str):
        if f"{remote}/{name}" in self.git.remote_branches():
            raise BranchExists(name, f"on remote '{remote}'")

    def require_no_branch_with_prefix(self, prefix: str):
        """Only one branch of a kind (release, hotfix) at a time."""
        existing = [
            b for b in self.git.local_branches() if b.startswith(prefix)
        ]
        if existing:
            raise BranchExists(
                existing[0],
                f"(finish it before starting another '{prefix}' branch)",
            )

    def require_tag_absent(self, name: str):
        if name in self.git.tags():
            raise TagExists(name)

    def require_branches_synced(
        self, local: str, remote: str, force: bool = False
    ) -> SyncStatus:
        """Refuse to go on when local is behind or diverged from remote.

        A local branch ahead of its remote only warns. force turns
        every failure into a warning. Skipped when remote does not
        exist.
        """
        if remote not in self.git.remote_branches():
            logger.debug("No remote counterpart, skipping sync check",
                         local=local, remote=remote)
            return Equal()

        status = compare_branches(self.git, local, remote)
        if isinstance(status, Equal):
            return status

        if isinstance(status, NeedsFastForward) and status.side == "remote":
            message = f"Branch '{local}' is ahead of '{remote}'."
            logger.warn(message)
            return status

        if isinstance(status, NeedsMerge):
            message = (
                f"Branches '{local}' and '{remote}' have diverged "
                f"and need a real merge."
            )
        else:
            message = (
                f"Branch '{local}' is behind '{remote}' and needs "
                f"fast-forwarding."
            )

        if force:
            logger.warn(message)
            return status
        raise BranchesOutOfSync(f"{message} Aborting.")
