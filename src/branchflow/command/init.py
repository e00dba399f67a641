"""Init command - make sure the integration branches exist."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from branchflow.command.base import flag, print_summary
from branchflow.core.config import State
from branchflow.core.log import logger
from branchflow.git.repository import Git


class InitCommand(BaseModel):
    """Set up a repository for the branching model.

    Creates the repository when the working directory is not one yet,
    then the master branch (with an empty initial commit in a fresh
    repository) and the develop branch off master. Existing branches
    are left alone.
    """

    force: bool = flag(
        "f", "force", "Accepted for compatibility; init never deletes"
    )

    model_config = ConfigDict(populate_by_name=True)

    async def run_workflow(self, state: State) -> int:
        flow = state.flow
        git = Git.from_state(state)
        actions = []

        if not git.is_repository():
            git.init()
            actions.append(f"Initialized an empty repository in {git.workdir}")

        branches = git.local_branches()
        if not branches:
            # Unborn HEAD: give master its first commit
            git.set_head(flow.master)
            git.commit_empty("Initial commit")
            actions.append(f"Branch '{flow.master}' was created")
        elif flow.master not in branches:
            git.branch(flow.master, "HEAD")
            actions.append(f"Branch '{flow.master}' was created from HEAD")

        if flow.develop not in git.local_branches():
            git.branch(flow.develop, flow.master)
            actions.append(
                f"Branch '{flow.develop}' was created from '{flow.master}'"
            )

        if git.current_branch() != flow.develop:
            git.checkout(flow.develop)

        if not actions:
            actions.append("Repository was already initialized")
        actions.append(f"You are now on branch '{flow.develop}'")
        logger.info("Initialized", master=flow.master, develop=flow.develop)
        print_summary(actions)
        return 0
