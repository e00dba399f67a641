"""Release and hotfix finish.

PrepareRelease → MergeIntoStable → CreateTag → MergeIntoDevelop
→ ReleaseCleanup → End

Every step first checks whether it already happened, so running
finish again after fixing a conflict carries on where the previous
run stopped.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, Graph, GraphRunContext

from branchflow.core.config import State
from branchflow.core.errors import MergeConflict
from branchflow.core.log import logger
from branchflow.core.result import FinishOutcome
from branchflow.flow.resolver import current_topic, resolve_name
from branchflow.workflow.deps import FlowDeps

ReleaseContext = GraphRunContext[State, FlowDeps]

RESOLVE_HINT = (
    "Fix the conflicts and commit the merge, then run finish again "
    "to carry on."
)


def _merge_no_ff(ctx: ReleaseContext, into: str):
    release = ctx.state.runtime.release
    git = ctx.deps.git
    git.checkout(into)
    if not git.merge(release.branch, "no-ff"):
        raise MergeConflict(release.branch, into, RESOLVE_HINT)
    release.actions.append(
        f"Branch '{release.branch}' has been merged into '{into}'"
    )


@dataclass
class PrepareRelease(BaseNode[State, FlowDeps, FinishOutcome]):
    """Resolve the branch, derive the tag name and run the guards."""

    name: str | None = None
    prefix: str = "release/"

    async def run(self, ctx: ReleaseContext) -> MergeIntoStable:
        release = ctx.state.runtime.release
        flow = ctx.deps.flow
        git = ctx.deps.git
        guards = ctx.deps.guards

        if self.name:
            short = resolve_name(self.name, self.prefix, git.local_branches())
        else:
            short = current_topic(self.prefix, git.current_branch())

        release.branch = self.prefix + short
        release.version = short
        release.tag = flow.prefix.versiontag + short
        release.status = "running"

        guards.require_local_branch_present(release.branch)
        guards.require_local_branch_present(flow.master)
        guards.require_local_branch_present(flow.develop)
        guards.require_clean_working_tree()

        if release.fetch:
            git.fetch(flow.origin)
            for branch in (flow.master, flow.develop, release.branch):
                guards.require_branches_synced(
                    branch, f"{flow.origin}/{branch}"
                )

        logger.info(
            f"Finishing {release.kind} {release.version}",
            branch=release.branch,
            tag=release.tag,
        )
        return MergeIntoStable()


@dataclass
class MergeIntoStable(BaseNode[State, FlowDeps, FinishOutcome]):
    async def run(self, ctx: ReleaseContext) -> CreateTag:
        release = ctx.state.runtime.release
        master = ctx.deps.flow.master

        if ctx.deps.git.is_ancestor(release.branch, master):
            logger.info(f"{release.branch} already merged into {master}")
            release.skipped.append(f"merge into {master}")
        else:
            _merge_no_ff(ctx, master)
        return CreateTag()


@dataclass
class CreateTag(BaseNode[State, FlowDeps, FinishOutcome]):
    """Tag the stable branch head with the release version."""

    async def run(self, ctx: ReleaseContext) -> MergeIntoDevelop:
        release = ctx.state.runtime.release
        git = ctx.deps.git

        if release.tag in git.tags():
            logger.info(f"Tag {release.tag} already exists")
            release.skipped.append(f"tag {release.tag}")
            return MergeIntoDevelop()

        message = release.message or (
            f"{release.kind.capitalize()} {release.version}"
        )
        git.tag(
            release.tag,
            ctx.deps.flow.master,
            message,
            sign=release.sign or bool(release.signingkey),
            signingkey=release.signingkey,
        )
        release.actions.append(
            f"The {release.kind} was tagged '{release.tag}'"
        )
        return MergeIntoDevelop()


@dataclass
class MergeIntoDevelop(BaseNode[State, FlowDeps, FinishOutcome]):
    async def run(self, ctx: ReleaseContext) -> ReleaseCleanup:
        release = ctx.state.runtime.release
        develop = ctx.deps.flow.develop

        if ctx.deps.git.is_ancestor(release.branch, develop):
            logger.info(f"{release.branch} already merged into {develop}")
            release.skipped.append(f"merge into {develop}")
        else:
            _merge_no_ff(ctx, develop)
        return ReleaseCleanup()


@dataclass
class ReleaseCleanup(BaseNode[State, FlowDeps, FinishOutcome]):
    """Delete the branch, push if asked, and report."""

    async def run(self, ctx: ReleaseContext) -> End[FinishOutcome]:
        release = ctx.state.runtime.release
        flow = ctx.deps.flow
        git = ctx.deps.git

        if git.current_branch() != flow.develop:
            git.checkout(flow.develop)

        if release.keep:
            release.actions.append(
                f"Branch '{release.branch}' is still locally available"
            )
        else:
            git.delete_branch(release.branch)
            release.actions.append(
                f"Branch '{release.branch}' has been locally deleted"
            )

        if release.push:
            git.push(flow.origin, flow.master, flow.develop)
            git.push_tags(flow.origin)
            release.actions.append(
                f"'{flow.master}', '{flow.develop}' and tags have been "
                f"pushed to '{flow.origin}'"
            )
            remote_ref = f"{flow.origin}/{release.branch}"
            if not release.keep and remote_ref in git.remote_branches():
                git.delete_remote_branch(flow.origin, release.branch)
                release.actions.append(
                    f"Branch '{release.branch}' has been deleted on "
                    f"'{flow.origin}'"
                )

        for step in release.skipped:
            release.actions.append(f"Already done, skipped: {step}")
        release.actions.append(f"You are now on branch '{flow.develop}'")
        release.status = "complete"
        return End(
            FinishOutcome(branch=release.branch, actions=list(release.actions))
        )


def create_release_workflow() -> Graph:
    """Graph for finishing a release or hotfix branch."""
    return Graph(
        nodes=(PrepareRelease, MergeIntoStable, CreateTag,
               MergeIntoDevelop, ReleaseCleanup),
        state_type=State,
    )


async def run_release_finish(
    state: State,
    deps: FlowDeps,
    name: str | None = None,
    prefix: str = "release/",
) -> FinishOutcome:
    """Finish a release (or hotfix, by prefix and kind) branch.

    Raises:
        MergeConflict: a merge stopped; the repository is left in the
            conflicted state for the user to resolve
    """
    workflow = create_release_workflow()
    with logger.span("finish {prefix}", prefix=prefix, name=name):
        async with workflow.iter(
            PrepareRelease(name=name, prefix=prefix),
            state=state,
            deps=deps,
        ) as run:
            async for _node in run:
                pass
    return run.result.output
