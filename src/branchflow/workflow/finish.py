"""Topic branch finish: merge a feature branch back and clean up.

Prepare → [Resume] → Verify → [Rebase] → Merge → [ConflictPaused]
→ Cleanup → End

A merge that stops on conflicts leaves a resume marker behind. The
next finish for the same branch starts at Resume instead of merging
again.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, Graph, GraphRunContext

from branchflow.core.config import State
from branchflow.core.errors import RebaseConflict, UnresolvedConflicts
from branchflow.core.log import logger
from branchflow.core.result import FinishOutcome
from branchflow.flow.resolver import current_topic, resolve_name
from branchflow.git.marker import PausedMerge
from branchflow.workflow.deps import FlowDeps

FinishContext = GraphRunContext[State, FlowDeps]


@dataclass
class Prepare(BaseNode[State, FlowDeps, FinishOutcome]):
    """Resolve the topic branch and decide whether this is a resume."""

    name: str | None = None
    prefix: str = "feature/"

    async def run(self, ctx: FinishContext) -> Resume | Verify:
        finish = ctx.state.runtime.finish
        git = ctx.deps.git

        paused = ctx.deps.marker.load()
        current = git.current_branch()

        if self.name:
            short = resolve_name(self.name, self.prefix, git.local_branches())
        elif (
            not (current or "").startswith(self.prefix)
            and paused is not None
            and paused.topic
            and paused.topic.startswith(self.prefix)
        ):
            # A conflicted merge leaves HEAD on the target
            short = paused.topic[len(self.prefix):]
        else:
            short = current_topic(self.prefix, current)

        finish.topic = self.prefix + short
        finish.target = finish.target or ctx.deps.flow.develop
        finish.status = "running"
        logger.debug(
            f"Finishing {finish.topic} into {finish.target}",
            rebase=finish.rebase,
            squash=finish.squash,
        )

        ctx.deps.guards.require_local_branch_present(finish.topic)
        ctx.deps.guards.require_local_branch_present(finish.target)

        if paused is not None and paused.applies_to(finish.topic):
            return Resume(paused=paused)
        return Verify()


@dataclass
class Resume(BaseNode[State, FlowDeps, FinishOutcome]):
    """Pick up a merge that stopped on conflicts."""

    paused: PausedMerge

    async def run(self, ctx: FinishContext) -> Cleanup | Verify:
        finish = ctx.state.runtime.finish
        git = ctx.deps.git
        target = self.paused.target

        if git.has_unstaged_changes() or git.has_staged_changes():
            raise UnresolvedConflicts(finish.topic, target)

        ctx.deps.marker.clear()
        if git.is_ancestor(finish.topic, target):
            logger.info(
                f"Merge of {finish.topic} into {target} was completed "
                f"by hand"
            )
            finish.target = target
            finish.resumed = True
            finish.merge_mode = "manual"
            finish.actions.append(
                f"The conflicting merge of '{finish.topic}' into "
                f"'{target}' was resolved"
            )
            git.checkout(target)
            return Cleanup()

        logger.warn(
            f"Merge of {finish.topic} into {target} was abandoned, "
            f"starting over"
        )
        return Verify()


@dataclass
class Verify(BaseNode[State, FlowDeps, FinishOutcome]):
    """Guards that must hold before anything is changed."""

    async def run(self, ctx: FinishContext) -> Rebase | Merge:
        finish = ctx.state.runtime.finish
        guards = ctx.deps.guards

        guards.require_clean_working_tree()

        if finish.fetch:
            origin = ctx.deps.flow.origin
            ctx.deps.git.fetch(origin)
            guards.require_branches_synced(
                finish.target, f"{origin}/{finish.target}"
            )
            guards.require_branches_synced(
                finish.topic, f"{origin}/{finish.topic}"
            )

        if finish.rebase or finish.squash:
            return Rebase()
        return Merge()


@dataclass
class Rebase(BaseNode[State, FlowDeps, FinishOutcome]):
    """Rebase the topic branch onto the target before merging."""

    async def run(self, ctx: FinishContext) -> Merge:
        finish = ctx.state.runtime.finish
        ok = ctx.deps.git.rebase(
            finish.topic, finish.target, interactive=finish.interactive
        )
        if not ok:
            raise RebaseConflict(finish.topic, finish.target)

        finish.actions.append(
            f"Branch '{finish.topic}' was rebased onto '{finish.target}'"
        )
        return Merge()


@dataclass
class Merge(BaseNode[State, FlowDeps, FinishOutcome]):
    """Merge the topic branch into the target.

    A single commit is fast-forwarded when possible; anything longer
    gets a merge commit so the branch stays visible in history.
    """

    async def run(self, ctx: FinishContext) -> ConflictPaused | Cleanup:
        finish = ctx.state.runtime.finish
        git = ctx.deps.git

        git.checkout(finish.target)

        if git.is_ancestor(finish.topic, finish.target):
            logger.info(f"{finish.topic} is already merged into "
                        f"{finish.target}")
            finish.merge_mode = "none"
            finish.actions.append(
                f"Branch '{finish.topic}' was already merged into "
                f"'{finish.target}'"
            )
            return Cleanup()

        if finish.squash:
            mode = "squash"
        elif git.count_commits(finish.target, finish.topic) == 1:
            mode = "ff"
        else:
            mode = "no-ff"

        if not git.merge(finish.topic, mode):
            finish.merge_mode = mode
            return ConflictPaused()

        if mode == "squash" and git.has_staged_changes():
            git.commit(f"Squashed commit of branch '{finish.topic}'")

        finish.merge_mode = mode
        finish.actions.append(
            f"Branch '{finish.topic}' was merged into '{finish.target}' "
            f"({mode})"
        )
        return Cleanup()


@dataclass
class ConflictPaused(BaseNode[State, FlowDeps, FinishOutcome]):
    """Leave the conflicted merge to the user and remember it."""

    async def run(self, ctx: FinishContext) -> End[FinishOutcome]:
        finish = ctx.state.runtime.finish
        ctx.deps.marker.save(
            PausedMerge(target=finish.target, topic=finish.topic)
        )
        finish.status = "paused"
        logger.warn(
            f"Merge of {finish.topic} into {finish.target} stopped on "
            f"conflicts"
        )
        return End(
            FinishOutcome(
                branch=finish.topic,
                status="paused",
                actions=list(finish.actions),
            )
        )


@dataclass
class Cleanup(BaseNode[State, FlowDeps, FinishOutcome]):
    """Delete the finished branch unless asked to keep it."""

    async def run(self, ctx: FinishContext) -> End[FinishOutcome]:
        finish = ctx.state.runtime.finish
        git = ctx.deps.git
        origin = ctx.deps.flow.origin

        if git.current_branch() != finish.target:
            git.checkout(finish.target)

        if finish.keep:
            finish.actions.append(
                f"Branch '{finish.topic}' is still locally available"
            )
        else:
            # A squashed branch is never an ancestor of its target
            git.delete_branch(finish.topic, force=finish.merge_mode == "squash")
            finish.actions.append(
                f"Branch '{finish.topic}' has been locally deleted"
            )
            if f"{origin}/{finish.topic}" in git.remote_branches():
                git.delete_remote_branch(origin, finish.topic)
                finish.actions.append(
                    f"Branch '{finish.topic}' has been deleted on "
                    f"'{origin}'"
                )

        finish.actions.append(f"You are now on branch '{finish.target}'")
        finish.status = "complete"
        logger.info(f"Finished {finish.topic}")
        return End(
            FinishOutcome(branch=finish.topic, actions=list(finish.actions))
        )


def create_finish_workflow() -> Graph:
    """Graph for finishing a topic branch."""
    return Graph(
        nodes=(Prepare, Resume, Verify, Rebase, Merge, ConflictPaused,
               Cleanup),
        state_type=State,
    )


async def run_finish(
    state: State,
    deps: FlowDeps,
    name: str | None = None,
    prefix: str = "feature/",
) -> FinishOutcome:
    """Run the finish graph to completion or to a conflict pause.

    Options (target, rebase, squash, ...) are read from
    state.runtime.finish, which the graph also updates as it goes.
    """
    workflow = create_finish_workflow()
    with logger.span("finish {prefix}", prefix=prefix, name=name):
        async with workflow.iter(
            Prepare(name=name, prefix=prefix), state=state, deps=deps
        ) as run:
            async for _node in run:
                pass
    return run.result.output
