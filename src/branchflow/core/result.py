"""Result types for branch comparison and finish runs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Equal(BaseModel):
    """Both refs point at the same commit."""

    model_config = ConfigDict(frozen=True)


class NeedsFastForward(BaseModel):
    """One side is a strict ancestor of the other.

    side names the ref that is behind: "local" means the local branch
    must be fast-forwarded, "remote" means the local branch is ahead.
    """

    model_config = ConfigDict(frozen=True)

    side: Literal["local", "remote"]


class NeedsMerge(BaseModel):
    """The refs have diverged from their common ancestor."""

    model_config = ConfigDict(frozen=True)

    base: str | None = None


SyncStatus = Equal | NeedsFastForward | NeedsMerge


def format_summary(actions: list[str]) -> str:
    lines = ["", "Summary of actions:"]
    lines.extend(f"- {action}" for action in actions)
    return "\n".join(lines)


class FinishOutcome(BaseModel):
    """What a finish run did, or where it stopped."""

    branch: str
    status: Literal["complete", "paused"] = "complete"
    actions: list[str] = Field(default_factory=list)

    def summary(self) -> str:
        return format_summary(self.actions)
