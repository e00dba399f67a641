"""Collaborators handed to every workflow node."""

from __future__ import annotations

from dataclasses import dataclass

from branchflow.core.config import FlowConfig, State
from branchflow.flow.guards import Guards
from branchflow.git.marker import ResumeMarker
from branchflow.git.repository import Git


@dataclass
class FlowDeps:
    git: Git
    guards: Guards
    marker: ResumeMarker
    flow: FlowConfig

    @classmethod
    def from_state(cls, state: State) -> FlowDeps:
        git = Git.from_state(state)
        return cls(
            git=git,
            guards=Guards(git),
            marker=ResumeMarker(git.git_dir()),
            flow=state.flow,
        )
