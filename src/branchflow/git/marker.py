"""Resume marker for a finish that stopped on merge conflicts.

The marker is one line in <git-dir>/.branchflow/MERGE_BASE:

    <target-branch> [<topic-branch>]

It is written when a merge conflicts, read when finish runs again,
and removed once the merge is found resolved or abandoned.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from branchflow.core.log import logger

MARKER_DIR = ".branchflow"
MARKER_FILE = "MERGE_BASE"


class PausedMerge(BaseModel):
    """A merge of topic into target waiting for manual resolution.

    topic is None for a marker that only names the target; such a
    marker applies to whichever topic is being finished.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    topic: str | None = None

    def applies_to(self, topic: str) -> bool:
        return self.topic is None or self.topic == topic


class ResumeMarker:
    """Load/save/clear contract over the marker file."""

    def __init__(self, git_dir: Path):
        self.path = Path(git_dir) / MARKER_DIR / MARKER_FILE

    def load(self) -> PausedMerge | None:
        if not self.path.is_file():
            return None
        fields = self.path.read_text(encoding="utf-8").split()
        if not fields:
            logger.warn("Ignoring empty resume marker", path=str(self.path))
            return None
        return PausedMerge(
            target=fields[0],
            topic=fields[1] if len(fields) > 1 else None,
        )

    def save(self, paused: PausedMerge):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = paused.target
        if paused.topic:
            line = f"{line} {paused.topic}"
        self.path.write_text(line + "\n", encoding="utf-8")
        logger.debug("Saved resume marker", target=paused.target,
                     topic=paused.topic)

    def clear(self):
        """Remove the marker; a no-op when there is none."""
        self.path.unlink(missing_ok=True)
        parent = self.path.parent
        if parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
