"""Tests for the paused-merge resume marker."""

from branchflow.git.marker import PausedMerge, ResumeMarker


def test_no_marker(tmp_path):
    assert ResumeMarker(tmp_path).load() is None


def test_save_then_load(tmp_path):
    marker = ResumeMarker(tmp_path)
    marker.save(PausedMerge(target="develop", topic="feature/login"))

    assert marker.load() == PausedMerge(
        target="develop", topic="feature/login"
    )


def test_file_format(tmp_path):
    """One line: target, then topic."""
    ResumeMarker(tmp_path).save(
        PausedMerge(target="develop", topic="feature/login")
    )

    path = tmp_path / ".branchflow" / "MERGE_BASE"
    assert path.read_text() == "develop feature/login\n"


def test_target_only_marker_applies_to_any_topic(tmp_path):
    (tmp_path / ".branchflow").mkdir()
    (tmp_path / ".branchflow" / "MERGE_BASE").write_text("develop\n")

    paused = ResumeMarker(tmp_path).load()

    assert paused == PausedMerge(target="develop")
    assert paused.applies_to("feature/anything")


def test_marker_for_other_topic_does_not_apply():
    paused = PausedMerge(target="develop", topic="feature/a")
    assert paused.applies_to("feature/a")
    assert not paused.applies_to("feature/b")


def test_clear_removes_file_and_directory(tmp_path):
    marker = ResumeMarker(tmp_path)
    marker.save(PausedMerge(target="develop", topic="feature/x"))

    marker.clear()

    assert marker.load() is None
    assert not (tmp_path / ".branchflow").exists()


def test_clear_is_idempotent(tmp_path):
    marker = ResumeMarker(tmp_path)
    marker.clear()
    marker.clear()
    assert marker.load() is None


def test_empty_marker_is_ignored(tmp_path):
    (tmp_path / ".branchflow").mkdir()
    (tmp_path / ".branchflow" / "MERGE_BASE").write_text("\n")

    assert ResumeMarker(tmp_path).load() is None
