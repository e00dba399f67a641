"""Tests for --include on the command line."""

import sys

import pytest

from branchflow.core.config import State
from branchflow.core.yaml_settings import (
    YamlWithIncludesSettingsSource,
    cli_includes,
    parsing_args,
)


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    yield
    sys.argv = original


def test_cli_includes_parsing():
    argv = [
        "branchflow",
        "--include", "a.yaml",
        "feature", "list",
        "--include=b.yaml",
    ]
    assert cli_includes(argv) == ["a.yaml", "b.yaml"]


def test_cli_includes_none():
    assert cli_includes(["branchflow", "feature", "list"]) == []


def test_dangling_include_flag_ignored():
    assert cli_includes(["branchflow", "--include"]) == []


def test_parsing_args_replaces_sys_argv(mock_argv):
    sys.argv = ["pytest", "--include", "ignored.yaml"]

    with parsing_args(["--include", "given.yaml", "feature", "list"]):
        assert cli_includes() == ["given.yaml"]

    assert cli_includes() == ["ignored.yaml"]


def test_include_file_loaded(tmp_path, monkeypatch, mock_argv):
    monkeypatch.chdir(tmp_path)
    extra = tmp_path / "extra.yaml"
    extra.write_text("config:\n  flow:\n    develop: next\n")
    sys.argv = ["branchflow", "--include", str(extra)]

    data = YamlWithIncludesSettingsSource(State)()

    assert data["config"]["flow"]["develop"] == "next"


def test_include_overrides_project_file(tmp_path, monkeypatch, mock_argv):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "branchflow.yaml").write_text(
        "config:\n  flow:\n    develop: project\n"
    )
    extra = tmp_path / "extra.yaml"
    extra.write_text("config:\n  flow:\n    develop: included\n")
    sys.argv = ["branchflow", f"--include={extra}"]

    data = YamlWithIncludesSettingsSource(State)()

    assert data["config"]["flow"]["develop"] == "included"


def test_later_include_wins(tmp_path, monkeypatch, mock_argv):
    monkeypatch.chdir(tmp_path)
    first = tmp_path / "first.yaml"
    first.write_text("config:\n  flow:\n    origin: first\n")
    second = tmp_path / "second.yaml"
    second.write_text("config:\n  flow:\n    origin: second\n")
    sys.argv = [
        "branchflow", "--include", str(first), "--include", str(second),
    ]

    data = YamlWithIncludesSettingsSource(State)()

    assert data["config"]["flow"]["origin"] == "second"
