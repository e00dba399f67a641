"""Tests for YAML loading, include: directives and defaults."""

from pathlib import Path

import pytest

from branchflow.core.config import State
from branchflow.core.yaml_settings import (
    DEFAULTS_FILE,
    YamlWithIncludesSettingsSource,
    deep_merge,
)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Empty working directory so no project branchflow.yaml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_defaults_file_ships_with_package():
    assert DEFAULTS_FILE.is_file()


def test_defaults_loaded_without_any_files(config_dir):
    data = YamlWithIncludesSettingsSource(State)()

    flow = data["config"]["flow"]
    assert flow["master"] == "master"
    assert flow["develop"] == "develop"
    assert flow["prefix"]["feature"] == "feature/"
    assert "merge_no_ff" in data["config"]["commands"]["git"]


def test_project_file_overrides_defaults(config_dir):
    write(config_dir / "branchflow.yaml", """
config:
  flow:
    develop: dev
""")

    data = YamlWithIncludesSettingsSource(State)()

    assert data["config"]["flow"]["develop"] == "dev"
    # Untouched keys survive the merge
    assert data["config"]["flow"]["master"] == "master"


def test_include_directive(config_dir):
    write(config_dir / "prefixes.yaml", """
config:
  flow:
    prefix:
      feature: feat/
""")
    main = write(config_dir / "main.yaml", """
include: prefixes.yaml
config:
  flow:
    origin: upstream
""")

    data = YamlWithIncludesSettingsSource(State, yaml_file=str(main))()

    assert data["config"]["flow"]["prefix"]["feature"] == "feat/"
    assert data["config"]["flow"]["origin"] == "upstream"
    assert "include" not in data


def test_including_file_wins(config_dir):
    write(config_dir / "base.yaml", """
config:
  flow:
    origin: from-include
""")
    main = write(config_dir / "main.yaml", """
include: base.yaml
config:
  flow:
    origin: from-main
""")

    data = YamlWithIncludesSettingsSource(State, yaml_file=str(main))()

    assert data["config"]["flow"]["origin"] == "from-main"


def test_nested_include_relative_to_including_file(config_dir):
    write(config_dir / "sub" / "deep.yaml", """
config:
  flow:
    master: main
""")
    write(config_dir / "sub" / "middle.yaml", "include: deep.yaml\n")
    main = write(config_dir / "main.yaml", "include: sub/middle.yaml\n")

    data = YamlWithIncludesSettingsSource(State, yaml_file=str(main))()

    assert data["config"]["flow"]["master"] == "main"


def test_multiple_includes(config_dir):
    write(config_dir / "a.yaml", "config:\n  flow:\n    master: main\n")
    write(config_dir / "b.yaml", "config:\n  flow:\n    develop: dev\n")
    main = write(config_dir / "main.yaml", "include:\n  - a.yaml\n  - b.yaml\n")

    data = YamlWithIncludesSettingsSource(State, yaml_file=str(main))()

    assert data["config"]["flow"]["master"] == "main"
    assert data["config"]["flow"]["develop"] == "dev"


def test_circular_include_detected(config_dir):
    write(config_dir / "a.yaml", "include: b.yaml\n")
    write(config_dir / "b.yaml", "include: a.yaml\n")

    # The source reads its files while being constructed
    with pytest.raises(ValueError, match="Circular include"):
        YamlWithIncludesSettingsSource(
            State, yaml_file=str(config_dir / "a.yaml")
        )


def test_missing_include_raises(config_dir):
    main = write(config_dir / "main.yaml", "include: nowhere.yaml\n")

    with pytest.raises(FileNotFoundError):
        YamlWithIncludesSettingsSource(State, yaml_file=str(main))


def test_state_from_yaml(config_dir):
    write(config_dir / "branchflow.yaml", """
config:
  flow:
    develop: integration
    prefix:
      versiontag: v
""")

    state = State(_cli_parse_args=False)

    assert state.flow.develop == "integration"
    assert state.flow.prefix.versiontag == "v"
    assert state.config.commands["git"]["checkout"].startswith("git ")


def test_environment_variables(config_dir, monkeypatch):
    monkeypatch.setenv("BRANCHFLOW_CONFIG__FLOW__ORIGIN", "upstream")

    state = State(_cli_parse_args=False)

    # YAML defaults sit above the environment
    assert state.flow.origin == "origin"


def test_init_kwargs_win(config_dir):
    state = State(
        _cli_parse_args=False,
        config={"flow": {"master": "main"}},
    )

    assert state.flow.master == "main"
    assert state.flow.develop == "develop"


class TestDeepMerge:
    def test_nested_values_merge(self):
        base = {"config": {"flow": {"master": "m", "develop": "d"}}}
        override = {"config": {"flow": {"develop": "x"}}}

        assert deep_merge(base, override) == {
            "config": {"flow": {"master": "m", "develop": "x"}}
        }

    def test_non_dict_replaces(self):
        assert deep_merge({"a": {"b": 1}}, {"a": 2}) == {"a": 2}

    def test_inputs_unchanged(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"c": 2}})
        assert base == {"a": {"b": 1}}
