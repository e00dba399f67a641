"""YAML configuration loading with include directive support."""

from __future__ import annotations

import contextlib
import os
import sys
from contextvars import ContextVar
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from branchflow.core.log import logger

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"

# Arguments being parsed by CliApp.run(); None means sys.argv
_cli_args: ContextVar[list[str] | None] = ContextVar("cli_args", default=None)


@contextlib.contextmanager
def parsing_args(argv: list[str] | None):
    """Make cli_includes() read argv instead of sys.argv."""
    token = _cli_args.set(argv)
    try:
        yield
    finally:
        _cli_args.reset(token)


def cli_includes(argv: list[str] | None = None) -> list[str]:
    """Collect --include values from the command line.

    Read ahead of pydantic's own parsing so the included files take
    part in building the settings that parsing fills in.

    Args:
        argv: Arguments without the program name. Defaults to the
            ones given to parsing_args(), else sys.argv[1:]
    """
    if argv is None:
        argv = _cli_args.get()
    if argv is None:
        argv = sys.argv[1:]
    includes = []
    i = 0
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directives and --include.

    Deep merges, lowest priority first:
        package defaults < user config < project config < CLI includes
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """Initialize with CLI include processing.

        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional override for the include file list
        """
        includes = cli_includes()

        base = yaml_file
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            ) + includes
        elif includes:
            yaml_file = includes

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, *args, **kwargs):  # noqa: ARG002
        """Load defaults, user config, project config and includes.

        Args:
            files: Extra file path(s), from --include or the caller;
                anything already loaded is not loaded twice

        Returns:
            Deep-merged dictionary of all loaded data
        """
        files_to_load = [
            DEFAULTS_FILE,
            Path(user_config_dir("branchflow", appauthor=False))
            / "branchflow.yaml",
            Path("branchflow.yaml"),
        ]

        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        loaded = set()
        for file_path in files_to_load:
            if file_path.is_file() and file_path.resolve() not in loaded:
                loaded.add(file_path.resolve())
                logger.debug(
                    "Loading configuration", file=str(file_path)
                )
                data = self._load_file_recursive(file_path, set())
                result = deep_merge(result, data)
            else:
                logger.spew(
                    "Configuration file missing or already loaded",
                    file=str(file_path),
                )

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a file and resolve its include: directives.

        Raises:
            ValueError: If circular include detected
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if "include" in data:
            includes = data.pop("include")
            if isinstance(includes, str):
                includes = [includes]

            # The including file wins over what it includes
            for inc in includes:
                inc_path = _resolve_path(inc, filepath)
                inc_data = self._load_file_recursive(
                    inc_path, visited.copy()
                )
                data = deep_merge(inc_data, data)

        return data


def _resolve_path(include_path: str, relative_to: Path) -> Path:
    path = Path(include_path).expanduser()
    if path.is_absolute():
        return path
    return (relative_to.parent / path).resolve()


def deep_merge(base: dict, override: dict) -> dict:
    """Return base with override merged in recursively (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result
