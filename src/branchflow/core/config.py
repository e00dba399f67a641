"""Application state and configuration."""

from __future__ import annotations

from pathlib import Path

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from branchflow.core.base import BaseConfig, BaseState
from branchflow.core.log import Logger
from branchflow.core.yaml_settings import YamlWithIncludesSettingsSource

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GitConfig(BaseConfig):
    """Where git runs."""

    workdir: Path = Field(
        default=Path("."),
        description="Path to the git working directory",
    )


class PrefixConfig(BaseConfig):
    """Branch name prefixes, one per workflow."""

    feature: str = Field(default="feature/")
    release: str = Field(default="release/")
    hotfix: str = Field(default="hotfix/")
    support: str = Field(default="support/")
    versiontag: str = Field(
        default="",
        description="Prefix for release and hotfix tags (e.g. 'v')",
    )


class FlowConfig(BaseConfig):
    """Integration branches, remote and prefixes."""

    master: str = Field(
        default="master",
        description="Branch holding production releases",
    )
    develop: str = Field(
        default="develop",
        description="Branch where the next release is integrated",
    )
    origin: str = Field(
        default="origin",
        description="Remote used by fetch, publish, track and push",
    )
    prefix: PrefixConfig = Field(
        default_factory=PrefixConfig,
        description="Branch name prefixes",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default_factory=Logger,
        description="Logger sinks",
    )
    git: GitConfig = Field(
        default_factory=GitConfig,
        description="Git working directory",
    )
    flow: FlowConfig = Field(
        default_factory=FlowConfig,
        description="Branching model settings",
    )

    log_level: str = Field(
        default="warn",
        alias="log-level",
        description=(
            "Console log level: 'spew', 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("branchflow"))
        ),
        description="Root directory for log files",
    )

    commands: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Command templates organized by tool (git, ...)",
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Initialize the global logger once the config is known."""
        from branchflow.core.log import setup_logger

        setup_logger(
            log_root=self.log_root,
            run_name=self.git.workdir.resolve().name or "repo",
            level=self.logger.level,
            console=self.logger.console.model_copy(
                update={"level": self.log_level}
            ),
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self

    def close(self):
        """Close config sections and the global logger."""
        from branchflow.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class FinishState(BaseState):
    """Topic-branch finish runtime state."""

    topic: str | None = Field(
        default=None, description="Full name of the branch being finished"
    )
    target: str | None = Field(
        default=None, description="Integration branch merged into"
    )
    fetch: bool = False
    rebase: bool = False
    squash: bool = False
    interactive: bool = False
    keep: bool = False
    merge_mode: str | None = Field(
        default=None,
        description="How the merge was done: ff, no-ff, squash, none",
    )
    resumed: bool = Field(
        default=False,
        description="Whether this run picked up a paused merge",
    )
    actions: list[str] = Field(
        default_factory=list,
        description="Human readable log of what was done",
    )
    status: str = Field(
        default="pending",
        description="pending, running, paused, complete",
    )


class ReleaseState(BaseState):
    """Release/hotfix finish runtime state."""

    kind: str = Field(default="release", description="release or hotfix")
    branch: str | None = None
    version: str | None = None
    tag: str | None = None
    fetch: bool = False
    sign: bool = False
    signingkey: str | None = None
    message: str | None = None
    keep: bool = False
    push: bool = False
    actions: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(
        default_factory=list,
        description="Steps found already done and skipped",
    )
    status: str = Field(default="pending")


class Runtime(BaseModel):
    """All runtime state, one section per workflow."""

    finish: FinishState = Field(default_factory=FinishState)
    release: ReleaseState = Field(default_factory=ReleaseState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state; flows through every workflow.

    Being a pydantic BaseSettings it loads from YAML files, the
    environment and the command line, and validates on load.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="branchflow.yaml",
        env_file=".env",
        env_prefix="BRANCHFLOW_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_prog_name="branchflow",
        cli_implicit_flags=True,
        cli_exit_on_error=False,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init/CLI > YAML (with includes) > .env > env."""
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @property
    def flow(self) -> FlowConfig:
        return self.config.flow

    @property
    def workdir(self) -> Path:
        return self.config.git.workdir


__all__ = ["State", "Config", "FlowConfig", "BaseConfig", "BaseState"]
