"""Application settings: one validated value built at process start."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import platformdirs
from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from codehygiene.core.base import BaseConfig
from codehygiene.core.log import ConsoleSink, FileSink, LogfireSink, Logger

Mode = Literal["detect", "format", "lint", "test", "stats", "summary", "all"]

# ============================================================
# CONFIG SECTIONS
# ============================================================

class ToolCommand(BaseConfig):
    """One external program invocation."""

    program: str = Field(description="Executable name or path")
    args: list[str] = Field(
        default_factory=list,
        description="Arguments passed verbatim (no shell parsing)",
    )

    def __str__(self) -> str:
        return " ".join([self.program, *self.args])


class ToolsConfig(BaseConfig):
    """External tools the check runners wrap."""

    format: ToolCommand = Field(
        default_factory=lambda: ToolCommand(
            program="npm", args=["run", "format"]
        ),
        description="Formatter; must rewrite files in place",
    )
    restore_formatted: bool = Field(
        default=True,
        description=(
            "Check out the files the formatter rewrote once they are "
            "recorded, so the tree matches the commit again"
        ),
    )
    lint: ToolCommand = Field(
        default_factory=lambda: ToolCommand(
            program="npm", args=["run", "lint", "--", "--format", "json"]
        ),
        description="Linter; must print ESLint-style JSON on stdout",
    )
    test: ToolCommand = Field(
        default_factory=lambda: ToolCommand(
            program="npx", args=["vitest", "run", "--coverage"]
        ),
        description="Unit test runner",
    )
    test_report: Path | None = Field(
        default=None,
        description=(
            "Optional JSON report written by the test runner "
            "(relative to workdir)"
        ),
    )
    coverage_summary: Path | None = Field(
        default=Path("coverage/coverage-summary.json"),
        description="Coverage summary JSON (relative to workdir)",
    )


class ArtifactConfig(BaseConfig):
    """Location of the per-check result documents."""

    dir: Path = Field(
        default=Path("artifacts/hygiene"),
        description="Artifact directory (relative to workdir)",
    )
    overwrite: bool = Field(
        default=True,
        description="Allow a rerun to replace an existing artifact",
    )


class GitConfig(BaseConfig):
    """Baselines and paths the stats check compares against."""

    base_ref: str = Field(
        default="origin/main",
        description="Baseline for change detection and stats",
    )
    head_ref: str = Field(default="HEAD", description="Revision under test")
    previous_ref: str = Field(
        default="HEAD~1",
        description="Previous commit baseline",
    )
    main_branch: str = Field(default="main")
    remote: str = Field(default="origin")
    fetch_base: bool = Field(
        default=True,
        description="Fetch the main branch before comparing",
    )
    bundle_folders: list[str] = Field(
        default_factory=list,
        description="Folder prefixes whose blob sizes are compared",
    )
    top_count: int = Field(
        default=5, ge=1,
        description="Length of the extension/directory rankings",
    )


class ReportConfig(BaseConfig):
    """Rendering budgets and the comment idempotency marker."""

    marker: str = Field(
        default="<!-- codehygiene-report -->",
        min_length=1,
        description="Hidden marker appended to every comment body",
    )
    max_format_files: int = Field(default=50, ge=1)
    max_lint_files: int = Field(default=10, ge=1)
    max_issues_per_file: int = Field(default=5, ge=1)
    max_failed_tests: int = Field(default=10, ge=1)
    max_error_chars: int = Field(default=500, ge=1)
    max_raw_output_chars: int = Field(default=10_000, ge=1)
    max_bundle_files: int = Field(default=20, ge=1)
    raw_output_bytes: int = Field(
        default=50_000, ge=1,
        description="Budget for raw tool output stored in artifacts",
    )
    fix_commands: dict[str, str] = Field(
        default_factory=lambda: {
            "format": "npm run format",
            "lint": "npm run lint",
        },
        description="Shell hint shown under each failing check",
    )


# Fallbacks read once from the CI environment
_CI_ENVIRONMENT = {
    "token": "GITHUB_TOKEN",
    "repository": "GITHUB_REPOSITORY",
    "api_url": "GITHUB_API_URL",
    "server_url": "GITHUB_SERVER_URL",
    "run_id": "GITHUB_RUN_ID",
    "sha": "GITHUB_SHA",
    "pr_number": "PR_NUMBER",
    "output_file": "GITHUB_OUTPUT",
}


class GitHubConfig(BaseConfig):
    """Pull request context and API access."""

    token: str | None = Field(default=None, repr=False)
    repository: str | None = Field(
        default=None,
        description="owner/name",
    )
    api_url: str = Field(default="https://api.github.com")
    server_url: str = Field(default="https://github.com")
    run_id: str | None = Field(default=None)
    sha: str | None = Field(default=None, description="Commit under test")
    pr_number: int | None = Field(default=None)
    output_file: Path | None = Field(
        default=None,
        description="Step output file for legacy key/value outputs",
    )
    timeout: int = Field(default=30, ge=1, description="API timeout (s)")

    @model_validator(mode="before")
    @classmethod
    def _from_ci_environment(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field, variable in _CI_ENVIRONMENT.items():
            if data.get(field) in (None, "") and os.environ.get(variable):
                data[field] = os.environ[variable]
        return data

    @field_validator("pr_number", mode="before")
    @classmethod
    def _zero_means_no_pr(cls, value):
        if value in ("", "0", 0):
            return None
        return value

    @property
    def workflow_run_url(self) -> str:
        if not self.repository or not self.run_id:
            return ""
        return (
            f"{self.server_url.rstrip('/')}/{self.repository}"
            f"/actions/runs/{self.run_id}"
        )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    workdir: Path = Field(
        default=Path("."),
        description="Root of the source tree under check",
    )
    artifacts: ArtifactConfig = Field(default_factory=ArtifactConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    logger: Logger = Field(
        default_factory=Logger,
        description="Log sinks and levels",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("codehygiene",
                                                     appauthor=False))
        ),
        description="Root directory for log files",
    )
    parallel: bool = Field(
        default=True,
        description="Run checks concurrently in 'all' mode",
    )
    fail_on_findings: bool = Field(
        default=False,
        description="Exit non-zero when a check reports failure",
    )

    @property
    def artifact_dir(self) -> Path:
        if self.artifacts.dir.is_absolute():
            return self.artifacts.dir
        return self.workdir / self.artifacts.dir

    def resolve(self, path: Path) -> Path:
        """Resolve a workdir-relative path."""
        return path if path.is_absolute() else self.workdir / path


# ============================================================
# SETTINGS ROOT
# ============================================================

class Settings(BaseSettings):
    """Complete settings for one process.

    Sources, highest priority first: constructor arguments, CLI
    (through CliApp), HYGIENE_* environment variables (nested with
    __, e.g. HYGIENE_CONFIG__GIT__BASE_REF), .env, then the YAML
    layers. The packaged defaults define every key, so YAML has to
    rank below the environment for HYGIENE_MODE to take effect.
    """

    mode: Mode = Field(
        default="stats",
        description="Which single step this process performs",
    )
    config: Config = Field(
        default_factory=Config,
        description="Application configuration",
    )
    include: list[str] | None = Field(
        default=None,
        description="Additional YAML files to deep-merge",
    )

    model_config = SettingsConfigDict(
        yaml_file="codehygiene.yaml",
        env_file=".env",
        env_prefix="HYGIENE_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        extra="ignore",
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
        from codehygiene.core.yaml_settings import (
            YamlWithIncludesSettingsSource,
        )

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _setup_logger(self) -> "Settings":
        """Initialize the global logger once settings are loaded.

        Config alone never touches logging, so tests can build it
        freely; the run name is the mode, which keeps per-mode log
        files apart when several jobs share a log root.
        """
        from codehygiene.core.log import setup_logger

        sinks = self.config.logger
        setup_logger(
            log_root=self.config.log_root,
            run_name=self.mode,
            console=sinks.console,
            file=sinks.file,
            logfire=sinks.logfire,
            level=sinks.level,
        )
        return self

    def close(self):
        """Close the global logger and its sinks."""
        from codehygiene.core.log import close_logger
        close_logger()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


__all__ = [
    "ArtifactConfig",
    "Config",
    "ConsoleSink",
    "FileSink",
    "GitConfig",
    "GitHubConfig",
    "LogfireSink",
    "Mode",
    "ReportConfig",
    "Settings",
    "ToolCommand",
    "ToolsConfig",
]
