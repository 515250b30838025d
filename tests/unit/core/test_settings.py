"""Tests for configuration models and settings source priority."""

import sys
import tempfile
from pathlib import Path

import pytest

from codehygiene.core.config import Config, GitHubConfig, Settings, ToolCommand
from codehygiene.core.log import ConsoleSink, setup_logger


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Empty project directory as cwd, with a clean command line."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["codehygiene"])
    yield tmp_path
    # Settings installs its own logger; put the test logger back
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "codehygiene-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


def test_github_context_falls_back_to_ci_environment(monkeypatch):
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/widgets")
    monkeypatch.setenv("GITHUB_RUN_ID", "1234")
    monkeypatch.setenv("GITHUB_SHA", "deadbeef")
    monkeypatch.setenv("PR_NUMBER", "42")

    github = GitHubConfig()

    assert github.repository == "octo/widgets"
    assert github.sha == "deadbeef"
    assert github.pr_number == 42
    assert github.workflow_run_url == (
        "https://github.com/octo/widgets/actions/runs/1234"
    )


def test_explicit_value_beats_ci_environment(monkeypatch):
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/widgets")

    github = GitHubConfig(repository="octo/other")

    assert github.repository == "octo/other"


@pytest.mark.parametrize("value", ["", "0", 0])
def test_pr_number_zero_means_no_pull_request(value):
    assert GitHubConfig(pr_number=value).pr_number is None


def test_workflow_url_needs_repository_and_run():
    assert GitHubConfig(repository="octo/widgets").workflow_run_url == ""


def test_artifact_dir_is_relative_to_workdir(tmp_path):
    config = Config(workdir=tmp_path, artifacts={"dir": "out/hygiene"})

    assert config.artifact_dir == tmp_path / "out" / "hygiene"


def test_absolute_artifact_dir_is_kept(tmp_path):
    config = Config(workdir=Path("/somewhere"), artifacts={"dir": tmp_path})

    assert config.artifact_dir == tmp_path


def test_tool_command_display():
    tool = ToolCommand(program="npm", args=["run", "lint"])

    assert str(tool) == "npm run lint"


def test_settings_defaults(project_dir):
    """The packaged defaults alone produce a complete configuration."""
    with Settings() as settings:
        assert settings.mode == "stats"
        assert settings.config.git.base_ref == "origin/main"
        assert settings.config.tools.test.program == "npx"
        assert settings.config.github.pr_number is None


def test_environment_overrides_yaml(project_dir, monkeypatch):
    (project_dir / "codehygiene.yaml").write_text("""
mode: lint
config:
  git:
    base_ref: origin/yaml
""")
    monkeypatch.setenv("HYGIENE_MODE", "test")
    monkeypatch.setenv("HYGIENE_CONFIG__GIT__BASE_REF", "origin/env")

    with Settings() as settings:
        assert settings.mode == "test"
        assert settings.config.git.base_ref == "origin/env"
        # Keys the environment does not name still come from YAML
        assert settings.config.git.head_ref == "HEAD"


def test_project_yaml_overrides_defaults(project_dir):
    (project_dir / "codehygiene.yaml").write_text("""
mode: summary
config:
  report:
    max_failed_tests: 3
""")

    with Settings() as settings:
        assert settings.mode == "summary"
        assert settings.config.report.max_failed_tests == 3
        assert settings.config.report.max_lint_files == 10


def test_init_arguments_win(project_dir, monkeypatch):
    monkeypatch.setenv("HYGIENE_MODE", "test")

    with Settings(mode="format") as settings:
        assert settings.mode == "format"
