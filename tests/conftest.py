"""Pytest configuration and fixtures for codehygiene tests."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from codehygiene.core.log import ConsoleSink, setup_logger

# CI variables the GitHub config section falls back to
CI_VARIABLES = (
    "GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_API_URL",
    "GITHUB_SERVER_URL",
    "GITHUB_RUN_ID",
    "GITHUB_SHA",
    "GITHUB_OUTPUT",
    "PR_NUMBER",
)


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure console-only logging for the test session.

    Enables debug output during test runs without sending anything
    to logfire.dev.
    """
    test_log_root = Path(tempfile.gettempdir()) / "codehygiene-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(autouse=True)
def no_ci_environment(monkeypatch):
    """Hide the CI environment so tests see the same config locally
    and in CI."""
    for variable in (*CI_VARIABLES, "HYGIENE_MODE"):
        monkeypatch.delenv(variable, raising=False)


def git(repo: Path, *args: str) -> str:
    """Run git in repo and return stdout; fail the test on error."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def commit_files(repo: Path, files: dict[str, str], message: str) -> None:
    for name, content in files.items():
        path = repo / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)


@pytest.fixture
def run_git():
    """The git helper, for tests that shape a repository further."""
    return git


@pytest.fixture
def git_repo(tmp_path):
    """Repository with one commit on main and a feature branch
    checked out on top of it.

    main:    README.md, src/app.ts, dist/app.js (100 bytes)
    feature: edits src/app.ts, adds src/util.ts, grows dist/app.js
             to 150 bytes, adds dist/new.js
    """
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q", "-b", "main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")

    commit_files(repo, {
        "README.md": "# demo\n",
        "src/app.ts": "export const a = 1;\n",
        "dist/app.js": "x" * 100,
    }, "initial")

    git(repo, "checkout", "-q", "-b", "feature")
    commit_files(repo, {
        "src/app.ts": "export const a = 2;\nexport const b = 3;\n",
        "src/util.ts": "export const u = 0;\n",
        "dist/app.js": "x" * 150,
        "dist/new.js": "y" * 40,
    }, "feature work")
    return repo

