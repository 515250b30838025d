"""Tests for the codehygiene command line entry point."""

import sys
import tempfile
from pathlib import Path

import pytest

from codehygiene.cli import main
from codehygiene.core.log import ConsoleSink, setup_logger


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Empty project as cwd; restores the test logger afterwards."""
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "codehygiene-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


def test_invalid_mode_is_a_configuration_error(project_dir, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["codehygiene", "--mode", "deploy"])

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 2


def test_invalid_yaml_is_a_configuration_error(project_dir, monkeypatch):
    (project_dir / "codehygiene.yaml").write_text("- not\n- a mapping\n")
    monkeypatch.setattr(sys, "argv", ["codehygiene", "--mode", "summary"])

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 2


def test_summary_mode_without_artifacts(project_dir, monkeypatch):
    """A summary with nothing to read still renders and exits 0."""
    output = project_dir / "outputs"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    monkeypatch.setattr(sys, "argv", ["codehygiene", "--mode", "summary"])

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 0
    assert "overall-status=skipped" in output.read_text().splitlines()
