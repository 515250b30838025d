"""Test check: unit test run, optional JSON report, coverage summary."""

from __future__ import annotations

import json
import time
from pathlib import Path

from codehygiene.checks.base import CheckRunner
from codehygiene.core.log import logger
from codehygiene.core.result import TestResult
from codehygiene.parsers.tests import summarize_test_run


class UnreadableTestRun(RuntimeError):
    """The test tool exited 0 but reported no counts we could read."""


def _read_json(path: Path | None, what: str):
    """Load a JSON file, or None when it is absent or unreadable."""
    if path is None or not path.is_file():
        logger.info(f"{what} not available", path=str(path) if path else None)
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warn(f"Could not parse {what}: {e}", path=str(path))
        return None


class TestCheck(CheckRunner):
    __test__ = False

    check = "test"
    icon = "🧪"

    def _execute(self):
        tools = self.config.tools
        report_path = (
            self.config.resolve(tools.test_report)
            if tools.test_report else None
        )
        # A report left over from an earlier run must not be read back
        if report_path is not None:
            report_path.unlink(missing_ok=True)
            report_path.parent.mkdir(parents=True, exist_ok=True)

        started = time.monotonic()
        output = self.runner.execute(
            tools.test.program, tools.test.args, cwd=self.workdir
        )
        duration = round((time.monotonic() - started) * 1000)

        coverage_path = (
            self.config.resolve(tools.coverage_summary)
            if tools.coverage_summary else None
        )
        details = summarize_test_run(
            output.exit_code,
            output.stdout + "\n" + output.stderr,
            report=_read_json(report_path, "Test report"),
            coverage=_read_json(coverage_path, "Coverage summary"),
            duration_ms=duration,
        )
        if details.degraded:
            logger.warn(
                "Could not read test counts from the runner output",
                exit_code=output.exit_code,
            )

        counts = details.summary
        if details.degraded and not counts.failed:
            raise UnreadableTestRun(
                f"Test counts unavailable (exit {output.exit_code}); "
                f"see raw log"
            )
        if counts.failed:
            summary = f"{counts.failed} of {counts.total_tests} tests failed"
        else:
            summary = f"All {counts.total_tests} tests passed"
        return summary, details

    def _set_outputs(self, result: TestResult) -> None:
        self.outputs.set("tests-passed", result.status == "success")
