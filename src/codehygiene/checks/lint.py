"""Lint check: ESLint-style JSON report to structured issues."""

from __future__ import annotations

from codehygiene.checks.base import CheckRunner
from codehygiene.core.log import logger
from codehygiene.core.result import LintResult
from codehygiene.parsers.lint import lint_details


class LintCheck(CheckRunner):
    check = "lint"
    icon = "🔍"

    def _execute(self):
        tool = self.config.tools.lint
        output = self.runner.execute(tool.program, tool.args, cwd=self.workdir)

        details = lint_details(
            output.stdout,
            output.exit_code,
            root=str(self.workdir.resolve()),
            raw_output_bytes=self.config.report.raw_output_bytes,
        )
        if details.degraded:
            logger.warn(
                "Could not read the lint report; "
                "counting from the exit code",
                exit_code=output.exit_code,
            )

        if details.error_count == 0 and output.ok and details.degraded:
            summary = "Lint passed (exit 0); report could not be parsed"
        elif details.error_count == 0 and output.ok:
            summary = "All lint checks passed"
            if details.warning_count:
                summary += f" ({details.warning_count} warning(s))"
        else:
            summary = (
                f"{details.error_count} error(s), "
                f"{details.warning_count} warning(s)"
            )
        return summary, details

    def _set_outputs(self, result: LintResult) -> None:
        passed = result.status == "success"
        self.outputs.set("lint-passed", passed)
        self.outputs.set(
            "lint-output",
            "All checks passed!" if passed
            else result.details.raw_output or result.summary,
        )
