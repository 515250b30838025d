"""Check command: run one or more check runners."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from codehygiene.core.log import logger
from codehygiene.core.result import ALL_CHECKS, CheckResult, CheckTag

if TYPE_CHECKING:
    from codehygiene.core.config import Settings

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2


def exit_code(
    results: Iterable[CheckResult | None], fail_on_findings: bool = False
) -> int:
    """Process exit code for a set of check outcomes.

    None stands for a check that produced no artifact at all.
    """
    results = list(results)
    if any(r is None or r.status == "error" for r in results):
        return EXIT_ERROR
    if fail_on_findings and any(r.status == "failure" for r in results):
        return EXIT_ERROR
    return EXIT_OK


class CheckCommand(BaseModel):
    """Run check runners and write one artifact per check."""

    checks: tuple[CheckTag, ...] = Field(
        default=ALL_CHECKS,
        description="Checks to run, in order",
    )
    parallel: bool | None = Field(
        default=None,
        description="Run on a thread pool (default: config.parallel)",
    )

    def run(self, settings: Settings) -> int:
        """Run the checks.

        Returns:
            Exit code: 1 if any check errored or wrote no artifact
            (or failed, with fail_on_findings), else 0
        """
        from codehygiene.checks import run_checks

        config = settings.config
        results = run_checks(config, self.checks, parallel=self.parallel)

        for check, result in results.items():
            status = result.status if result else "no artifact"
            logger.info(f"{check}: {status}")

        return exit_code(results.values(), config.fail_on_findings)
