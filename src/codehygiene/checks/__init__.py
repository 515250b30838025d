"""Check runners and optional parallel execution of several of them."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from codehygiene.checks.base import CheckRunner
from codehygiene.checks.format import FormatCheck
from codehygiene.checks.lint import LintCheck
from codehygiene.checks.stats import StatsCheck
from codehygiene.checks.test import TestCheck
from codehygiene.core.config import Config
from codehygiene.core.log import logger
from codehygiene.core.result import ALL_CHECKS, CheckResult, CheckTag

CHECK_RUNNERS: dict[CheckTag, type[CheckRunner]] = {
    "format": FormatCheck,
    "lint": LintCheck,
    "test": TestCheck,
    "stats": StatsCheck,
}


def run_check(check: CheckTag, config: Config) -> CheckResult:
    """Run one check with its own runner and artifact store."""
    return CHECK_RUNNERS[check](config).run()


def _run_guarded(check: CheckTag, config: Config) -> CheckResult | None:
    try:
        return run_check(check, config)
    except Exception as e:
        logger.error(f"{check} check did not complete: {e}", check=check)
        return None


def run_checks(
    config: Config,
    checks: tuple[CheckTag, ...] = ALL_CHECKS,
    parallel: bool | None = None,
) -> dict[CheckTag, CheckResult | None]:
    """Run several checks, sequentially or on a thread pool.

    Each check gets its own runner and writes its own artifact, so
    nothing is shared between threads. The format check rewrites the
    working tree, so it always runs alone after the others have read
    the committed files. A check whose artifact could not be written
    maps to None; the others are unaffected.
    """
    parallel = config.parallel if parallel is None else parallel
    readers = tuple(check for check in checks if check != "format")
    results: dict[CheckTag, CheckResult | None] = {}

    if parallel and len(readers) > 1:
        with ThreadPoolExecutor(max_workers=len(readers)) as pool:
            futures = {
                check: pool.submit(run_check, check, config)
                for check in readers
            }
            for check, future in futures.items():
                try:
                    results[check] = future.result()
                except Exception as e:
                    logger.error(f"{check} check did not complete: {e}",
                                 check=check)
                    results[check] = None
    else:
        for check in readers:
            results[check] = _run_guarded(check, config)

    if "format" in checks:
        results["format"] = _run_guarded("format", config)
    return {check: results[check] for check in checks}


__all__ = [
    "CHECK_RUNNERS",
    "CheckRunner",
    "FormatCheck",
    "LintCheck",
    "StatsCheck",
    "TestCheck",
    "run_check",
    "run_checks",
]
