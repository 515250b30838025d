"""Parsers for unit test runner output and coverage summaries.

Counts come from a structured JSON report when the runner wrote one
(Vitest/Jest `--reporter=json`), otherwise from the summary lines the
runner prints for humans (Vitest and pytest formats). Console output
rarely names the file of a failed test or carries its stack trace;
those gaps are filled with UNKNOWN_FILE and RAW_LOG_PLACEHOLDER
rather than guessed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from codehygiene.core.result import (
    RAW_LOG_PLACEHOLDER,
    UNKNOWN_FILE,
    CoverageMetric,
    CoverageSummary,
    FailedTest,
    TestDetails,
    TestSummary,
)

_ANSI = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")

# Vitest:  "      Tests  2 failed | 10 passed | 1 skipped (13)"
_VITEST_TESTS = re.compile(r"^\s*Tests\s+(?P<parts>.+?)\s*\((?P<total>\d+)\)\s*$")
_VITEST_FILES = re.compile(r"^\s*Test Files\s+.+?\((?P<total>\d+)\)\s*$")
_VITEST_COUNT = re.compile(r"(\d+)\s+(failed|passed|skipped|todo)")
_VITEST_FAIL = re.compile(r"^\s*FAIL\s+(?P<target>\S.*?)\s*$")
_VITEST_CROSS = re.compile(r"^\s*[×✗]\s+(?P<title>.+?)(?:\s+\d+\s*ms)?\s*$")

# pytest:  "==== 2 failed, 10 passed, 1 skipped in 0.52s ===="
_PYTEST_SUMMARY = re.compile(r"^=+ (?P<parts>.*\d+ \w+.*) in [\d.]+s.* =+$")
_PYTEST_COUNT = re.compile(
    r"(\d+) (passed|failed|errors?|skipped|xfailed|xpassed)"
)
_PYTEST_FAILED = re.compile(
    r"^(?P<kind>FAILED|ERROR) (?P<nodeid>\S+)(?: - (?P<message>.*))?$"
)

SUITE_SEPARATOR = " > "


def strip_ansi(text: str) -> str:
    return _ANSI.sub("", text or "")


def _int(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _dedupe(tests: Iterable[FailedTest]) -> list[FailedTest]:
    seen = set()
    unique = []
    for test in tests:
        key = (test.file, test.suite, test.name)
        if key not in seen:
            seen.add(key)
            unique.append(test)
    return unique


# ============================================================
# STRUCTURED REPORT
# ============================================================

def parse_json_report(
    data, duration_ms: int = 0
) -> tuple[TestSummary, list[FailedTest]] | None:
    """Read a Vitest/Jest JSON report.

    Returns None unless data looks like such a report.
    """
    if not isinstance(data, dict) or "numTotalTests" not in data:
        return None

    files = data.get("testResults")
    files = files if isinstance(files, list) else []

    summary = TestSummary(
        total_tests=_int(data.get("numTotalTests")),
        passed=_int(data.get("numPassedTests")),
        failed=_int(data.get("numFailedTests")),
        skipped=_int(data.get("numPendingTests")),
        todo=_int(data.get("numTodoTests")),
        duration=duration_ms,
        total_files=len(files),
        total_suites=_int(data.get("numTotalTestSuites")),
    )

    failed = []
    for file_result in files:
        if not isinstance(file_result, dict):
            continue
        file = str(file_result.get("name") or UNKNOWN_FILE)
        assertions = file_result.get("assertionResults") or []

        for assertion in assertions:
            if not isinstance(assertion, dict):
                continue
            if assertion.get("status") != "failed":
                continue
            ancestors = assertion.get("ancestorTitles") or []
            messages = assertion.get("failureMessages") or []
            duration = assertion.get("duration")
            failed.append(FailedTest(
                file=file,
                suite=SUITE_SEPARATOR.join(str(a) for a in ancestors),
                name=str(assertion.get("title") or assertion.get("fullName")
                         or "(unnamed test)"),
                error="\n".join(str(m) for m in messages) or None,
                status="failed",
                duration_ms=(
                    round(duration)
                    if isinstance(duration, (int, float))
                    and not isinstance(duration, bool)
                    else None
                ),
            ))

        # A file that failed to load has no assertions, only a message
        if file_result.get("status") == "failed" and not assertions:
            failed.append(FailedTest(
                file=file,
                name="(test file failed to run)",
                error=str(file_result.get("message") or RAW_LOG_PLACEHOLDER),
                status="error",
            ))

    return summary, _dedupe(failed)


# ============================================================
# CONSOLE OUTPUT
# ============================================================

def _vitest_target(target: str) -> FailedTest:
    """Split `file > suite > name` from a Vitest FAIL line."""
    # File-level failures look like "src/a.test.ts [ src/a.test.ts ]"
    target = re.sub(r"\s*\[.*\]\s*$", "", target)
    parts = [part.strip() for part in target.split(">")]
    if len(parts) == 1:
        return FailedTest(
            file=parts[0], name="(test file failed to run)",
            error=RAW_LOG_PLACEHOLDER, status="error",
        )
    return FailedTest(
        file=parts[0],
        suite=SUITE_SEPARATOR.join(parts[1:-1]),
        name=parts[-1],
        error=RAW_LOG_PLACEHOLDER,
    )


def _pytest_nodeid(kind: str, nodeid: str, message: str | None) -> FailedTest:
    path, _, rest = nodeid.partition("::")
    names = rest.split("::") if rest else []
    return FailedTest(
        file=path or UNKNOWN_FILE,
        suite=SUITE_SEPARATOR.join(names[:-1]),
        name=names[-1] if names else path,
        error=message or RAW_LOG_PLACEHOLDER,
        status="error" if kind == "ERROR" else "failed",
    )


def parse_console_output(
    text: str, duration_ms: int = 0
) -> tuple[TestSummary, list[FailedTest]] | None:
    """Recover counts and failed test names from console output.

    Returns None when no summary line was found.
    """
    lines = strip_ansi(text).splitlines()
    counts: dict[str, int] = {}
    total = None
    total_files = 0
    failed: list[FailedTest] = []
    crossed: list[FailedTest] = []

    for line in lines:
        if match := _VITEST_TESTS.match(line):
            counts = {
                kind: int(n)
                for n, kind in _VITEST_COUNT.findall(match["parts"])
            }
            total = int(match["total"])
        elif match := _VITEST_FILES.match(line):
            total_files = int(match["total"])
        elif match := _PYTEST_SUMMARY.match(line):
            found = {}
            for n, kind in _PYTEST_COUNT.findall(match["parts"]):
                kind = "error" if kind.startswith("error") else kind
                found[kind] = found.get(kind, 0) + int(n)
            counts = {
                "passed": found.get("passed", 0) + found.get("xpassed", 0),
                "failed": found.get("failed", 0) + found.get("error", 0),
                "skipped": found.get("skipped", 0) + found.get("xfailed", 0),
            }
            total = sum(counts.values())
        elif match := _VITEST_FAIL.match(line):
            failed.append(_vitest_target(match["target"]))
        elif match := _PYTEST_FAILED.match(line):
            failed.append(_pytest_nodeid(
                match["kind"], match["nodeid"], match["message"]
            ))
        elif match := _VITEST_CROSS.match(line):
            parts = [part.strip() for part in match["title"].split(">")]
            crossed.append(FailedTest(
                file=UNKNOWN_FILE,
                suite=SUITE_SEPARATOR.join(parts[:-1]),
                name=parts[-1],
                error=RAW_LOG_PLACEHOLDER,
            ))

    if total is None:
        return None

    summary = TestSummary(
        total_tests=total,
        passed=counts.get("passed", 0),
        failed=counts.get("failed", 0),
        skipped=counts.get("skipped", 0),
        todo=counts.get("todo", 0),
        duration=duration_ms,
        total_files=total_files,
    )
    # Named FAIL lines carry the file; bare crosses are the fallback
    return summary, _dedupe(failed or crossed)


# ============================================================
# COVERAGE
# ============================================================

def _metric(total, covered, percentage=None) -> CoverageMetric:
    total, covered = _int(total), _int(covered)
    if isinstance(percentage, (int, float)) and not isinstance(percentage, bool):
        pct = float(percentage)
    else:
        pct = covered * 100.0 / total if total else 100.0
    return CoverageMetric(total=total, covered=covered, percentage=round(pct, 2))


def parse_coverage_summary(data) -> CoverageSummary | None:
    """Read an Istanbul or coverage.py JSON summary.

    Istanbul: {"total": {"lines": {"total", "covered", "pct"}, ...}}
    coverage.py: {"totals": {"num_statements", "covered_lines", ...}}
    """
    if not isinstance(data, dict):
        return None

    total = data.get("total")
    if isinstance(total, dict):
        metrics = {}
        for category in ("lines", "statements", "functions", "branches"):
            entry = total.get(category)
            entry = entry if isinstance(entry, dict) else {}
            metrics[category] = _metric(
                entry.get("total"), entry.get("covered"), entry.get("pct")
            )
        return CoverageSummary(**metrics)

    totals = data.get("totals")
    if isinstance(totals, dict):
        statements = _metric(
            totals.get("num_statements"),
            totals.get("covered_lines"),
            totals.get("percent_covered"),
        )
        return CoverageSummary(
            lines=statements,
            statements=statements,
            branches=_metric(
                totals.get("num_branches"), totals.get("covered_branches")
            ),
        )

    return None


# ============================================================
# DETAILS
# ============================================================

def summarize_test_run(
    exit_code: int,
    console: str,
    report=None,
    coverage=None,
    duration_ms: int = 0,
) -> TestDetails:
    """Combine every available source into test details.

    A non-zero exit with no recognizable failure still produces one
    failed entry (file UNKNOWN_FILE) so the run is never counted as
    passing; the details are then marked degraded.
    """
    parsed = parse_json_report(report, duration_ms)
    if parsed is None:
        parsed = parse_console_output(console, duration_ms)
    degraded = parsed is None
    summary, failed = parsed or (TestSummary(duration=duration_ms), [])

    if exit_code != 0 and summary.failed == 0:
        degraded = True
        if not failed:
            failed = [FailedTest(
                name=f"Test run exited with code {exit_code}",
                error=RAW_LOG_PLACEHOLDER,
                status="error",
            )]
        counted = summary.passed + summary.skipped + summary.todo
        summary = summary.model_copy(update={
            "failed": max(len(failed), 1),
            "total_tests": max(summary.total_tests, counted + len(failed)),
        })

    return TestDetails(
        summary=summary,
        failed_tests=failed,
        coverage=parse_coverage_summary(coverage),
        degraded=degraded,
    )
