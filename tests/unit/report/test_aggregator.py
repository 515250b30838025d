"""Tests for assembling a report from artifacts."""

import itertools
import json

import pytest

from codehygiene.core.artifacts import ArtifactStore
from codehygiene.core.result import (
    ALL_CHECKS,
    FormatDetails,
    LintDetails,
    TestDetails,
    TestSummary,
    error_result,
    failure_result,
    skipped_result,
    success_result,
)
from codehygiene.report.aggregator import aggregate


def test_report_from_available_artifacts(tmp_path):
    store = ArtifactStore(tmp_path)
    store.write(success_result("format", "ok", 10, FormatDetails()))
    store.write(failure_result("lint", "1 error(s)", 20,
                               LintDetails(error_count=1)))

    report = aggregate(tmp_path, commit_id="abc1234def", pr_number=12,
                       workflow_run_url="https://ci/run/1")

    assert set(report.checks) == {"format", "lint"}
    assert report.overall_status == "failure"
    assert report.commit_id == "abc1234def"
    assert report.pr_number == 12
    assert report.workflow_run_url == "https://ci/run/1"


def test_empty_directory_is_skipped(tmp_path):
    report = aggregate(tmp_path / "never-created")

    assert report.checks == {}
    assert report.overall_status == "skipped"
    assert report.commit_id == "unknown"


def test_broken_artifact_is_absent_not_fatal(tmp_path):
    store = ArtifactStore(tmp_path)
    store.write(success_result("format", "ok", 10, FormatDetails()))
    (tmp_path / "test-result.json").write_text("{truncated")

    report = aggregate(store)

    assert set(report.checks) == {"format"}
    assert report.overall_status == "success"


def test_error_outranks_failure(tmp_path):
    store = ArtifactStore(tmp_path)
    store.write(failure_result("format", "bad", 1,
                               FormatDetails(files=["a.ts"])))
    store.write(error_result("stats", RuntimeError("no baseline"), 1))

    assert aggregate(store).overall_status == "error"


def test_failure_missing_its_count_still_fails(tmp_path):
    """A recorded failure is kept even when its count field is absent."""
    store = ArtifactStore(tmp_path)
    store.write(success_result("format", "ok", 10, FormatDetails()))
    (tmp_path / "lint-result.json").write_text(json.dumps({
        "check": "lint",
        "status": "failure",
        "summary": "2 warning(s)",
        "details": {"warningCount": 2},
    }))

    report = aggregate(store)

    assert set(report.checks) == {"format", "lint"}
    assert report.checks["lint"].status == "failure"
    assert report.overall_status == "failure"


FAILURE_DETAILS = {
    "format": FormatDetails(files=["a.ts"]),
    "lint": LintDetails(error_count=1),
    "test": TestDetails(summary=TestSummary(total_tests=1, failed=1)),
    "stats": None,
}


def make_result(check, status):
    if status == "success":
        return success_result(check, "ok", 1)
    if status == "failure":
        return failure_result(check, "bad", 1, FAILURE_DETAILS[check])
    if status == "error":
        return error_result(check, RuntimeError("boom"), 1)
    return skipped_result(check, "not configured")


COMBINATIONS = list(itertools.product(
    (None, "success", "failure", "error", "skipped"), repeat=len(ALL_CHECKS)
))


@pytest.mark.parametrize("statuses", COMBINATIONS, ids=str)
def test_every_combination_of_artifacts(tmp_path, statuses):
    store = ArtifactStore(tmp_path)
    present = {}
    for check, status in zip(ALL_CHECKS, statuses):
        if status is not None:
            store.write(make_result(check, status))
            present[check] = status

    report = aggregate(store)

    assert {c: r.status for c, r in report.checks.items()} == present
    expected = next(
        (s for s in ("error", "failure", "success") if s in present.values()),
        "skipped",
    )
    assert report.overall_status == expected
