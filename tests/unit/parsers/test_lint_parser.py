"""Tests for lint report parsing and the exit-code fallback."""

import json

from codehygiene.parsers.lint import (
    TRUNCATION_NOTICE,
    lint_details,
    parse_lint_json,
    truncate_output,
)

NPM_BANNER = "\n> app@1.0.0 lint\n> eslint . --format json\n\n"


def eslint_report(root="/repo"):
    return json.dumps([
        {
            "filePath": f"{root}/src/a.ts",
            "errorCount": 1,
            "warningCount": 1,
            "messages": [
                {"ruleId": "no-unused-vars", "severity": 2,
                 "message": "'x' is assigned a value but never used",
                 "line": 3, "column": 7},
                {"ruleId": None, "severity": 1,
                 "message": "Unexpected console statement", "line": 9},
            ],
        },
        {"filePath": f"{root}/src/b.ts", "errorCount": 0,
         "warningCount": 0, "messages": []},
    ])


def test_parses_report_behind_npm_banner():
    errors, warnings, issues = parse_lint_json(
        NPM_BANNER + eslint_report(), root="/repo"
    )

    assert (errors, warnings) == (1, 1)
    assert len(issues) == 2
    first, second = issues
    assert first.path == "src/a.ts"
    assert (first.line, first.column) == (3, 7)
    assert first.severity == "error"
    assert first.rule_id == "no-unused-vars"
    assert second.severity == "warning"
    assert second.rule_id is None
    assert second.column is None


def test_paths_outside_root_stay_absolute():
    _, _, issues = parse_lint_json(eslint_report("/elsewhere"), root="/repo")

    assert issues[0].path == "/elsewhere/src/a.ts"


def test_unparsable_report_returns_none():
    assert parse_lint_json("Oops! Something went wrong!") is None
    assert parse_lint_json("[not json]") is None
    assert parse_lint_json("") is None


def test_crashed_linter_counts_one_error():
    """Exit 1 with nothing parsable is never reported as clean."""
    details = lint_details("Oops! Something went wrong!", exit_code=1)

    assert details.error_count == 1
    assert details.degraded
    assert details.raw_output == "Oops! Something went wrong!"


def test_nonzero_exit_with_only_warnings_still_blocks():
    report = json.dumps([{"filePath": "a.ts", "errorCount": 0,
                          "warningCount": 2, "messages": []}])

    details = lint_details(report, exit_code=1)

    assert details.error_count == 1
    assert details.warning_count == 2
    assert details.degraded


def test_clean_run_keeps_no_raw_output():
    details = lint_details("[]", exit_code=0)

    assert details.error_count == 0
    assert details.raw_output is None
    assert not details.degraded


def test_errors_reported_with_zero_exit_still_count():
    details = lint_details(eslint_report(), exit_code=0, root="/repo")

    assert details.error_count == 1
    assert not details.degraded
    assert details.raw_output is not None


def test_raw_output_is_truncated():
    details = lint_details("x" * 100, exit_code=2, raw_output_bytes=10)

    assert details.raw_output == "x" * 10 + TRUNCATION_NOTICE


def test_truncate_output_leaves_short_text():
    assert truncate_output("short", 10) == "short"


def test_truncate_output_counts_bytes():
    # "é" is two bytes; a cut through it drops the partial character
    assert truncate_output("é" * 10, 5) == "éé" + TRUNCATION_NOTICE
    assert truncate_output("é" * 5, 10) == "é" * 5
