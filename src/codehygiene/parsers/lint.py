"""Parser for ESLint-style JSON lint reports."""

from __future__ import annotations

import json
import os
import re

from codehygiene.core.result import FileIssue, LintDetails

# Package managers wrap the report in their own banner lines
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

TRUNCATION_NOTICE = "\n\n... (output truncated)"

# ESLint severities: 1 = warning, 2 = error
_ERROR_SEVERITY = 2


def truncate_output(text: str, budget: int) -> str:
    """Cut text to budget UTF-8 bytes, saying so when it does.

    A character split by the cut is dropped rather than mangled.
    """
    encoded = text.encode("utf-8")
    if len(encoded) <= budget:
        return text
    kept = encoded[:budget].decode("utf-8", errors="ignore")
    return kept + TRUNCATION_NOTICE


def _relative(path: str, root: str | None) -> str:
    if not root or not os.path.isabs(path):
        return path
    try:
        relative = os.path.relpath(path, root)
    except ValueError:
        return path
    return path if relative.startswith("..") else relative.replace(os.sep, "/")


def _int(value) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _optional_int(value) -> int | None:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def parse_lint_json(
    text: str, root: str | None = None
) -> tuple[int, int, list[FileIssue]] | None:
    """Extract counts and issues from a lint JSON report.

    Args:
        text: Tool stdout, possibly with non-JSON lines around the
            report
        root: Directory to make absolute file paths relative to

    Returns:
        (error_count, warning_count, issues), or None when no report
        could be decoded
    """
    match = _JSON_ARRAY.search(text or "")
    if not match:
        return None
    try:
        files = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(files, list):
        return None

    errors = warnings = 0
    issues = []
    for entry in files:
        if not isinstance(entry, dict):
            continue
        path = _relative(str(entry.get("filePath", "")), root)
        errors += _int(entry.get("errorCount"))
        warnings += _int(entry.get("warningCount"))

        for message in entry.get("messages") or []:
            if not isinstance(message, dict):
                continue
            issues.append(FileIssue(
                path=path,
                line=_optional_int(message.get("line")),
                column=_optional_int(message.get("column")),
                severity=(
                    "error" if message.get("severity") == _ERROR_SEVERITY
                    else "warning"
                ),
                message=str(message.get("message", "")),
                rule_id=(
                    str(message["ruleId"]) if message.get("ruleId") else None
                ),
            ))

    return errors, warnings, issues


def lint_details(
    stdout: str,
    exit_code: int,
    root: str | None = None,
    raw_output_bytes: int = 50_000,
) -> LintDetails:
    """Build lint details from one linter run.

    A non-zero exit always yields at least one error: when the report
    is missing, unreadable, or lists no errors, the error count falls
    back to 1 and the details are marked degraded, so a crashed linter
    is never reported as clean.
    """
    parsed = parse_lint_json(stdout, root)
    degraded = parsed is None
    errors, warnings, issues = parsed if parsed else (0, 0, [])

    if exit_code != 0 and errors == 0:
        errors = 1
        degraded = True

    raw = None
    if exit_code != 0 or errors:
        raw = truncate_output(stdout, raw_output_bytes)

    return LintDetails(
        error_count=errors,
        warning_count=warnings,
        issues=issues,
        raw_output=raw,
        degraded=degraded,
    )
