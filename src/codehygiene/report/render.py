"""Markdown rendering of a HygieneReport.

render_comment() is pure and total: the same report always renders
to the same text, a missing check renders as an explicit placeholder,
and long lists are cut to the budgets in ReportConfig while still
stating their full length. The hidden marker always ends the body.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC

from codehygiene.core.config import ReportConfig
from codehygiene.core.result import (
    BundleFolderComparison,
    CheckTag,
    CoverageSummary,
    FailedTest,
    FileIssue,
    FormatResult,
    HygieneReport,
    LintResult,
    StatsResult,
    TestResult,
)

STATUS_EMOJI = {
    "success": "✅",
    "failure": "❌",
    "skipped": "⏭️",
    "error": "💥",
}
MISSING_EMOJI = "❔"

STATUS_TITLES = {
    "success": "All Checks Passed",
    "failure": "Issues Found",
    "error": "Check Error",
    "skipped": "Checks Skipped",
}

CHECK_ICONS = {
    "format": "🎨",
    "lint": "🔍",
    "test": "🧪",
    "stats": "📊",
}

SECTION_TITLES = {
    "stats": "Code Statistics",
    "format": "Formatting",
    "lint": "Linting",
    "test": "Unit Tests",
}

# Fixed section order of the rendered body
SECTION_ORDER: tuple[CheckTag, ...] = ("stats", "format", "lint", "test")

BUNDLE_STATUS_EMOJI = {"added": "🆕", "removed": "🗑️", "modified": "📝"}

SHORT_SHA_LENGTH = 7

# Shown whenever a tool's counts came from its exit code, not its report
DEGRADED_NOTICE = (
    "⚠️ _Degraded: counts not parsed from the tool output; see the raw log._"
)


# ============================================================
# FORMATTING HELPERS
# ============================================================

def format_duration(ms: int) -> str:
    """1234 -> '1.2s', 754 -> '754ms', 125000 -> '2m 5s'."""
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    minutes, seconds = divmod(int(ms / 1000 + 0.5), 60)
    return f"{minutes}m {seconds}s"


_BYTE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB")


def format_bytes(size: int) -> str:
    """Decimal units with three significant digits: 1337 -> '1.34 kB'."""
    sign = "-" if size < 0 else ""
    value = float(abs(size))
    unit = 0
    while value >= 1000 and unit < len(_BYTE_UNITS) - 1:
        value /= 1000
        unit += 1
    if unit == 0:
        return f"{sign}{abs(size)} B"
    return f"{sign}{float(f'{value:.3g}'):g} {_BYTE_UNITS[unit]}"


def format_size_diff(size: int) -> str:
    if size == 0:
        return "no change"
    return f"+{format_bytes(size)}" if size > 0 else format_bytes(size)


def format_percentage(pct: float) -> str:
    if pct >= 80:
        light = "🟢"
    elif pct >= 60:
        light = "🟡"
    else:
        light = "🔴"
    return f"{light} {pct:.1f}%"


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def _cell(text: str) -> str:
    """Make text safe for a single table cell."""
    return " ".join(str(text).split()).replace("|", "\\|")


def _code_block(text: str) -> list[str]:
    """Fence text with more backticks than it contains in a row."""
    runs = re.findall(r"`+", text)
    fence = "`" * max(3, max((len(run) for run in runs), default=0) + 1)
    return [fence, text.rstrip("\n"), fence]


def _clip(text: str, budget: int, notice: str) -> str:
    if len(text) <= budget:
        return text
    return f"{text[:budget]}\n\n... ({notice})"


def _anchor(check: CheckTag) -> str:
    # GitHub drops the emoji and keeps the leading hyphen
    return "#-" + SECTION_TITLES[check].lower().replace(" ", "-")


def _more(shown: int, total: int, noun: str) -> str:
    return (
        f"_...and {total - shown} more {noun} "
        f"({total} total, list truncated)_"
    )


# ============================================================
# HEADER, CONTENTS, SUMMARY, FOOTER
# ============================================================

def _header(report: HygieneReport) -> list[str]:
    status = report.overall_status
    sha = report.commit_id[:SHORT_SHA_LENGTH]
    line = f"**Commit:** `{sha}`"
    if report.pr_number:
        line += f" | **PR:** #{report.pr_number}"
    return [
        f"# {STATUS_EMOJI[status]} Code Hygiene Report: "
        f"{STATUS_TITLES[status]}",
        "",
        line,
    ]


def _table_of_contents(report: HygieneReport) -> list[str]:
    lines = [
        "## 📑 Table of Contents",
        "",
        "| Section | Status |",
        "|---------|--------|",
    ]
    for check in SECTION_ORDER:
        result = report.checks.get(check)
        emoji = STATUS_EMOJI[result.status] if result else MISSING_EMOJI
        lines.append(
            f"| [{CHECK_ICONS[check]} {SECTION_TITLES[check]}]"
            f"({_anchor(check)}) | {emoji} |"
        )
    return lines


def _summary_table(report: HygieneReport) -> list[str]:
    lines = [
        "## 📋 Check Summary",
        "",
        "| Check | Status | Duration | Summary |",
        "|-------|--------|----------|---------|",
    ]
    for check in SECTION_ORDER:
        result = report.checks.get(check)
        name = f"{CHECK_ICONS[check]} {check.capitalize()}"
        if result is None:
            lines.append(
                f"| {name} | {MISSING_EMOJI} | - | Data not available |"
            )
        else:
            lines.append(
                f"| {name} | {STATUS_EMOJI[result.status]} | "
                f"{format_duration(result.duration_ms)} | "
                f"{_cell(result.summary)} |"
            )
    return lines


def _footer(report: HygieneReport) -> list[str]:
    generated = report.generated_at.astimezone(UTC).strftime(
        "%Y-%m-%dT%H:%M:%SZ"
    )
    if report.workflow_run_url:
        line = (
            f"🔗 [View Workflow Run]({report.workflow_run_url}) | "
            f"Generated at {generated}"
        )
    else:
        line = f"Generated at {generated}"
    return ["---", "", line]


# ============================================================
# SECTIONS
# ============================================================

def _fix_hint(check: CheckTag, options: ReportConfig) -> list[str]:
    command = options.fix_commands.get(check)
    if not command:
        return []
    return ["", "### 🔧 How to Fix", "", *_code_block(command)]


def _not_run(result, options: ReportConfig) -> list[str] | None:
    """Body for error and skipped results; None for the others."""
    if result.status == "skipped":
        return [f"⏭️ Skipped: {result.summary}"]
    if result.status == "error":
        lines = ["💥 **This check could not run.**"]
        if result.error:
            lines += [
                "",
                *_code_block(_clip(result.error, options.max_error_chars,
                                   "error truncated")),
            ]
        return lines
    return None


def _stats_section(result: StatsResult, options: ReportConfig) -> list[str]:
    if result.details is None:
        return ["_Statistics not available_"]
    stats = result.details

    lines = [
        "### Changes vs Main Branch",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| 📁 Files Changed | {stats.vs_main.files_changed} |",
        f"| ➕ Lines Added | +{stats.vs_main.lines_added} |",
        f"| ➖ Lines Deleted | -{stats.vs_main.lines_deleted} |",
        f"| 🔄 Churn | {stats.churn} |",
        f"| 📈 Net Change | {_signed(stats.net_change)} |",
        "",
    ]

    if stats.vs_previous is not None and not stats.is_first_commit:
        previous = stats.vs_previous
        lines += [
            "<details>",
            "<summary>🔄 Changes Since Previous Commit</summary>",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Files Changed | {previous.files_changed} |",
            f"| Lines Added | +{previous.lines_added} |",
            f"| Lines Deleted | -{previous.lines_deleted} |",
            "",
            "</details>",
            "",
        ]
    elif stats.is_first_commit:
        lines += ["_First commit: no previous commit to compare._", ""]

    if stats.top_extensions:
        lines += [
            "<details>",
            "<summary>🧩 Top File Extensions</summary>",
            "",
            "| Extension | Files |",
            "|-----------|-------|",
        ]
        for entry in stats.top_extensions:
            name = (
                entry.extension if entry.extension.startswith("(")
                else f".{entry.extension}"
            )
            lines.append(f"| `{_cell(name)}` | {entry.count} |")
        lines += ["", "</details>", ""]

    if stats.top_directories:
        lines += [
            "<details>",
            "<summary>📂 Top Directories</summary>",
            "",
            "| Directory | Files |",
            "|-----------|-------|",
        ]
        for entry in stats.top_directories:
            lines.append(f"| `{_cell(entry.directory)}` | {entry.count} |")
        lines += ["", "</details>", ""]

    if stats.bundle_sizes:
        lines += _bundle_section(stats.bundle_sizes, options)

    if stats.warnings:
        lines += ["⚠️ **Partial results:**", ""]
        lines += [f"- {_cell(warning)}" for warning in stats.warnings]
        lines.append("")

    return lines


def _bundle_section(
    bundles: list[BundleFolderComparison], options: ReportConfig
) -> list[str]:
    lines = ["### 📦 Bundle Size Analysis (vs Main)", ""]
    budget = options.max_bundle_files

    for bundle in bundles:
        diff = format_size_diff(bundle.total_diff_bytes)
        lines += [
            "<details>",
            f"<summary><strong><code>{bundle.folder}</code></strong> - "
            f"{diff} ({bundle.files_changed} file(s) changed)</summary>",
            "",
        ]

        if bundle.files:
            lines += [
                "| File | Main | Preview | Diff | Status |",
                "|------|------|---------|------|--------|",
            ]
            for entry in bundle.files[:budget]:
                lines.append(
                    f"| `{_cell(entry.path)}` | "
                    f"{format_bytes(entry.main_size)} | "
                    f"{format_bytes(entry.preview_size)} | "
                    f"{format_size_diff(entry.diff)} | "
                    f"{BUNDLE_STATUS_EMOJI[entry.status]} |"
                )
            if len(bundle.files) > budget:
                lines += ["", _more(budget, len(bundle.files), "files")]
        else:
            lines.append("_No changes in this folder_")

        lines += [
            "",
            f"**Total:** {format_bytes(bundle.main_total_bytes)} → "
            f"{format_bytes(bundle.preview_total_bytes)} ({diff})",
            "",
            "</details>",
            "",
        ]
    return lines


def _format_section(result: FormatResult, options: ReportConfig) -> list[str]:
    if result.status == "success":
        return ["✅ All files are properly formatted!"]

    files = result.details.files if result.details else []
    budget = options.max_format_files
    lines = [f"❌ **{len(files)}** file(s) need formatting:", ""]
    if files:
        lines += [
            "<details>",
            "<summary>View files requiring formatting</summary>",
            "",
        ]
        lines += [f"- `{_cell(path)}`" for path in files[:budget]]
        if len(files) > budget:
            lines.append(f"- {_more(budget, len(files), 'files')}")
        lines += ["", "</details>"]
    return lines + _fix_hint("format", options)


def _lint_issues(issues: list[FileIssue], options: ReportConfig) -> list[str]:
    by_file: dict[str, list[FileIssue]] = {}
    for issue in issues:
        by_file.setdefault(issue.path, []).append(issue)

    lines = [
        "<details>",
        f"<summary>View {len(issues)} issue(s) in "
        f"{len(by_file)} file(s)</summary>",
        "",
    ]
    per_file = options.max_issues_per_file
    for path, file_issues in list(by_file.items())[:options.max_lint_files]:
        lines += [f"#### `{path}`", ""]
        for issue in file_issues[:per_file]:
            emoji = "🔴" if issue.severity == "error" else "🟡"
            location = ""
            if issue.line:
                location = f"L{issue.line}"
                if issue.column:
                    location += f":{issue.column}"
                location += ": "
            rule = f" (`{issue.rule_id}`)" if issue.rule_id else ""
            lines.append(f"- {emoji} {location}{_cell(issue.message)}{rule}")
        if len(file_issues) > per_file:
            lines.append(f"- {_more(per_file, len(file_issues), 'issues')}")
        lines.append("")

    if len(by_file) > options.max_lint_files:
        lines += [_more(options.max_lint_files, len(by_file), "files"), ""]
    lines.append("</details>")
    return lines


def _lint_section(result: LintResult, options: ReportConfig) -> list[str]:
    details = result.details
    if result.status == "success":
        lines = ["✅ All lint checks passed!"]
        if details and details.warning_count:
            lines[0] += f" ({details.warning_count} warning(s))"
        if details and details.degraded:
            lines += ["", DEGRADED_NOTICE]
        return lines

    if details is None:
        return ["_Lint details not available_"]

    lines = [
        f"❌ Lint found **{details.error_count}** error(s) and "
        f"**{details.warning_count}** warning(s)",
        "",
    ]
    if details.degraded:
        lines += [DEGRADED_NOTICE, ""]
    if details.issues:
        lines += _lint_issues(details.issues, options)
    elif details.raw_output:
        lines += [
            "<details>",
            "<summary>View raw output</summary>",
            "",
            *_code_block(_clip(details.raw_output,
                               options.max_raw_output_chars,
                               "output truncated")),
            "",
            "</details>",
        ]
    return lines + _fix_hint("lint", options)


def _failed_tests(tests: list[FailedTest], options: ReportConfig) -> list[str]:
    budget = options.max_failed_tests
    lines = [
        "<details>",
        f"<summary>View {len(tests)} failed test(s)</summary>",
        "",
    ]
    for test in tests[:budget]:
        lines += [f"#### ❌ {_cell(test.name)}", f"**File:** `{test.file}`"]
        if test.suite:
            lines.append(f"**Suite:** {_cell(test.suite)}")
        if test.error:
            lines += [
                "",
                *_code_block(_clip(test.error, options.max_error_chars,
                                   "error truncated")),
            ]
        lines.append("")
    if len(tests) > budget:
        lines += [_more(budget, len(tests), "failed tests"), ""]
    lines.append("</details>")
    return lines


def _coverage_section(coverage: CoverageSummary) -> list[str]:
    lines = [
        "### 📊 Coverage",
        "",
        "| Metric | Covered | Total | Percentage |",
        "|--------|---------|-------|------------|",
    ]
    for name in ("lines", "statements", "functions", "branches"):
        metric = getattr(coverage, name)
        lines.append(
            f"| {name.capitalize()} | {metric.covered} | {metric.total} | "
            f"{format_percentage(metric.percentage)} |"
        )
    return lines


def _test_section(result: TestResult, options: ReportConfig) -> list[str]:
    details = result.details
    if details is None:
        return ["_Test details not available_"]
    counts = details.summary

    if result.status == "success":
        lines = [
            f"✅ All **{counts.total_tests}** tests passed in "
            f"{format_duration(counts.duration)}",
        ]
    else:
        lines = [
            f"❌ **{counts.failed}** of **{counts.total_tests}** tests failed",
            "",
            "| Metric | Count |",
            "|--------|-------|",
            f"| ✅ Passed | {counts.passed} |",
            f"| ❌ Failed | {counts.failed} |",
            f"| ⏭️ Skipped | {counts.skipped} |",
            f"| 📝 Todo | {counts.todo} |",
        ]
        if details.failed_tests:
            lines += ["", *_failed_tests(details.failed_tests, options)]

    if details.degraded:
        lines += ["", DEGRADED_NOTICE]

    if details.coverage is not None:
        lines += ["", *_coverage_section(details.coverage)]
    else:
        lines += ["", "_Coverage data not available_"]

    if result.status == "failure":
        lines += _fix_hint("test", options)
    return lines


_SECTION_BUILDERS: dict[CheckTag, Callable] = {
    "stats": _stats_section,
    "format": _format_section,
    "lint": _lint_section,
    "test": _test_section,
}


def _section(report: HygieneReport, check: CheckTag,
             options: ReportConfig) -> list[str]:
    lines = [f"## {CHECK_ICONS[check]} {SECTION_TITLES[check]}", ""]
    result = report.checks.get(check)
    if result is None:
        return lines + [
            f"_Data not available: no {check} result was produced "
            f"for this run._"
        ]
    body = _not_run(result, options)
    if body is None:
        body = _SECTION_BUILDERS[check](result, options)
    return lines + body


# ============================================================
# ENTRY POINT
# ============================================================

def render_comment(
    report: HygieneReport, options: ReportConfig | None = None
) -> str:
    """Render the full comment body, ending with the hidden marker."""
    options = options or ReportConfig()

    blocks = [
        _header(report),
        _table_of_contents(report),
        _summary_table(report),
        *(_section(report, check, options) for check in SECTION_ORDER),
        _footer(report),
    ]
    body = "\n\n".join("\n".join(block).strip("\n") for block in blocks)
    return f"{body}\n\n{options.marker}"
