"""Output parsers: pure functions from tool text to typed fragments.

None of them raise on malformed input. Each returns an empty or
degraded value instead, and the check runner decides what that
means for the check's status.
"""

from codehygiene.parsers.bundle import compare_folder_sizes, parse_ls_tree
from codehygiene.parsers.diffstat import (
    parse_name_list,
    parse_numstat,
    top_directories,
    top_extensions,
)
from codehygiene.parsers.lint import lint_details, parse_lint_json
from codehygiene.parsers.tests import (
    parse_console_output,
    parse_coverage_summary,
    parse_json_report,
    summarize_test_run,
)

__all__ = [
    "compare_folder_sizes",
    "lint_details",
    "parse_console_output",
    "parse_coverage_summary",
    "parse_json_report",
    "parse_lint_json",
    "parse_ls_tree",
    "parse_name_list",
    "parse_numstat",
    "summarize_test_run",
    "top_directories",
    "top_extensions",
]
