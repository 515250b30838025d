"""Result types shared by check runners, the aggregator and the renderer.

A CheckResult is a tagged union keyed by `check`: each variant carries
only its own details payload, so a lint result can never expose test
fields. All models serialize with camelCase keys and ignore unknown
keys when read back, so artifacts written by newer runners still load.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    computed_field,
    model_validator,
)
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1

CheckTag = Literal["format", "lint", "test", "stats"]
CheckStatus = Literal["success", "failure", "error", "skipped"]

# Artifact/runner order; the renderer uses its own section order
ALL_CHECKS: tuple[CheckTag, ...] = ("format", "lint", "test", "stats")

# Failed test whose file could not be recovered from console output
UNKNOWN_FILE = "unknown"

# Stands in for a stack trace that console output did not contain
RAW_LOG_PLACEHOLDER = "Error details not captured; see the raw test log."

# Validation context key: keep a recorded status even when the details
# disagree with it. Used when reading artifacts back.
TRUST_STATUS = "trust_status"


def utcnow() -> datetime:
    return datetime.now(UTC)


class ArtifactModel(BaseModel):
    """Base for every serialized model: camelCase, frozen, lenient."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# ============================================================
# FORMAT
# ============================================================

class FormatDetails(ArtifactModel):
    files: list[str] = Field(
        default_factory=list,
        description="Paths the formatter rewrote",
    )

    @property
    def blocking_count(self) -> int:
        return len(self.files)


# ============================================================
# LINT
# ============================================================

class FileIssue(ArtifactModel):
    path: str
    line: int | None = None
    column: int | None = None
    severity: Literal["error", "warning"]
    message: str
    rule_id: str | None = None


class LintDetails(ArtifactModel):
    error_count: int = 0
    warning_count: int = 0
    issues: list[FileIssue] = Field(default_factory=list)
    raw_output: str | None = None
    degraded: bool = Field(
        default=False,
        description="Counts came from the exit-code fallback",
    )

    @property
    def blocking_count(self) -> int:
        return self.error_count


# ============================================================
# TEST
# ============================================================

class TestSummary(ArtifactModel):
    __test__ = False

    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    todo: int = 0
    duration: int = Field(default=0, description="Milliseconds")
    total_files: int = 0
    total_suites: int = 0


class FailedTest(ArtifactModel):
    file: str = UNKNOWN_FILE
    suite: str = ""
    name: str
    error: str | None = None
    status: Literal["failed", "error"] = "failed"
    duration_ms: int | None = None


class CoverageMetric(ArtifactModel):
    total: int = 0
    covered: int = 0
    percentage: float = 0.0


class CoverageSummary(ArtifactModel):
    lines: CoverageMetric = Field(default_factory=CoverageMetric)
    statements: CoverageMetric = Field(default_factory=CoverageMetric)
    functions: CoverageMetric = Field(default_factory=CoverageMetric)
    branches: CoverageMetric = Field(default_factory=CoverageMetric)


class TestDetails(ArtifactModel):
    __test__ = False

    summary: TestSummary = Field(default_factory=TestSummary)
    failed_tests: list[FailedTest] = Field(default_factory=list)
    coverage: CoverageSummary | None = None
    degraded: bool = Field(
        default=False,
        description="Counts could not be read from the tool output",
    )

    @property
    def blocking_count(self) -> int:
        return self.summary.failed


# ============================================================
# STATS
# ============================================================

class DiffStats(ArtifactModel):
    files_changed: int = 0
    lines_added: int = 0
    lines_deleted: int = 0


class ExtensionStats(ArtifactModel):
    extension: str
    count: int


class DirectoryStats(ArtifactModel):
    directory: str
    count: int


class FileSizeComparison(ArtifactModel):
    path: str = Field(description="Path relative to the folder")
    main_size: int
    preview_size: int
    diff: int
    status: Literal["added", "removed", "modified", "unchanged"]


class BundleFolderComparison(ArtifactModel):
    folder: str
    main_total_bytes: int = 0
    preview_total_bytes: int = 0
    total_diff_bytes: int = 0
    files_changed: int = 0
    files: list[FileSizeComparison] = Field(default_factory=list)


class StatsDetails(ArtifactModel):
    vs_main: DiffStats = Field(default_factory=DiffStats)
    vs_previous: DiffStats | None = None
    is_first_commit: bool = False
    churn: int = 0
    net_change: int = 0
    top_extensions: list[ExtensionStats] = Field(default_factory=list)
    top_directories: list[DirectoryStats] = Field(default_factory=list)
    bundle_sizes: list[BundleFolderComparison] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Per-item failures that did not fail the check",
    )

    @property
    def blocking_count(self) -> int:
        return 0


# ============================================================
# CHECK RESULT (tagged union)
# ============================================================

class _CheckResultBase(ArtifactModel):
    schema_version: int = SCHEMA_VERSION
    status: CheckStatus
    summary: str
    duration_ms: int = 0
    timestamp: datetime = Field(default_factory=utcnow)
    error: str | None = None
    stack: str | None = None

    def status_mismatch(self) -> str | None:
        """Describe how status and details disagree, or None."""
        details = getattr(self, "details", None)
        if details is None:
            return None
        blocking = details.blocking_count
        if self.status == "success" and blocking:
            return (
                f"{self.check} result is 'success' with "
                f"{blocking} blocking finding(s)"
            )
        if self.status == "failure" and not blocking:
            return (
                f"{self.check} result is 'failure' without "
                f"blocking findings"
            )
        return None

    @model_validator(mode="after")
    def _status_matches_findings(self, info: ValidationInfo):
        """success means zero blocking findings; failure means some."""
        if info.context and info.context.get(TRUST_STATUS):
            return self
        mismatch = self.status_mismatch()
        if mismatch:
            raise ValueError(mismatch)
        return self


class FormatResult(_CheckResultBase):
    check: Literal["format"] = "format"
    details: FormatDetails | None = None


class LintResult(_CheckResultBase):
    check: Literal["lint"] = "lint"
    details: LintDetails | None = None


class TestResult(_CheckResultBase):
    __test__ = False

    check: Literal["test"] = "test"
    details: TestDetails | None = None


class StatsResult(_CheckResultBase):
    check: Literal["stats"] = "stats"
    details: StatsDetails | None = None


CheckResult = Annotated[
    Union[FormatResult, LintResult, TestResult, StatsResult],
    Field(discriminator="check"),
]
CheckDetails = Union[FormatDetails, LintDetails, TestDetails, StatsDetails]

check_result_adapter: TypeAdapter[CheckResult] = TypeAdapter(CheckResult)

RESULT_TYPES: dict[str, type[_CheckResultBase]] = {
    "format": FormatResult,
    "lint": LintResult,
    "test": TestResult,
    "stats": StatsResult,
}


def success_result(check: CheckTag, summary: str, duration_ms: int,
                   details: CheckDetails | None = None):
    return RESULT_TYPES[check](
        status="success", summary=summary,
        duration_ms=duration_ms, details=details,
    )


def failure_result(check: CheckTag, summary: str, duration_ms: int,
                   details: CheckDetails):
    return RESULT_TYPES[check](
        status="failure", summary=summary,
        duration_ms=duration_ms, details=details,
    )


def error_result(check: CheckTag, error: BaseException, duration_ms: int,
                 stack: str | None = None):
    """Result for a runner that could not complete."""
    message = str(error) or type(error).__name__
    return RESULT_TYPES[check](
        status="error",
        summary=f"Check failed with error: {message}",
        duration_ms=duration_ms,
        error=message,
        stack=stack,
    )


def skipped_result(check: CheckTag, reason: str):
    return RESULT_TYPES[check](status="skipped", summary=reason)


# ============================================================
# AGGREGATE REPORT
# ============================================================

def overall_status(checks: dict[str, _CheckResultBase]) -> CheckStatus:
    """Derive the report status from the checks that are present.

    Priority: any error, then any failure, then success. Skipped checks
    do not count against success; a report with no checks, or with
    only skipped ones, is skipped.
    """
    present = [result for result in checks.values() if result is not None]
    if any(result.status == "error" for result in present):
        return "error"
    if any(result.status == "failure" for result in present):
        return "failure"
    if any(result.status == "success" for result in present):
        return "success"
    return "skipped"


class HygieneReport(ArtifactModel):
    """All check results available for one commit."""

    commit_id: str
    pr_number: int | None = None
    generated_at: datetime = Field(default_factory=utcnow)
    workflow_run_url: str = ""
    checks: dict[CheckTag, CheckResult] = Field(default_factory=dict)

    @computed_field
    @property
    def overall_status(self) -> CheckStatus:
        return overall_status(self.checks)
