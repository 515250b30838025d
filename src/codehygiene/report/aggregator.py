"""Assemble a HygieneReport from whatever artifacts exist."""

from __future__ import annotations

from pathlib import Path

from codehygiene.core.artifacts import ArtifactStore
from codehygiene.core.log import logger
from codehygiene.core.result import ALL_CHECKS, HygieneReport

UNKNOWN_COMMIT = "unknown"


def aggregate(
    artifact_dir: Path | ArtifactStore,
    commit_id: str | None = None,
    pr_number: int | None = None,
    workflow_run_url: str = "",
) -> HygieneReport:
    """Read every available artifact into a report.

    Never raises for missing or broken artifacts: those checks are
    simply absent from report.checks.

    Args:
        artifact_dir: Artifact directory, or a store over it
        commit_id: Commit the checks ran against
        pr_number: Pull request the report belongs to, if any
        workflow_run_url: Link to the CI run, if known
    """
    store = (
        artifact_dir if isinstance(artifact_dir, ArtifactStore)
        else ArtifactStore(artifact_dir)
    )
    checks = store.read_all()

    report = HygieneReport(
        commit_id=commit_id or UNKNOWN_COMMIT,
        pr_number=pr_number,
        workflow_run_url=workflow_run_url,
        checks=checks,
    )

    loaded = ", ".join(
        f"{check}={'yes' if check in checks else 'no'}" for check in ALL_CHECKS
    )
    logger.info(f"Overall status: {report.overall_status}")
    logger.info(f"Checks loaded: {loaded}")
    return report
