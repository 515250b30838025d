"""Summary command: aggregate artifacts, render, and upsert the comment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from codehygiene.command.check import EXIT_ERROR, EXIT_OK
from codehygiene.core.artifacts import ArtifactStore
from codehygiene.core.log import logger
from codehygiene.core.outputs import StepOutputs
from codehygiene.git.client import GitClient, GitError
from codehygiene.report.aggregator import aggregate
from codehygiene.report.github import (
    CommentGateway,
    CommentGatewayError,
    GitHubCommentGateway,
    upsert_comment,
)
from codehygiene.report.render import render_comment

if TYPE_CHECKING:
    from codehygiene.core.config import Config, Settings


def resolve_commit(config: Config) -> str | None:
    """The CI-provided commit, else what head_ref points at."""
    if config.github.sha:
        return config.github.sha
    try:
        return GitClient(config.workdir).rev_parse(config.git.head_ref)
    except GitError as e:
        logger.warn(f"Could not resolve the commit id: {e}")
        return None


class SummaryCommand(BaseModel):
    """Build the hygiene report from artifacts and post it.

    Never re-runs a check. Without a pull request number the comment
    is rendered and logged but not posted.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    gateway: CommentGateway | None = Field(
        default=None,
        exclude=True,
        description="Comment gateway (default: GitHub from config)",
    )

    def run(self, settings: Settings) -> int:
        """Aggregate, render, and upsert.

        Returns:
            Exit code: 1 if posting failed, or if the report is
            failure/error and fail_on_findings is set; else 0
        """
        config = settings.config
        github = config.github
        outputs = StepOutputs(github.output_file)

        logger.info("📋 Running summary")
        report = aggregate(
            ArtifactStore(config.artifact_dir),
            commit_id=resolve_commit(config),
            pr_number=github.pr_number,
            workflow_run_url=github.workflow_run_url,
        )
        body = render_comment(report, config.report)

        outputs.set("overall-status", report.overall_status)
        outputs.set("report", report.model_dump_json(by_alias=True))

        if github.pr_number is None:
            logger.info("Not in PR context - skipping comment")
            logger.debug("Rendered comment", body=body)
        else:
            logger.info(f"📝 Posting comment to PR #{github.pr_number}")
            try:
                gateway = self.gateway or GitHubCommentGateway.from_config(
                    github
                )
                comment = upsert_comment(
                    gateway, github.pr_number, body, config.report.marker
                )
            except (CommentGatewayError, ValueError) as e:
                logger.error(f"Failed to post comment: {e}")
                return EXIT_ERROR
            logger.info("Comment posted", comment_id=comment.id,
                        url=comment.url)

        if config.fail_on_findings and report.overall_status in (
            "failure", "error"
        ):
            return EXIT_ERROR
        return EXIT_OK
