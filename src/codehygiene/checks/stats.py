"""Stats check: change statistics and bundle sizes against baselines."""

from __future__ import annotations

from codehygiene.checks.base import CheckRunner
from codehygiene.core.log import logger
from codehygiene.core.result import StatsDetails, StatsResult
from codehygiene.git.client import GitError
from codehygiene.parsers.bundle import compare_folder_sizes, parse_ls_tree
from codehygiene.parsers.diffstat import (
    parse_numstat,
    top_directories,
    top_extensions,
)


class StatsCheck(CheckRunner):
    """Reports facts, never findings.

    The main-branch baseline is required; without it the check is an
    error. The previous commit and each bundle folder are optional:
    their failures land in details.warnings and the check still
    succeeds.
    """

    check = "stats"
    icon = "📊"

    def _execute(self):
        git = self.config.git
        warnings = []

        if git.fetch_base:
            logger.info(f"Fetching {git.remote}/{git.main_branch} "
                        f"for comparison")
            self.git.fetch(git.remote, git.main_branch)
        self.git.require_ref(git.base_ref)

        logger.info(f"Computing diff stats vs {git.base_ref}")
        vs_main = parse_numstat(self.git.numstat(git.base_ref, git.head_ref))

        vs_previous = None
        is_first_commit = not self.git.ref_exists(git.previous_ref)
        if is_first_commit:
            logger.info("First commit - no previous commit to compare")
        else:
            try:
                vs_previous = parse_numstat(
                    self.git.numstat(git.previous_ref, git.head_ref)
                )
            except GitError as e:
                logger.warn(f"Previous-commit comparison failed: {e}")
                warnings.append(f"previous commit: {e}")

        changed = self.git.changed_files(git.base_ref, git.head_ref)

        bundle_sizes = []
        for folder in git.bundle_folders:
            try:
                main_sizes = parse_ls_tree(
                    self.git.file_sizes(git.base_ref, folder)
                )
                preview_sizes = parse_ls_tree(
                    self.git.file_sizes(git.head_ref, folder)
                )
            except GitError as e:
                logger.warn(f"Could not compute bundle size for {folder}: {e}")
                warnings.append(f"bundle {folder}: {e}")
                continue
            bundle_sizes.append(
                compare_folder_sizes(folder, main_sizes, preview_sizes)
            )

        details = StatsDetails(
            vs_main=vs_main,
            vs_previous=vs_previous,
            is_first_commit=is_first_commit,
            churn=vs_main.lines_added + vs_main.lines_deleted,
            net_change=vs_main.lines_added - vs_main.lines_deleted,
            top_extensions=top_extensions(changed, git.top_count),
            top_directories=top_directories(changed, git.top_count),
            bundle_sizes=bundle_sizes,
            warnings=warnings,
        )
        summary = (
            f"{vs_main.files_changed} files changed, "
            f"+{vs_main.lines_added} -{vs_main.lines_deleted}"
        )
        return summary, details

    def _set_outputs(self, result: StatsResult) -> None:
        details = result.details
        self.outputs.set("files-changed", details.vs_main.files_changed)
        self.outputs.set("lines-added", details.vs_main.lines_added)
        self.outputs.set("lines-deleted", details.vs_main.lines_deleted)
        if details.vs_previous is not None:
            previous = details.vs_previous
            self.outputs.set("files-changed-vs-prev", previous.files_changed)
            self.outputs.set("lines-added-vs-prev", previous.lines_added)
            self.outputs.set("lines-deleted-vs-prev", previous.lines_deleted)
        self.outputs.set("is-first-commit", details.is_first_commit)
