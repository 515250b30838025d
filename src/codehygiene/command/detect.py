"""Detect command: list files changed against the baseline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from codehygiene.command.check import EXIT_ERROR, EXIT_OK
from codehygiene.core.log import logger
from codehygiene.core.outputs import StepOutputs
from codehygiene.git.client import GitClient, GitError

if TYPE_CHECKING:
    from codehygiene.core.config import Settings


class DetectCommand(BaseModel):
    """Change detection only; no check runs and no artifact is written.

    The fetch is best effort. Listing the changed files is not: if
    that fails the outputs report no changes and the command exits 1.
    """

    def run(self, settings: Settings) -> int:
        config = settings.config
        git = config.git
        client = GitClient(config.workdir)
        outputs = StepOutputs(config.github.output_file)

        logger.info(f"🔍 Detecting changes between '{git.base_ref}' "
                    f"and '{git.head_ref}'")
        try:
            if git.fetch_base:
                client.fetch(git.remote, git.main_branch)
            files = client.changed_files(git.base_ref, git.head_ref)
        except GitError as e:
            logger.error(f"Change detection failed: {e}")
            outputs.set("has-changes", False)
            outputs.set("changed-files", "")
            outputs.set("changed-files-count", 0)
            return EXIT_ERROR

        outputs.set("has-changes", bool(files))
        outputs.set("changed-files", ",".join(files))
        outputs.set("changed-files-count", len(files))
        logger.info(f"Change detection complete: {len(files)} file(s) changed")
        return EXIT_OK
