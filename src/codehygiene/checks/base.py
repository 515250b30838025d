"""Shared template for the four check runners."""

from __future__ import annotations

import time
import traceback
from abc import ABC, abstractmethod
from typing import ClassVar

from codehygiene.core.artifacts import ArtifactStore
from codehygiene.core.config import Config
from codehygiene.core.log import logger
from codehygiene.core.outputs import StepOutputs
from codehygiene.core.result import (
    CheckDetails,
    CheckResult,
    CheckTag,
    error_result,
    failure_result,
    success_result,
)
from codehygiene.core.runner import Runner
from codehygiene.git.client import GitClient


class CheckRunner(ABC):
    """Runs one external tool and records one artifact.

    Subclasses implement _execute(), returning a summary line and the
    check's details. The status is derived here from the details'
    blocking count, so a runner cannot report success with findings.
    Any exception raised by _execute() becomes an error result; the
    artifact is written either way.
    """

    check: ClassVar[CheckTag]
    icon: ClassVar[str] = ""

    def __init__(
        self,
        config: Config,
        runner: Runner | None = None,
        store: ArtifactStore | None = None,
        outputs: StepOutputs | None = None,
    ):
        self.config = config
        self.runner = runner or Runner()
        self.store = store or ArtifactStore(
            config.artifact_dir, overwrite=config.artifacts.overwrite
        )
        self.outputs = outputs or StepOutputs(config.github.output_file)
        self.git = GitClient(config.workdir, self.runner)

    @property
    def workdir(self):
        return self.config.workdir

    @abstractmethod
    def _execute(self) -> tuple[str, CheckDetails]:
        """Run the tool and parse its output.

        Returns:
            (summary, details)
        """

    def _set_outputs(self, result: CheckResult) -> None:
        """Write legacy key/value outputs for a completed check."""

    def run(self) -> CheckResult:
        """Run the check, write its artifact, and return the result.

        Raises:
            ArtifactError: If the artifact cannot be written
        """
        logger.info(f"{self.icon} Starting {self.check} check".strip())
        started = time.monotonic()

        try:
            with logger.span(f"{self.check} check", check=self.check):
                summary, details = self._execute()
        except Exception as e:
            duration = _elapsed_ms(started)
            logger.error(
                f"{self.check} check could not run: {e}",
                check=self.check,
                error_type=type(e).__name__,
            )
            result = error_result(
                self.check, e, duration, stack=traceback.format_exc()
            )
        else:
            duration = _elapsed_ms(started)
            if details.blocking_count:
                logger.warn(f"{self.check} check failed: {summary}",
                            check=self.check)
                result = failure_result(self.check, summary, duration, details)
            else:
                logger.info(f"{self.check} check passed: {summary}",
                            check=self.check)
                result = success_result(self.check, summary, duration, details)
            self._set_outputs(result)

        self.store.write(result)
        return result


def _elapsed_ms(started: float) -> int:
    return round((time.monotonic() - started) * 1000)
