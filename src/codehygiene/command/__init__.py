"""Mode commands for codehygiene."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codehygiene.command.check import (
    EXIT_CONFIG,
    EXIT_ERROR,
    EXIT_OK,
    CheckCommand,
    exit_code,
)
from codehygiene.command.detect import DetectCommand
from codehygiene.command.summary import SummaryCommand
from codehygiene.core.log import logger
from codehygiene.core.result import ALL_CHECKS

if TYPE_CHECKING:
    from codehygiene.core.config import Settings


def run_mode(settings: Settings) -> int:
    """Run the command settings.mode selects and return its exit code."""
    mode = settings.mode
    logger.info(f"🧹 Running hygiene check in '{mode}' mode")

    if mode == "detect":
        return DetectCommand().run(settings)
    if mode in ALL_CHECKS:
        return CheckCommand(checks=(mode,)).run(settings)
    if mode == "summary":
        return SummaryCommand().run(settings)
    if mode == "all":
        checks_code = CheckCommand().run(settings)
        summary_code = SummaryCommand().run(settings)
        return max(checks_code, summary_code)

    logger.error(f"Unknown check mode: {mode}")
    return EXIT_CONFIG


__all__ = [
    "EXIT_CONFIG",
    "EXIT_ERROR",
    "EXIT_OK",
    "CheckCommand",
    "DetectCommand",
    "SummaryCommand",
    "exit_code",
    "run_mode",
]
