#!/usr/bin/env python3
"""codehygiene CLI - format, lint, test and stats checks for CI."""

import sys

from pydantic import ValidationError
from pydantic_settings import CliApp, SettingsError

from codehygiene.command import EXIT_CONFIG, run_mode
from codehygiene.core.config import Settings


class CliState(Settings):
    """Run one step of the code hygiene pipeline.

    Each check mode (format, lint, test, stats) runs one tool and
    writes one JSON artifact. `summary` reads the artifacts, renders
    the report and upserts the pull request comment. `detect` only
    lists changed files. `all` runs every check, then the summary.

    Configuration sources (in priority order):
    1. Command-line arguments (--mode lint, --config.git.base_ref value)
    2. Environment variables (HYGIENE_MODE=lint,
       HYGIENE_CONFIG__GIT__BASE_REF=value)
    3. .env file
    4. codehygiene.yaml in the current directory, the user config
       directory, and files passed with --include

    Exit codes: 0 the step completed, 1 a check could not run or the
    comment could not be posted, 2 invalid configuration.
    """

    def cli_cmd(self):
        """Dispatch on mode and exit with the command's code."""
        # Closing settings closes the logger, so log files are flushed
        with self:
            raise SystemExit(run_mode(self))


def main():
    """Main entry point for CLI."""
    try:
        CliApp.run(CliState)
    except (ValidationError, SettingsError, ValueError) as e:
        print(f"codehygiene: configuration error: {e}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG) from e


if __name__ == "__main__":
    main()
