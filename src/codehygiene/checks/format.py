"""Format check: run the formatter, then ask git what it changed."""

from __future__ import annotations

from codehygiene.checks.base import CheckRunner
from codehygiene.core.log import logger
from codehygiene.core.result import FormatDetails, FormatResult


class FormatCheck(CheckRunner):
    """Fails when the formatter rewrites any tracked file.

    The formatter's own exit code is only logged: a formatter that
    exits 0 after changing files still fails the check, and one that
    exits non-zero without changing anything passes it.

    With tools.restore_formatted set, the files the formatter rewrote
    are checked out again once recorded, so whatever runs next sees
    the committed tree. Files that were already modified beforehand
    are left alone.
    """

    check = "format"
    icon = "🎨"

    def _execute(self):
        tools = self.config.tools
        dirty_before = (
            set(self.git.uncommitted_files())
            if tools.restore_formatted else set()
        )

        output = self.runner.execute(
            tools.format.program, tools.format.args, cwd=self.workdir
        )
        if not output.ok:
            logger.warn(
                f"Formatter exited with code {output.exit_code}; "
                f"checking the working tree anyway",
                command=str(tools.format),
            )

        files = self.git.uncommitted_files()
        for path in files:
            logger.debug(f"Needs formatting: {path}")

        if tools.restore_formatted:
            rewritten = [path for path in files if path not in dirty_before]
            self.git.restore(rewritten)
            if rewritten:
                logger.info(f"Restored {len(rewritten)} reformatted file(s)")

        if files:
            summary = f"{len(files)} file(s) need formatting"
        else:
            summary = "All files are properly formatted"
        return summary, FormatDetails(files=files)

    def _set_outputs(self, result: FormatResult) -> None:
        files = result.details.files
        self.outputs.set("format-needed", bool(files))
        self.outputs.set("files-needing-format",
                         ",".join(files) if files else "[]")
