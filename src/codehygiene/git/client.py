"""Thin wrapper over the git binary.

Only issues commands and hands back their text; turning that text
into numbers is the job of codehygiene.parsers.
"""

from __future__ import annotations

from pathlib import Path

from codehygiene.core.log import logger
from codehygiene.core.runner import ExecutionError, ProcessOutput, Runner
from codehygiene.parsers.diffstat import parse_name_list


class GitError(RuntimeError):
    """A required git operation failed."""


class GitClient:
    """Runs git commands in one working tree."""

    def __init__(self, workdir: Path, runner: Runner | None = None):
        """
        Args:
            workdir: Path to the git working tree
            runner: Process runner (a fresh Runner by default)
        """
        self.workdir = Path(workdir)
        self.runner = runner or Runner()

    def _git(self, *args: str, ignore_failure: bool = False) -> ProcessOutput:
        """Run one git command.

        Raises:
            GitError: If git cannot be started, or exits non-zero and
                ignore_failure is False
        """
        try:
            output = self.runner.execute("git", args, cwd=self.workdir)
        except ExecutionError as e:
            raise GitError(f"git could not run: {e}") from e

        if not output.ok and not ignore_failure:
            message = output.stderr.strip() or output.stdout.strip()
            raise GitError(
                f"git {' '.join(args)} failed "
                f"(exit {output.exit_code}): {message}"
            )
        return output

    def ref_exists(self, ref: str) -> bool:
        output = self._git(
            "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}",
            ignore_failure=True,
        )
        return output.ok

    def require_ref(self, ref: str) -> None:
        """Raise GitError unless ref names a commit."""
        if not self.ref_exists(ref):
            raise GitError(f"Baseline ref not found: {ref}")

    def rev_parse(self, ref: str) -> str:
        return self._git("rev-parse", ref).stdout.strip()

    def fetch(self, remote: str, branch: str, depth: int | None = 1) -> bool:
        """Fetch a branch into refs/remotes/<remote>/<branch>.

        Best effort: a failed fetch is logged and reported as False,
        since the ref may already be present locally.
        """
        args = [
            "fetch", remote,
            f"{branch}:refs/remotes/{remote}/{branch}",
            "--no-tags", "--quiet",
        ]
        if depth:
            args.append(f"--depth={depth}")

        output = self._git(*args, ignore_failure=True)
        if not output.ok:
            logger.warn(f"Could not fetch {remote}/{branch}",
                        stderr=output.stderr.strip()[:500])
        return output.ok

    def changed_files(self, base: str, head: str) -> list[str]:
        """Paths changed between the merge base of base and head."""
        output = self._git("diff", "--name-only", "-z", f"{base}...{head}")
        return parse_name_list(output.stdout)

    def numstat(self, base: str, head: str) -> str:
        """Raw `git diff --numstat` text between base and head."""
        return self._git("diff", "--numstat", f"{base}...{head}").stdout

    def file_sizes(self, ref: str, folder: str) -> str:
        """Raw `git ls-tree -r -l -z` records for a folder at ref."""
        return self._git("ls-tree", "-r", "-l", "-z", ref, "--", folder).stdout

    def uncommitted_files(self) -> list[str]:
        """Tracked paths with modifications in the working tree."""
        return parse_name_list(
            self._git("diff", "--name-only", "-z").stdout
        )

    def restore(self, paths: list[str]) -> None:
        """Discard working-tree changes to tracked paths."""
        if paths:
            self._git("checkout", "--", *(f":(literal){p}" for p in paths))
