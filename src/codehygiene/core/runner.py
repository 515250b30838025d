"""Process execution using the invoke library."""

from __future__ import annotations

import contextlib
import os
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path

from invoke import Context
from invoke.exceptions import CommandTimedOut

from codehygiene.core.log import logger

# Exit codes a POSIX shell uses when it could not start the program
_SHELL_NOT_EXECUTABLE = 126
_SHELL_NOT_FOUND = 127


class ExecutionError(RuntimeError):
    """The program could not be started at all."""

    def __init__(self, command: str, message: str):
        super().__init__(f"{command}: {message}")
        self.command = command


class CommandFailedError(ExecutionError):
    """Non-zero exit from a command run with ignore_failure=False."""

    def __init__(self, command: str, output: ProcessOutput):
        super().__init__(
            command,
            f"exited with code {output.exit_code}: "
            f"{output.stderr.strip() or output.stdout.strip()}",
        )
        self.output = output


@dataclass(frozen=True)
class ProcessOutput:
    """Captured result of one process run."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Runner(Context):
    """Wrapper around invoke.Context for running external tools.

    A non-zero exit is data, not an exception: "the tool found
    problems" is an expected outcome for every check. Only failing
    to start the program raises, so callers can tell the two apart.
    """

    def kill(self) -> None:
        """Kill the running subprocess.

        invoke's kill() sends signal.SIGKILL, which does not exist
        on Windows; os.kill() there accepts the numeric value and
        maps it to TerminateProcess().
        """
        import platform

        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return

        super().kill()

    def execute(
        self,
        command: str,
        args: list[str] | tuple[str, ...] = (),
        cwd: Path | None = None,
        ignore_failure: bool = True,
        capture_output: bool = True,
        timeout: int | None = None,
        env: dict[str, str] | None = None,
    ) -> ProcessOutput:
        """Run a program with arguments and capture its output.

        Args:
            command: Program name or path
            args: Arguments, quoted individually for the shell
            cwd: Working directory for the program
            ignore_failure: If False, a non-zero exit raises
                CommandFailedError
            capture_output: If False, output is streamed to the
                console as well as captured
            timeout: Optional limit in seconds; a timed-out run
                reports exit code -1
            env: Extra environment variables (merged into os.environ)

        Returns:
            ProcessOutput with stdout, stderr and exit code

        Raises:
            ExecutionError: If the program is missing or not
                executable
            CommandFailedError: If ignore_failure is False and the
                program exits non-zero
        """
        if not self._resolvable(command, cwd, env):
            raise ExecutionError(command, "command not found")

        cmd_string = ' '.join(
            shlex.quote(part) for part in [command, *args]
        )
        kwargs = {
            "hide": capture_output,
            "warn": True,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        logger.spew("Starting process", command=cmd_string,
                    cwd=str(cwd) if cwd else None)

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(cmd_string, **kwargs)
            else:
                result = self.run(cmd_string, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1
        except OSError as e:
            raise ExecutionError(command, str(e)) from e

        output = ProcessOutput(
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            exit_code=result.exited,
        )
        logger.spew("Process finished", command=cmd_string,
                    exit_code=output.exit_code)

        if output.exit_code in (_SHELL_NOT_EXECUTABLE, _SHELL_NOT_FOUND) \
                and _shell_refused(output.stderr):
            raise ExecutionError(command, output.stderr.strip())

        if not ignore_failure and not output.ok:
            raise CommandFailedError(cmd_string, output)

        return output

    @staticmethod
    def _resolvable(
        command: str, cwd: Path | None, env: dict[str, str] | None
    ) -> bool:
        if os.path.dirname(command):
            path = Path(command)
            if not path.is_absolute() and cwd:
                path = Path(cwd) / path
            return path.is_file() and os.access(path, os.X_OK)
        search_path = env.get("PATH") if env else None
        return shutil.which(command, path=search_path) is not None


def _shell_refused(stderr: str) -> bool:
    text = stderr.lower()
    return "not found" in text or "permission denied" in text


def run(
    command: str,
    args: list[str] | tuple[str, ...] = (),
    cwd: Path | None = None,
    ignore_failure: bool = True,
    capture_output: bool = True,
) -> ProcessOutput:
    """Run a program once with a fresh Runner."""
    return Runner().execute(
        command,
        args,
        cwd=cwd,
        ignore_failure=ignore_failure,
        capture_output=capture_output,
    )
