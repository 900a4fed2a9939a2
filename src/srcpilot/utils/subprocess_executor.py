"""Subprocess execution utilities with automatic logging."""

import subprocess
from collections.abc import Sequence
from pathlib import Path

from srcpilot.logger import get_logger

logger = get_logger(__name__)


def format_output(result: subprocess.CompletedProcess[bytes] | subprocess.CalledProcessError) -> str:
    """Return the decoded stderr (or stdout if stderr is empty) of a finished process."""
    for stream in (result.stderr, result.stdout):
        if stream:
            text = stream.decode("utf-8", errors="replace") if isinstance(stream, bytes) else str(stream)
            if text.strip():
                return text.strip()
    return ""


class CommandError(Exception):
    """An external command could not start, exited non-zero or timed out.

    ``returncode`` is None when the command never finished.
    """

    def __init__(self, command: Sequence[str], output: str, returncode: int | None = None) -> None:
        self.command = tuple(command)
        self.output = output
        self.returncode = returncode
        super().__init__(output or f"`{' '.join(self.command)}` failed")


class SubprocessExecutor:
    """Executes subprocess commands with automatic debug logging.

    The working directory of a command is always passed to the child process,
    never applied to the current process, so a failing command cannot leave the
    caller in a different directory.
    """

    @staticmethod
    def run_sync(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        check: bool = False,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """
        Execute a synchronous subprocess command with automatic debug logging.

        Args:
            *args: Command arguments
            cwd: Working directory of the child process
            env: Environment variables
            check: Raise CommandError on a non-zero exit code
            timeout: Deadline in seconds, None waits forever

        Returns:
            subprocess.CompletedProcess object

        Raises:
            CommandError: If the command cannot start or times out, or exits
                non-zero with ``check`` set
        """
        cmd_str = " ".join(args)
        logger.debug(f"Executing: {cmd_str}", cwd=str(cwd) if cwd else None)

        try:
            result = subprocess.run(
                args, capture_output=True, cwd=str(cwd) if cwd else None, env=env, timeout=timeout
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"Subprocess timeout after {timeout}s: {cmd_str}")
            raise CommandError(args, f"`{cmd_str}` timed out after {timeout}s") from e
        except OSError as e:
            logger.error(f"Subprocess could not start: {cmd_str} - {e}")
            raise CommandError(args, str(e)) from e

        if result.stdout:
            logger.debug("Subprocess stdout", output=result.stdout.decode("utf-8", errors="replace"))
        if result.stderr:
            logger.debug("Subprocess stderr", output=result.stderr.decode("utf-8", errors="replace"))

        if check and result.returncode != 0:
            output = format_output(result)
            logger.error(f"Subprocess exited with code {result.returncode}: {cmd_str}")
            raise CommandError(args, output, result.returncode)
        return result
