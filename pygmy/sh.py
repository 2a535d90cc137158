# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shell command execution.

Thin wrapper around :func:`subprocess.run` that always captures output and
never raises for a failed command.  Callers inspect
:attr:`CommandResult.success` and decide whether a failure is fatal.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass


logger = logging.getLogger(__name__)

#: Exit code reported when the executable is not on ``PATH``.
EXIT_NOT_FOUND = 127

#: Exit code reported when the command exceeds its timeout.
EXIT_TIMEOUT = 124

DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single command.

    Attributes:
        args: The command that was run.
        returncode: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        """The command as a single printable string."""
        return " ".join(self.args)

    def error_detail(self) -> str:
        """Best available description of why the command failed."""
        return self.stderr.strip() or self.stdout.strip() or (
            f"exit status {self.returncode}"
        )


#: Signature shared by :func:`run_command` and test doubles.
Runner = Callable[[Sequence[str]], CommandResult]


def run_command(
    args: Sequence[str],
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        args: Command and arguments.  Never passed through a shell.
        timeout: Seconds before the command is abandoned.

    Returns:
        CommandResult describing the outcome.  A missing executable or a
        timeout is reported as a failed result, not an exception.
    """
    argv = tuple(str(a) for a in args)
    logger.debug("Running: %s", " ".join(argv))

    try:
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        logger.debug("Command not found: %s", argv[0])
        return CommandResult(argv, EXIT_NOT_FOUND, "", str(e))
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, argv[0])
        return CommandResult(
            argv, EXIT_TIMEOUT, "", f"timed out after {timeout}s"
        )

    result = CommandResult(argv, proc.returncode, proc.stdout, proc.stderr)
    if not result.success:
        logger.debug(
            "Command exited %d: %s", result.returncode, result.error_detail()
        )
    return result
