"""Subprocess execution for installers."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from tool_installer.errors import InstallError, InstallErrorKind

logger = logging.getLogger(__name__)

# Shell convention for "command not found".
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CmdResult:
    """Completed command."""

    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        """True if the command exited with status 0."""
        return self.returncode == 0

    def tail(self, lines: int = 5) -> str:
        """Last lines of stderr (or stdout if stderr is empty)."""
        output = (self.stderr or self.stdout).strip()
        return "\n".join(output.splitlines()[-lines:])


def format_argv(argv: Sequence[str]) -> str:
    """Quote argv for logging and display."""
    return " ".join(shlex.quote(a) for a in argv)


class SubprocessRunner:
    """Production command runner.

    Satisfies the CommandRunner protocol structurally.
    """

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float | None = None,
        input_text: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CmdResult:
        """Run a command with consistent logging.

        Args:
            argv: Command and arguments.
            timeout: Seconds before the command is killed.
            input_text: Text written to stdin.
            env: Extra environment variables merged over os.environ.

        Returns:
            CmdResult for the finished command.

        Raises:
            InstallError: If the timeout expires.
        """
        argv_list = list(argv)
        logger.info("CMD %s", format_argv(argv_list))

        try:
            p = subprocess.run(
                argv_list,
                input=input_text,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=dict(os.environ, **(env or {})),
                timeout=timeout,
            )
        except FileNotFoundError as e:
            logger.debug("Executable not found: %s", argv_list[0])
            return CmdResult(argv=argv_list, returncode=EXIT_NOT_FOUND, stdout="", stderr=str(e))
        except subprocess.TimeoutExpired as e:
            raise InstallError(
                InstallErrorKind.TIMEOUT,
                f"command timed out after {timeout:g}s: {format_argv(argv_list)}",
            ) from e

        if p.stdout:
            logger.debug("STDOUT %s", p.stdout.strip())
        if p.stderr:
            logger.debug("STDERR %s", p.stderr.strip())

        return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
