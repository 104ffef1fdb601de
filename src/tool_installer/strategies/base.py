"""Base install strategy with shared behavior.

Every strategy installs the same way: perform the strategy-specific install,
then run the tool's post-install commands, all within one overall deadline.

Pattern: Template Method - base class defines algorithm skeleton, subclasses
provide the install step.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from tool_installer.command import format_argv
from tool_installer.deadline import Deadline
from tool_installer.errors import InstallError, InstallErrorKind
from tool_installer.protocols import CommandRunner

logger = logging.getLogger(__name__)


class BaseStrategy(ABC):
    """Base class for install strategies.

    Subclasses implement `is_installed()`, `describe()` and `_install()`.
    """

    kind: str

    def __init__(
        self,
        tool: str,
        runner: CommandRunner,
        post_install: Sequence[Sequence[str]] = (),
    ) -> None:
        """Initialize shared strategy state.

        Args:
            tool: Name of the tool being installed.
            runner: Command runner for post-install commands.
            post_install: Commands to run after a successful install.
        """
        self.tool = tool
        self.runner = runner
        self.post_install = tuple(tuple(argv) for argv in post_install)

    @abstractmethod
    def is_installed(self) -> bool:
        """Check whether the tool is already present on the host."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Describe the action install() would take."""
        ...

    @abstractmethod
    def _install(self, deadline: Deadline) -> None:
        """Perform the strategy-specific install step."""
        ...

    def extra_path_dirs(self) -> list[Path]:
        """Directories to prepend to PATH for post-install commands."""
        return []

    def install(self, timeout: float | None = None) -> None:
        """Install the tool, then run its post-install commands.

        Args:
            timeout: Total seconds allowed for the installation.

        Raises:
            InstallError: If any step fails.
        """
        deadline = Deadline(timeout)
        self._install(deadline)
        self._run_post_install(deadline)

    def _run_post_install(self, deadline: Deadline) -> None:
        if not self.post_install:
            return

        env = None
        dirs = [str(d) for d in self.extra_path_dirs()]
        if dirs:
            env = {"PATH": os.pathsep.join([*dirs, os.environ.get("PATH", "")])}

        for argv in self.post_install:
            result = self.runner.run(argv, timeout=deadline.remaining(), env=env)
            if not result.ok:
                raise InstallError(
                    InstallErrorKind.NON_ZERO_EXIT,
                    f"post-install {format_argv(argv)} exited with "
                    f"{result.returncode}: {result.tail()}",
                    exit_code=result.returncode,
                )
            logger.debug("Post-install step for %s finished: %s", self.tool, format_argv(argv))
