"""Base package manager implementation with shared behavior.

All managers share the same install algorithm: optionally refresh the package
index once per run, then run an install command and map a non-zero exit to an
InstallError. They vary only in the argv they build.

Pattern: Template Method - base class defines algorithm skeleton, subclasses
provide specific commands.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod

from tool_installer.command import format_argv
from tool_installer.deadline import Deadline
from tool_installer.errors import InstallError, InstallErrorKind
from tool_installer.protocols import CommandRunner

logger = logging.getLogger(__name__)


def _running_as_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class BasePackageManager(ABC):
    """Base class for system package managers.

    Subclasses set `name`/`binary` and implement the argv builders.
    """

    name: str
    binary: str
    # Managers that write a system-wide database need root.
    system_wide: bool = True

    def __init__(self, runner: CommandRunner, use_sudo: bool | None = None) -> None:
        """Initialize the package manager handler.

        Args:
            runner: Command runner used for all invocations.
            use_sudo: Prefix commands with sudo. None means "when not root".
        """
        self.runner = runner
        if use_sudo is None:
            use_sudo = self.system_wide and not _running_as_root()
        self.use_sudo = use_sudo
        self._refreshed = False

    @abstractmethod
    def install_argv(self, packages: list[str]) -> list[str]:
        """Build the install command for packages."""
        ...

    @abstractmethod
    def query_argv(self, package: str) -> list[str]:
        """Build a command that exits 0 iff package is installed."""
        ...

    def refresh_argv(self) -> list[str] | None:
        """Build the index refresh command, or None if not needed."""
        return None

    def _privileged(self, argv: list[str]) -> list[str]:
        if self.use_sudo:
            return ["sudo", *argv]
        return argv

    def is_installed(self, package: str) -> bool:
        """Check whether a package is installed.

        Args:
            package: Package name.

        Returns:
            True if the package database lists the package.
        """
        return self.runner.run(self.query_argv(package)).ok

    def install_command(self, packages: list[str]) -> list[str]:
        """Full install argv including any sudo prefix."""
        return self._privileged(self.install_argv(packages))

    def install(self, packages: list[str], deadline: Deadline | None = None) -> None:
        """Install packages.

        The index refresh and the install command share one time budget.

        Args:
            packages: Package names.
            deadline: Time budget for the whole install. Unbounded if None.

        Raises:
            InstallError: If the manager exits non-zero or the budget runs out.
        """
        deadline = deadline or Deadline(None)
        self._refresh(deadline)
        argv = self.install_command(packages)
        self._run_checked(argv, deadline)

    def _refresh(self, deadline: Deadline) -> None:
        """Refresh the package index once per manager instance."""
        if self._refreshed:
            return
        argv = self.refresh_argv()
        if argv is not None:
            self._run_checked(self._privileged(argv), deadline)
        self._refreshed = True

    def _run_checked(self, argv: list[str], deadline: Deadline) -> None:
        result = self.runner.run(argv, timeout=deadline.remaining())
        if not result.ok:
            raise InstallError(
                InstallErrorKind.NON_ZERO_EXIT,
                f"{format_argv(argv)} exited with {result.returncode}: {result.tail()}",
                exit_code=result.returncode,
            )
