"""Install through the host package manager."""

from __future__ import annotations

from collections.abc import Sequence

from tool_installer.command import format_argv
from tool_installer.deadline import Deadline
from tool_installer.package_managers import BasePackageManager
from tool_installer.protocols import CommandRunner

from .base import BaseStrategy


class PackageManagerInstall(BaseStrategy):
    """Install one or more packages with apt, dnf, pacman or brew."""

    kind = "package"

    def __init__(
        self,
        tool: str,
        packages: Sequence[str],
        manager: BasePackageManager,
        runner: CommandRunner,
        post_install: Sequence[Sequence[str]] = (),
    ) -> None:
        super().__init__(tool, runner, post_install)
        if not packages:
            raise ValueError(f"{tool}: at least one package is required")
        self.packages = list(packages)
        self.manager = manager

    def is_installed(self) -> bool:
        return all(self.manager.is_installed(p) for p in self.packages)

    def describe(self) -> str:
        return format_argv(self.manager.install_command(self.packages))

    def _install(self, deadline: Deadline) -> None:
        self.manager.install(self.packages, deadline=deadline)
