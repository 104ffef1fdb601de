"""System package manager handlers."""

from __future__ import annotations

from tool_installer.detector import PackageManagerName
from tool_installer.protocols import CommandRunner

from .apt import AptPackageManager
from .base import BasePackageManager
from .brew import BrewPackageManager
from .dnf import DnfPackageManager
from .pacman import PacmanPackageManager

__all__ = [
    "AptPackageManager",
    "BasePackageManager",
    "BrewPackageManager",
    "DnfPackageManager",
    "PacmanPackageManager",
    "PACKAGE_MANAGERS",
    "get_package_manager",
]


PACKAGE_MANAGERS: dict[PackageManagerName, type[BasePackageManager]] = {
    PackageManagerName.APT: AptPackageManager,
    PackageManagerName.DNF: DnfPackageManager,
    PackageManagerName.PACMAN: PacmanPackageManager,
    PackageManagerName.BREW: BrewPackageManager,
}


def get_package_manager(
    name: PackageManagerName | str,
    runner: CommandRunner,
    use_sudo: bool | None = None,
) -> BasePackageManager:
    """Get a package manager handler by name.

    Args:
        name: Package manager name (apt, dnf, pacman, brew).
        runner: Command runner the handler will use.
        use_sudo: Sudo policy; None means "when not root".

    Returns:
        Package manager instance.

    Raises:
        ValueError: If the package manager is not supported.
    """
    try:
        key = PackageManagerName(name)
    except ValueError:
        raise ValueError(
            f"Unknown package manager: {name}. Supported: {[m.value for m in PACKAGE_MANAGERS]}"
        ) from None
    return PACKAGE_MANAGERS[key](runner, use_sudo=use_sudo)
