"""Host platform detection."""

from __future__ import annotations

import logging
import platform as _platform
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from tool_installer.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)


class OSFamily(str, Enum):
    """Supported operating system families."""

    LINUX = "linux"
    MACOS = "macos"


class PackageManagerName(str, Enum):
    """Supported system package managers."""

    APT = "apt"
    DNF = "dnf"
    PACMAN = "pacman"
    BREW = "brew"


# Probe order on Linux; the first manager found on PATH wins.
LINUX_MANAGERS: list[tuple[PackageManagerName, str]] = [
    (PackageManagerName.APT, "apt-get"),
    (PackageManagerName.DNF, "dnf"),
    (PackageManagerName.PACMAN, "pacman"),
]

ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "armv8": "aarch64",
}


@dataclass(frozen=True)
class Platform:
    """Detected host platform.

    Attributes:
        os: Operating system family.
        package_manager: System package manager used for installs.
        arch: Normalized machine architecture (e.g. x86_64, aarch64).
    """

    os: OSFamily
    package_manager: PackageManagerName
    arch: str = "x86_64"

    def __str__(self) -> str:
        return f"{self.os.value} ({self.package_manager.value}, {self.arch})"


def normalize_arch(machine: str) -> str:
    """Normalize a machine string to the names used in release archives.

    Args:
        machine: Raw value, e.g. from platform.machine().

    Returns:
        Normalized architecture name.
    """
    machine = machine.strip().lower()
    return ARCH_ALIASES.get(machine, machine)


def detect(
    system: str | None = None,
    which: Callable[[str], str | None] | None = None,
    machine: str | None = None,
) -> Platform:
    """Detect the host OS family and package manager.

    Args:
        system: OS name as returned by platform.system(). Detected if None.
        which: PATH lookup function. Defaults to shutil.which.
        machine: Machine architecture. Detected if None.

    Returns:
        The detected Platform.

    Raises:
        UnsupportedPlatformError: If the OS is not Linux or macOS, or no
            supported package manager is available.
    """
    system = system if system is not None else _platform.system()
    which = which or shutil.which
    arch = normalize_arch(machine if machine is not None else _platform.machine())

    if system == "Linux":
        for name, binary in LINUX_MANAGERS:
            if which(binary):
                detected = Platform(os=OSFamily.LINUX, package_manager=name, arch=arch)
                logger.info("Detected platform: %s", detected)
                return detected
        raise UnsupportedPlatformError("No supported package manager found (apt/dnf/pacman)")

    if system == "Darwin":
        if not which("brew"):
            raise UnsupportedPlatformError(
                "Homebrew not found on PATH; install it from https://brew.sh first"
            )
        detected = Platform(os=OSFamily.MACOS, package_manager=PackageManagerName.BREW, arch=arch)
        logger.info("Detected platform: %s", detected)
        return detected

    raise UnsupportedPlatformError(f"Unsupported OS: {system or 'unknown'}")
