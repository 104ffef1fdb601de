"""Error taxonomy for tool installer.

Fatal errors subclass ProvisioningError and abort a run before any tool is
touched. InstallError is per-tool and is recorded in the run report by the
orchestrator instead of propagating.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class ProvisioningError(Exception):
    """Fatal error that aborts a whole run."""

    pass


class UnsupportedPlatformError(ProvisioningError):
    """Host OS or package manager is not supported."""

    pass


class CyclicDependencyError(ProvisioningError):
    """Tool dependencies contain a cycle."""

    def __init__(self, tools: Iterable[str]) -> None:
        self.tools = tuple(tools)
        super().__init__(f"Cyclic dependency between tools: {', '.join(self.tools)}")


class ManifestError(ProvisioningError):
    """Tool manifest or configuration file is invalid."""

    pass


class InstallErrorKind(str, Enum):
    """Category of a per-tool installation failure."""

    NETWORK = "network"
    PERMISSION = "permission"
    CHECKSUM = "checksum"
    NON_ZERO_EXIT = "non_zero_exit"
    TIMEOUT = "timeout"
    ARCHITECTURE = "architecture"
    ARCHIVE = "archive"


class InstallError(Exception):
    """Installation of a single tool failed.

    Attributes:
        kind: Failure category.
        exit_code: Exit code of the failing command, if any.
    """

    def __init__(
        self,
        kind: InstallErrorKind,
        message: str,
        exit_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.exit_code = exit_code
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"
