"""Protocol definitions for core abstractions.

The provisioning core talks to the outside world (processes, network,
filesystem) only through these interfaces, so each collaborator can be
replaced with a test double.

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tool_installer.command import CmdResult


@runtime_checkable
class CommandRunner(Protocol):
    """Protocol for running external commands."""

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float | None = None,
        input_text: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CmdResult:
        """Run a command to completion.

        Args:
            argv: Command and arguments.
            timeout: Seconds before the command is killed.
            input_text: Text written to the command's stdin.
            env: Extra environment variables.

        Returns:
            CmdResult with exit code and captured output. A missing
            executable is reported as exit code 127.

        Raises:
            InstallError: If the timeout expires.
        """
        ...


@runtime_checkable
class Downloader(Protocol):
    """Protocol for fetching remote files."""

    def fetch(self, url: str, dest: Path, timeout: float | None = None) -> Path:
        """Download a URL to a local file.

        Args:
            url: URL to download.
            dest: Destination file path.
            timeout: Total seconds allowed for the download.

        Returns:
            The destination path.

        Raises:
            InstallError: On network failure or timeout.
        """
        ...

    def fetch_text(self, url: str, timeout: float | None = None) -> str:
        """Download a URL and decode it as UTF-8 text.

        Args:
            url: URL to download.
            timeout: Total seconds allowed for the download.

        Returns:
            Response body.

        Raises:
            InstallError: On network failure or timeout.
        """
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for filesystem operations used by installers."""

    def is_executable(self, path: Path) -> bool:
        """Check if a path is an executable regular file."""
        ...

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        ...

    def install_file(self, src: Path, dst: Path, mode: int = 0o755) -> None:
        """Place a file at dst atomically.

        The file is staged next to dst and renamed into place, so dst is
        either untouched or complete.

        Args:
            src: File to install.
            dst: Final path.
            mode: Permission bits for the installed file.
        """
        ...


@runtime_checkable
class InstallStrategy(Protocol):
    """Protocol for tool installation strategies."""

    kind: str

    def is_installed(self) -> bool:
        """Check whether the tool is already present on the host."""
        ...

    def install(self, timeout: float | None = None) -> None:
        """Install the tool.

        Args:
            timeout: Total seconds allowed for the installation.

        Raises:
            InstallError: If installation fails.
        """
        ...

    def describe(self) -> str:
        """Describe the action install() would take."""
        ...
