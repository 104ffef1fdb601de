"""Installed-state probes for tools."""

from __future__ import annotations

import logging
import os
import re
import shutil
from collections.abc import Callable, Sequence
from pathlib import Path

from packaging.version import InvalidVersion, Version

from tool_installer.errors import InstallError
from tool_installer.protocols import CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_VERSION_PATTERN = r"(\d+(?:\.\d+)+)"

# Seconds a `--version` query may take before the binary counts as unusable.
VERSION_QUERY_TIMEOUT = 10.0


class CommandCheck:
    """Predicate: is a command available (optionally at a minimum version)?

    The check is re-evaluated on every call; nothing is cached.
    """

    def __init__(
        self,
        command: str,
        runner: CommandRunner,
        min_version: str | None = None,
        version_args: Sequence[str] = ("--version",),
        version_pattern: str = DEFAULT_VERSION_PATTERN,
        paths: Sequence[Path] = (),
        which: Callable[..., str | None] | None = None,
        timeout: float = VERSION_QUERY_TIMEOUT,
    ) -> None:
        """Initialize command check.

        Args:
            command: Executable name looked up on PATH.
            runner: Command runner used to query the version.
            min_version: Minimum acceptable version, e.g. "0.10".
            version_args: Arguments that make the command print its version.
            version_pattern: Regex whose first group captures the version.
            paths: Extra locations of the executable checked after PATH.
            which: PATH lookup function. Defaults to shutil.which.
            timeout: Seconds allowed for each version query.
        """
        self.command = command
        self.runner = runner
        self.min_version = Version(min_version) if min_version else None
        self.version_args = tuple(version_args)
        self.version_pattern = re.compile(version_pattern)
        self.paths = tuple(paths)
        self._which = which or shutil.which
        self.timeout = timeout

    def candidates(self) -> list[str]:
        """Executables that could satisfy the check, PATH hit first."""
        found: list[str] = []
        on_path = self._which(self.command)
        if on_path:
            found.append(on_path)
        for path in self.paths:
            if path.is_file() and os.access(path, os.X_OK) and str(path) not in found:
                found.append(str(path))
        return found

    def locate(self) -> str | None:
        """Find the executable on PATH or in the extra paths."""
        found = self.candidates()
        return found[0] if found else None

    def installed_version(self, executable: str) -> Version | None:
        """Query and parse the executable's version.

        Returns:
            Parsed version, or None if it could not be determined.
        """
        try:
            result = self.runner.run([executable, *self.version_args], timeout=self.timeout)
        except InstallError as e:
            logger.warning("Version query for %s failed: %s", executable, e)
            return None
        if not result.ok:
            return None
        match = self.version_pattern.search(result.stdout or result.stderr)
        if not match:
            return None
        try:
            return Version(match.group(1))
        except InvalidVersion:
            return None

    def __call__(self) -> bool:
        found = self.candidates()
        if self.min_version is None:
            return bool(found)

        # A distro binary on PATH may be too old while a newer one sits in paths.
        for executable in found:
            version = self.installed_version(executable)
            if version is not None and version >= self.min_version:
                return True
            logger.info(
                "%s version %s is older than required %s",
                executable,
                version or "unknown",
                self.min_version,
            )
        return False

    def __repr__(self) -> str:
        if self.min_version:
            return f"CommandCheck({self.command!r} >= {self.min_version})"
        return f"CommandCheck({self.command!r})"
