"""Install by running a vendor-provided install script."""

from __future__ import annotations

import shutil
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from tool_installer.deadline import Deadline
from tool_installer.errors import InstallError, InstallErrorKind
from tool_installer.protocols import CommandRunner, Downloader, FileSystem

from .base import BaseStrategy


class VendorScript(BaseStrategy):
    """Download an install script and pipe it to a shell.

    Equivalent to `curl -fsSL <url> | sh -s -- <args>`.
    """

    kind = "script"

    def __init__(
        self,
        tool: str,
        url: str,
        downloader: Downloader,
        runner: CommandRunner,
        filesystem: FileSystem,
        command: str | None = None,
        shell: str = "sh",
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        paths: Sequence[Path] = (),
        which: Callable[[str], str | None] | None = None,
        post_install: Sequence[Sequence[str]] = (),
    ) -> None:
        """Initialize vendor script strategy.

        Args:
            tool: Tool name.
            url: Install script URL.
            downloader: Downloader for the script.
            runner: Command runner for the shell.
            filesystem: Filesystem used to probe known install locations.
            command: Executable the script provides. Defaults to the tool name.
            shell: Shell that runs the script.
            args: Arguments passed to the script.
            env: Extra environment variables for the script.
            paths: Known locations of the installed executable, checked in
                addition to PATH.
            which: PATH lookup function. Defaults to shutil.which.
            post_install: Commands to run after install.
        """
        super().__init__(tool, runner, post_install)
        self.url = url
        self.downloader = downloader
        self.fs = filesystem
        self.command = command or tool
        self.shell = shell
        self.args = tuple(args)
        self.env = dict(env or {})
        self.paths = tuple(paths)
        self._which = which or shutil.which

    def is_installed(self) -> bool:
        if self._which(self.command):
            return True
        return any(self.fs.is_executable(path) for path in self.paths)

    def describe(self) -> str:
        suffix = f" -- {' '.join(self.args)}" if self.args else ""
        return f"curl -fsSL {self.url} | {self.shell} -s{suffix}"

    def extra_path_dirs(self) -> list[Path]:
        return list(dict.fromkeys(path.parent for path in self.paths))

    def _install(self, deadline: Deadline) -> None:
        script = self.downloader.fetch_text(self.url, timeout=deadline.remaining())
        argv = [self.shell, "-s"]
        if self.args:
            argv += ["--", *self.args]

        result = self.runner.run(
            argv,
            input_text=script,
            env=self.env or None,
            timeout=deadline.remaining(),
        )
        if not result.ok:
            raise InstallError(
                InstallErrorKind.NON_ZERO_EXIT,
                f"install script {self.url} exited with {result.returncode}: {result.tail()}",
                exit_code=result.returncode,
            )
