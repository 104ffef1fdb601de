"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Collaborators are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without
inheritance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from tool_installer.config import InstallerConfig
from tool_installer.detector import Platform, detect
from tool_installer.protocols import CommandRunner, Downloader, FileSystem
from tool_installer.registry import ToolRegistry


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for all services used by the CLI.
    """

    config: InstallerConfig
    registry: ToolRegistry
    runner: CommandRunner
    downloader: Downloader
    filesystem: FileSystem
    detector: Callable[[], Platform] = detect


def create_context(
    config_path: Path | None = None,
    manifest: Path | None = None,
    install_dir: Path | None = None,
    timeout: float | None = None,
    use_sudo: bool | None = None,
) -> AppContext:
    """Factory for application dependencies.

    Loads the config file, applies CLI overrides and wires all services.
    Use this in production code. For tests, construct AppContext directly
    with test doubles.

    Args:
        config_path: Override config file location.
        manifest: Override tool manifest.
        install_dir: Override directory for release binaries.
        timeout: Override per-tool timeout.
        use_sudo: Override sudo policy.

    Returns:
        Configured AppContext with all dependencies.

    Raises:
        ManifestError: If the config file or manifest is invalid.
    """
    from tool_installer.command import SubprocessRunner
    from tool_installer.download import UrllibDownloader
    from tool_installer.filesystem import RealFileSystem

    config = InstallerConfig.load(config_path)
    overrides = {
        "manifest": manifest,
        "install_dir": install_dir,
        "timeout": timeout,
        "use_sudo": use_sudo,
    }
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        config = InstallerConfig.model_validate({**config.model_dump(), **updates})

    runner = SubprocessRunner()
    downloader = UrllibDownloader()
    filesystem = RealFileSystem()
    registry = ToolRegistry.create(
        runner=runner,
        downloader=downloader,
        filesystem=filesystem,
        install_dir=config.install_dir,
        manifest_path=config.manifest,
        use_sudo=config.use_sudo,
    )

    return AppContext(
        config=config,
        registry=registry,
        runner=runner,
        downloader=downloader,
        filesystem=filesystem,
    )
