"""Idempotent bootstrap of CLI tools for a fresh machine."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from tool_installer.protocols import (
    CommandRunner,
    Downloader,
    FileSystem,
    InstallStrategy,
)

__all__ = [
    "__version__",
    "CommandRunner",
    "Downloader",
    "FileSystem",
    "InstallStrategy",
]
