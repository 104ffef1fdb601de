"""Filesystem abstraction for testability.

The RealFileSystem implementation wraps standard library operations and
provides the atomic file placement used by release installs.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


class RealFileSystem:
    """Production filesystem implementation.

    Wraps standard library Path and shutil operations.
    Satisfies the FileSystem protocol structurally.
    """

    def is_executable(self, path: Path) -> bool:
        """Check if a path is an executable regular file."""
        return path.is_file() and os.access(path, os.X_OK)

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        path.mkdir(parents=parents, exist_ok=exist_ok)

    def install_file(self, src: Path, dst: Path, mode: int = 0o755) -> None:
        """Place a file at dst atomically.

        The copy is staged in dst's directory so the final rename stays on
        one filesystem.

        Args:
            src: File to install.
            dst: Final path.
            mode: Permission bits for the installed file.
        """
        fd, staged = tempfile.mkstemp(prefix=f".{dst.name}.", dir=dst.parent)
        os.close(fd)
        staged_path = Path(staged)
        try:
            shutil.copyfile(src, staged_path)
            staged_path.chmod(mode)
            os.replace(staged_path, dst)
        except BaseException:
            staged_path.unlink(missing_ok=True)
            raise
