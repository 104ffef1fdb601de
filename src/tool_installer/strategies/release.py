"""Install a binary from a release archive."""

from __future__ import annotations

import logging
import shutil
import tarfile
import tempfile
import zipfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from tool_installer.deadline import Deadline
from tool_installer.download import sha256_file
from tool_installer.errors import InstallError, InstallErrorKind
from tool_installer.protocols import CommandRunner, Downloader, FileSystem

from .base import BaseStrategy

logger = logging.getLogger(__name__)

ARCHIVE_FORMATS = ("tar.gz", "zip", "binary")


@dataclass(frozen=True)
class ArchiveLayout:
    """Where the binary lives inside a release artifact.

    Attributes:
        format: One of "tar.gz", "zip" or "binary" (the download is the binary).
        member: Path of the binary inside the archive. May use {version} and
            {arch}. Defaults to the binary name at the archive root.
    """

    format: str = "tar.gz"
    member: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.format not in ARCHIVE_FORMATS:
            raise ValueError(f"Unknown archive format: {self.format}. Supported: {ARCHIVE_FORMATS}")


class ReleaseDownload(BaseStrategy):
    """Download a release archive and install one binary from it.

    The archive is downloaded and unpacked in a temporary directory; the
    binary reaches its final path only through FileSystem.install_file.
    """

    kind = "release"

    def __init__(
        self,
        tool: str,
        url_template: str,
        version: str,
        install_dir: Path,
        arch: str,
        downloader: Downloader,
        filesystem: FileSystem,
        runner: CommandRunner,
        binary: str | None = None,
        layout: ArchiveLayout | None = None,
        arch_map: Mapping[str, str] | None = None,
        sha256: Mapping[str, str] | None = None,
        post_install: Sequence[Sequence[str]] = (),
    ) -> None:
        """Initialize release download strategy.

        Args:
            tool: Tool name.
            url_template: Download URL; may use {version} and {arch}.
            version: Release version substituted into templates.
            install_dir: Directory receiving the binary.
            arch: Host architecture (normalized).
            downloader: Downloader for the archive.
            filesystem: Filesystem used for the final placement.
            runner: Command runner for post-install commands.
            binary: Installed file name. Defaults to the tool name.
            layout: Archive layout. Defaults to a tar.gz with the binary at root.
            arch_map: Host arch -> archive arch token. Hosts missing from a
                non-empty map are unsupported.
            sha256: Expected digests keyed by host arch.
            post_install: Commands to run after install.
        """
        super().__init__(tool, runner, post_install)
        self.url_template = url_template
        self.version = version
        self.install_dir = install_dir
        self.arch = arch
        self.downloader = downloader
        self.fs = filesystem
        self.binary = binary or tool
        self.layout = layout or ArchiveLayout()
        self.arch_map = dict(arch_map or {})
        self.sha256 = dict(sha256 or {})

    @property
    def target(self) -> Path:
        """Final path of the installed binary."""
        return self.install_dir / self.binary

    def archive_arch(self) -> str:
        """Architecture token used in release file names.

        Raises:
            InstallError: If the host architecture has no release.
        """
        if not self.arch_map:
            return self.arch
        if self.arch not in self.arch_map:
            raise InstallError(
                InstallErrorKind.ARCHITECTURE,
                f"no {self.tool} release for architecture {self.arch} "
                f"(available: {', '.join(sorted(self.arch_map))})",
            )
        return self.arch_map[self.arch]

    def _render(self, template: str) -> str:
        return template.format(version=self.version, arch=self.archive_arch())

    @property
    def url(self) -> str:
        """Download URL for this host."""
        return self._render(self.url_template)

    def is_installed(self) -> bool:
        return self.fs.is_executable(self.target)

    def describe(self) -> str:
        try:
            url = self.url
        except InstallError as e:
            return f"unavailable ({e})"
        return f"download {url} -> {self.target}"

    def extra_path_dirs(self) -> list[Path]:
        return [self.install_dir]

    def _install(self, deadline: Deadline) -> None:
        url = self.url
        self._ensure_install_dir()

        with tempfile.TemporaryDirectory(prefix=f"tool-installer-{self.tool}-") as tmp:
            work = Path(tmp)
            archive = self.downloader.fetch(url, work / "download", timeout=deadline.remaining())
            self._verify_checksum(archive)
            binary = self._extract(archive, work / "extract")
            deadline.remaining()
            try:
                self.fs.install_file(binary, self.target)
            except OSError as e:
                raise InstallError(
                    InstallErrorKind.PERMISSION, f"cannot write {self.target}: {e}"
                ) from e

        logger.info("Installed %s %s to %s", self.tool, self.version, self.target)

    def _ensure_install_dir(self) -> None:
        try:
            self.fs.mkdir(self.install_dir, parents=True, exist_ok=True)
        except OSError as e:
            raise InstallError(
                InstallErrorKind.PERMISSION,
                f"cannot create install directory {self.install_dir}: {e}",
            ) from e

    def _verify_checksum(self, archive: Path) -> None:
        expected = self.sha256.get(self.arch)
        if not expected:
            return
        actual = sha256_file(archive)
        if actual.lower() != expected.lower():
            raise InstallError(
                InstallErrorKind.CHECKSUM,
                f"sha256 mismatch for {self.url}: expected {expected}, got {actual}",
            )

    def _member_name(self) -> str:
        if self.layout.member:
            return self._render(self.layout.member)
        return self.binary

    def _extract(self, archive: Path, dest_dir: Path) -> Path:
        """Extract the binary from the archive into dest_dir.

        Only the one member is read, so archive paths never touch the
        filesystem outside dest_dir.

        Returns:
            Path to the extracted binary.

        Raises:
            InstallError: If the archive is corrupt or lacks the member.
        """
        if self.layout.format == "binary":
            return archive

        dest_dir.mkdir(parents=True, exist_ok=True)
        out = dest_dir / self.binary
        member = self._member_name()

        try:
            if self.layout.format == "zip":
                with zipfile.ZipFile(archive) as zf:
                    with zf.open(self._zip_member(zf, member)) as src:
                        self._write(src, out)
            else:
                with tarfile.open(archive, "r:*") as tf:
                    info = self._tar_member(tf, member)
                    src = tf.extractfile(info)
                    if src is None:
                        raise InstallError(
                            InstallErrorKind.ARCHIVE, f"{member} in {self.url} is not a file"
                        )
                    with src:
                        self._write(src, out)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError) as e:
            raise InstallError(InstallErrorKind.ARCHIVE, f"corrupt archive {self.url}: {e}") from e

        return out

    def _tar_member(self, tf: tarfile.TarFile, member: str) -> tarfile.TarInfo:
        for name in (member, f"./{member}"):
            try:
                return tf.getmember(name)
            except KeyError:
                continue
        raise InstallError(InstallErrorKind.ARCHIVE, f"{member} not found in {self.url}")

    def _zip_member(self, zf: zipfile.ZipFile, member: str) -> str:
        names = set(zf.namelist())
        for name in (member, f"./{member}"):
            if name in names:
                return name
        raise InstallError(InstallErrorKind.ARCHIVE, f"{member} not found in {self.url}")

    @staticmethod
    def _write(src: IO[bytes], out: Path) -> None:
        with out.open("wb") as fh:
            shutil.copyfileobj(src, fh)
