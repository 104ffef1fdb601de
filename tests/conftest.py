"""Shared test fixtures."""

from __future__ import annotations

import io
import tarfile
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tool_installer.command import CmdResult
from tool_installer.detector import OSFamily, PackageManagerName, Platform
from tool_installer.errors import InstallError, InstallErrorKind
from tool_installer.registry import ToolSpec


@pytest.fixture
def temp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Override home directory for testing."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("TOOL_INSTALLER_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    """Create a temporary binary directory."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


# ============================================================================
# Platform Fixtures
# ============================================================================


@pytest.fixture
def apt_platform() -> Platform:
    """Debian-style Linux host."""
    return Platform(os=OSFamily.LINUX, package_manager=PackageManagerName.APT, arch="x86_64")


@pytest.fixture
def pacman_platform() -> Platform:
    """Arch Linux host."""
    return Platform(os=OSFamily.LINUX, package_manager=PackageManagerName.PACMAN, arch="x86_64")


@pytest.fixture
def brew_platform() -> Platform:
    """Apple Silicon macOS host."""
    return Platform(os=OSFamily.MACOS, package_manager=PackageManagerName.BREW, arch="aarch64")


# ============================================================================
# Command Runner Double
# ============================================================================


@dataclass
class RecordedCall:
    """A command the fake runner was asked to run."""

    argv: list[str]
    timeout: float | None = None
    input_text: str | None = None
    env: Mapping[str, str] | None = None


@dataclass
class FakeRunner:
    """CommandRunner double with prefix-matched scripted results.

    Rules map a command prefix (space-joined argv) to (returncode, stdout).
    Unmatched commands succeed with empty output.
    """

    rules: dict[str, tuple[int, str]] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    def on(self, prefix: str, returncode: int = 0, stdout: str = "") -> FakeRunner:
        self.rules[prefix] = (returncode, stdout)
        return self

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float | None = None,
        input_text: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CmdResult:
        argv = list(argv)
        self.calls.append(RecordedCall(argv, timeout, input_text, env))
        joined = " ".join(argv)
        for prefix, (returncode, stdout) in self.rules.items():
            if joined.startswith(prefix):
                return CmdResult(argv=argv, returncode=returncode, stdout=stdout, stderr="")
        return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

    @property
    def commands(self) -> list[str]:
        return [" ".join(c.argv) for c in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
    """Create a fake command runner."""
    return FakeRunner()


# ============================================================================
# Downloader Double
# ============================================================================


@dataclass
class FakeDownloader:
    """Downloader double serving in-memory payloads by URL."""

    payloads: dict[str, bytes] = field(default_factory=dict)
    requested: list[str] = field(default_factory=list)

    def fetch(self, url: str, dest: Path, timeout: float | None = None) -> Path:
        self.requested.append(url)
        if url not in self.payloads:
            raise InstallError(InstallErrorKind.NETWORK, f"failed to download {url}: 404")
        dest.write_bytes(self.payloads[url])
        return dest

    def fetch_text(self, url: str, timeout: float | None = None) -> str:
        self.requested.append(url)
        if url not in self.payloads:
            raise InstallError(InstallErrorKind.NETWORK, f"failed to download {url}: 404")
        return self.payloads[url].decode("utf-8")


@pytest.fixture
def downloader() -> FakeDownloader:
    """Create a fake downloader."""
    return FakeDownloader()


@pytest.fixture
def make_tarball() -> Callable[[dict[str, bytes]], bytes]:
    """Build a gzipped tarball from {member: content}."""

    def _make(members: dict[str, bytes]) -> bytes:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tf:
            for name, content in members.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mode = 0o755
                tf.addfile(info, io.BytesIO(content))
        return buf.getvalue()

    return _make


# ============================================================================
# Strategy Double
# ============================================================================


class FakeStrategy:
    """InstallStrategy double backed by a mutable 'host' flag.

    install() flips the flag, so a second run sees the tool as present.
    """

    kind = "fake"

    def __init__(self, installed: bool = False, error: Exception | None = None) -> None:
        self.installed = installed
        self.error = error
        self.install_calls: list[float | None] = []

    def is_installed(self) -> bool:
        return self.installed

    def install(self, timeout: float | None = None) -> None:
        self.install_calls.append(timeout)
        if self.error is not None:
            raise self.error
        self.installed = True

    def describe(self) -> str:
        return "fake install"


@pytest.fixture
def make_spec() -> Callable[..., ToolSpec]:
    """Factory for ToolSpecs backed by FakeStrategy."""

    def _make(
        name: str,
        depends_on: Sequence[str] = (),
        installed: bool = False,
        error: Exception | None = None,
    ) -> ToolSpec:
        return ToolSpec(
            name=name,
            strategy=FakeStrategy(installed=installed, error=error),
            depends_on=tuple(depends_on),
        )

    return _make


# ============================================================================
# Mock FileSystem Fixture
# ============================================================================


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    The mock tracks all filesystem operations without touching real files.
    """
    fs = MagicMock()
    fs.is_executable.return_value = False
    return fs
