"""Tests for package manager handlers."""

from __future__ import annotations

import pytest

from tool_installer.deadline import Deadline
from tool_installer.detector import PackageManagerName
from tool_installer.errors import InstallError, InstallErrorKind
from tool_installer.package_managers import (
    AptPackageManager,
    BrewPackageManager,
    DnfPackageManager,
    PacmanPackageManager,
    get_package_manager,
)
from tool_installer.package_managers import base as pm_base


class TestGetPackageManager:
    """Tests for get_package_manager factory."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("apt", AptPackageManager),
            ("dnf", DnfPackageManager),
            ("pacman", PacmanPackageManager),
            (PackageManagerName.BREW, BrewPackageManager),
        ],
    )
    def test_known(self, runner, name, expected) -> None:
        """Each supported manager has a handler."""
        assert isinstance(get_package_manager(name, runner), expected)

    def test_unknown_raises(self, runner) -> None:
        """Unsupported managers are rejected."""
        with pytest.raises(ValueError, match="Unknown package manager: zypper"):
            get_package_manager("zypper", runner)


class TestSudoPolicy:
    """Tests for automatic sudo selection."""

    def test_sudo_when_not_root(self, runner, monkeypatch: pytest.MonkeyPatch) -> None:
        """System-wide managers use sudo for regular users."""
        monkeypatch.setattr(pm_base, "_running_as_root", lambda: False)
        assert DnfPackageManager(runner).install_command(["jq"]) == ["sudo", "dnf", "install", "-y", "jq"]

    def test_no_sudo_as_root(self, runner, monkeypatch: pytest.MonkeyPatch) -> None:
        """Root runs managers directly."""
        monkeypatch.setattr(pm_base, "_running_as_root", lambda: True)
        assert DnfPackageManager(runner).use_sudo is False

    def test_brew_never_uses_sudo(self, runner, monkeypatch: pytest.MonkeyPatch) -> None:
        """Homebrew is per-user."""
        monkeypatch.setattr(pm_base, "_running_as_root", lambda: False)
        assert BrewPackageManager(runner).install_command(["jq"]) == ["brew", "install", "jq"]

    def test_explicit_override(self, runner) -> None:
        """An explicit setting wins over auto-detection."""
        assert PacmanPackageManager(runner, use_sudo=False).install_command(["fd"]) == [
            "pacman",
            "-S",
            "--needed",
            "--noconfirm",
            "fd",
        ]


class TestIsInstalled:
    """Tests for package presence queries."""

    def test_apt_requires_installed_status(self, runner) -> None:
        """Removed-but-configured packages do not count."""
        runner.on("dpkg-query", stdout="deinstall ok config-files")
        assert AptPackageManager(runner, use_sudo=False).is_installed("jq") is False

    def test_apt_installed(self, runner) -> None:
        """dpkg's installed status counts."""
        runner.on("dpkg-query", stdout="install ok installed")
        assert AptPackageManager(runner, use_sudo=False).is_installed("jq") is True

    @pytest.mark.parametrize(
        ("manager_cls", "query"),
        [
            (DnfPackageManager, "rpm -q jq"),
            (PacmanPackageManager, "pacman -Q jq"),
            (BrewPackageManager, "brew list --versions jq"),
        ],
    )
    def test_query_exit_status(self, runner, manager_cls, query: str) -> None:
        """Other managers answer through the query's exit status."""
        manager = manager_cls(runner, use_sudo=False)
        assert manager.is_installed("jq") is True
        runner.on(query, returncode=1)
        assert manager.is_installed("jq") is False
        assert query in runner.commands


class TestInstall:
    """Tests for package installs."""

    def test_refresh_failure_aborts(self, runner) -> None:
        """A failed apt update stops the install."""
        runner.on("apt-get update", returncode=100)
        manager = AptPackageManager(runner, use_sudo=False)

        with pytest.raises(InstallError) as exc_info:
            manager.install(["jq"])

        assert exc_info.value.kind is InstallErrorKind.NON_ZERO_EXIT
        assert "apt-get install -y -qq jq" not in runner.commands

    def test_refresh_retried_after_failure(self, runner) -> None:
        """A failed refresh is attempted again on the next install."""
        runner.on("apt-get update", returncode=100)
        manager = AptPackageManager(runner, use_sudo=False)
        with pytest.raises(InstallError):
            manager.install(["jq"])
        runner.rules.clear()

        manager.install(["jq"])

        assert runner.commands.count("apt-get update -qq") == 2

    def test_managers_without_refresh(self, runner) -> None:
        """dnf and brew run the install directly."""
        DnfPackageManager(runner, use_sudo=False).install(["gcc", "make"])
        assert runner.commands == ["dnf install -y gcc make"]

    def test_failure_includes_output_tail(self, runner) -> None:
        """The error carries the manager's last output lines."""
        runner.on("pacman -S --needed", returncode=1, stdout="error: target not found: nope")

        with pytest.raises(InstallError, match="target not found"):
            PacmanPackageManager(runner, use_sudo=False).install(["nope"])

    def test_pacman_syncs_before_install(self, runner) -> None:
        """pacman syncs and upgrades before the first install."""
        manager = PacmanPackageManager(runner, use_sudo=True)
        manager.install(["fd"])
        manager.install(["jq"])
        assert runner.commands == [
            "sudo pacman -Syu --noconfirm",
            "sudo pacman -S --needed --noconfirm fd",
            "sudo pacman -S --needed --noconfirm jq",
        ]


class TestInstallDeadline:
    """Tests for the time budget shared by refresh and install."""

    @pytest.fixture
    def clock(self) -> list[float]:
        """Manually advanced monotonic clock."""
        return [100.0]

    @pytest.fixture
    def slow_runner(self, runner, clock: list[float]):
        """Runner whose every command takes 0.3s of clock time."""
        run = runner.run

        def timed(argv, **kwargs):
            result = run(argv, **kwargs)
            clock[0] += 0.3
            return result

        runner.run = timed
        return runner

    def test_install_gets_what_refresh_left(self, slow_runner, clock: list[float]) -> None:
        """The install command sees the budget minus the refresh time."""
        deadline = Deadline(1.0, clock=lambda: clock[0])

        AptPackageManager(slow_runner, use_sudo=False).install(["jq"], deadline=deadline)

        timeouts = [c.timeout for c in slow_runner.calls]
        assert timeouts == [pytest.approx(1.0), pytest.approx(0.7)]

    def test_refresh_exhausting_budget_stops_install(
        self, slow_runner, clock: list[float]
    ) -> None:
        """Nothing runs once the refresh used up the whole budget."""
        deadline = Deadline(0.2, clock=lambda: clock[0])

        with pytest.raises(InstallError) as exc_info:
            AptPackageManager(slow_runner, use_sudo=False).install(["jq"], deadline=deadline)

        assert exc_info.value.kind is InstallErrorKind.TIMEOUT
        assert slow_runner.commands == ["apt-get update -qq"]

    def test_unbounded_by_default(self, runner) -> None:
        """Without a deadline commands run without a timeout."""
        AptPackageManager(runner, use_sudo=False).install(["jq"])
        assert [c.timeout for c in runner.calls] == [None, None]
