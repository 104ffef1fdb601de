"""APT package manager (Debian, Ubuntu)."""

from __future__ import annotations

from .base import BasePackageManager


class AptPackageManager(BasePackageManager):
    """apt-get handler."""

    name = "apt"
    binary = "apt-get"

    def refresh_argv(self) -> list[str] | None:
        return ["apt-get", "update", "-qq"]

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["apt-get", "install", "-y", "-qq", *packages]

    def query_argv(self, package: str) -> list[str]:
        return ["dpkg-query", "-W", "-f=${Status}", package]

    def is_installed(self, package: str) -> bool:
        # dpkg-query also succeeds for removed-but-configured packages.
        result = self.runner.run(self.query_argv(package))
        return result.ok and "install ok installed" in result.stdout
