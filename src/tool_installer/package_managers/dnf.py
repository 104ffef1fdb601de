"""DNF package manager (Fedora, RHEL)."""

from __future__ import annotations

from .base import BasePackageManager


class DnfPackageManager(BasePackageManager):
    """dnf handler."""

    name = "dnf"
    binary = "dnf"

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["dnf", "install", "-y", *packages]

    def query_argv(self, package: str) -> list[str]:
        return ["rpm", "-q", package]
