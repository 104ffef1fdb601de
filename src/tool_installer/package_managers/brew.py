"""Homebrew package manager (macOS)."""

from __future__ import annotations

from .base import BasePackageManager


class BrewPackageManager(BasePackageManager):
    """brew handler.

    Homebrew refuses to run as root, so sudo is never used.
    """

    name = "brew"
    binary = "brew"
    system_wide = False

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["brew", "install", *packages]

    def query_argv(self, package: str) -> list[str]:
        return ["brew", "list", "--versions", package]
