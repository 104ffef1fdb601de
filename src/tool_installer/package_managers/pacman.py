"""Pacman package manager (Arch Linux)."""

from __future__ import annotations

from .base import BasePackageManager


class PacmanPackageManager(BasePackageManager):
    """pacman handler."""

    name = "pacman"
    binary = "pacman"

    def refresh_argv(self) -> list[str] | None:
        # Arch does not support partial upgrades, so sync and upgrade together.
        return ["pacman", "-Syu", "--noconfirm"]

    def install_argv(self, packages: list[str]) -> list[str]:
        # --needed keeps pacman from reinstalling up-to-date packages.
        return ["pacman", "-S", "--needed", "--noconfirm", *packages]

    def query_argv(self, package: str) -> list[str]:
        return ["pacman", "-Q", package]
